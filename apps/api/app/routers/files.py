"""Stored file download (resumes, employee documents)."""

from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from app.core.deps import get_current_session, get_storage
from app.schemas.auth import UserSession
from app.services import storage_service

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{path:path}")
def get_file(
    path: str,
    inline: bool = Query(False),
    session: UserSession = Depends(get_current_session),
    storage=Depends(get_storage),
):
    if ".." in path:
        raise HTTPException(status_code=400, detail="Invalid path")
    try:
        key = storage_service.check_key(path)
    except storage_service.InvalidStorageKey:
        raise HTTPException(status_code=400, detail="Invalid path")

    data = storage.read(key)
    if data is None:
        raise HTTPException(status_code=404, detail="File not found")

    disposition = "inline" if inline else "attachment"
    filename = PurePosixPath(key).name
    return Response(
        content=data,
        media_type=storage_service.guess_content_type(key),
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
    )
