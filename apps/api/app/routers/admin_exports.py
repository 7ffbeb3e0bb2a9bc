"""CSV data export."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.core.permissions import Permission
from app.schemas.auth import UserSession
from app.services import export_service

router = APIRouter(prefix="/admin/export", tags=["export"])


@router.get("")
def export_data(
    export_type: str | None = Query(None, alias="type"),
    session: UserSession = Depends(require_permission(Permission.EXPORT_DATA)),
    db: Session = Depends(get_db),
):
    if export_type not in export_service.EXPORT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid export type")

    content = "".join(export_service.iter_applications_csv(db))
    filename = f"applications-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
