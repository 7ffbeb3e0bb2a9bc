"""Admin user management (manage_users only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.core.permissions import Permission, get_permission_groups
from app.schemas.auth import UserSession
from app.schemas.common import SuccessResponse
from app.schemas.user import AdminUserRead, AdminUserUpdate, UserListResponse
from app.services import user_service

router = APIRouter(prefix="/admin/users", tags=["users"])


def _get_user_or_404(db: Session, user_id: UUID):
    user = user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=UserListResponse)
def list_users(
    session: UserSession = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    """Users with the permission catalog grouped for the edit form."""
    return UserListResponse(
        users=user_service.list_users(db),
        permission_groups=get_permission_groups(),
    )


@router.get("/{user_id}", response_model=AdminUserRead)
def get_user(
    user_id: UUID,
    session: UserSession = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    return _get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=AdminUserRead)
def update_user(
    user_id: UUID,
    data: AdminUserUpdate,
    session: UserSession = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    user = _get_user_or_404(db, user_id)
    try:
        return user_service.update_user(db, user, data, session.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{user_id}", response_model=SuccessResponse)
def deactivate_user(
    user_id: UUID,
    session: UserSession = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    user = _get_user_or_404(db, user_id)
    try:
        user_service.deactivate_user(db, user, session.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SuccessResponse()
