"""Admin user management: permission grants and deactivation."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.permissions import Permission, is_valid_permission
from app.core.structured_logging import build_log_context
from app.db.models import AdminUser
from app.schemas.user import AdminUserUpdate
from app.services import auth_service

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[AdminUser]:
    return db.query(AdminUser).order_by(AdminUser.created_at).all()


def get_user(db: Session, user_id: UUID) -> AdminUser | None:
    return db.query(AdminUser).filter(AdminUser.id == user_id).first()


def update_user(
    db: Session,
    user: AdminUser,
    data: AdminUserUpdate,
    actor_id: UUID,
) -> AdminUser:
    """
    Change a user's name and/or permission list.

    Unknown permission keys are dropped. Changing someone else's
    permissions ends their sessions so the next request re-authenticates.

    Raises:
        ValueError: the actor tried to drop their own manage_users
    """
    is_self = user.id == actor_id

    if data.permissions is not None:
        permissions = [p for p in dict.fromkeys(data.permissions) if is_valid_permission(p)]
        if is_self and Permission.MANAGE_USERS.value not in permissions:
            raise ValueError("Cannot remove user management permission from yourself")
        if sorted(permissions) != sorted(user.permissions or []):
            user.permissions = permissions
            if not is_self:
                revoked = auth_service.revoke_user_sessions(db, user.id)
                logger.info(
                    "Permissions changed, %d sessions revoked",
                    revoked,
                    extra=build_log_context(user_id=str(actor_id), entity_id=str(user.id)),
                )

    if data.name is not None:
        user.name = data.name.strip() or None

    db.commit()
    db.refresh(user)
    return user


def deactivate_user(db: Session, user: AdminUser, actor_id: UUID) -> None:
    """
    Clear every permission and end all sessions. The row is kept.

    Raises:
        ValueError: the actor targeted their own account
    """
    if user.id == actor_id:
        raise ValueError("Cannot deactivate yourself")
    user.permissions = []
    auth_service.revoke_user_sessions(db, user.id)
    db.commit()
    logger.info(
        "User deactivated",
        extra=build_log_context(user_id=str(actor_id), entity_id=str(user.id)),
    )
