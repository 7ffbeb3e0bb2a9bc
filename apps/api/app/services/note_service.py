"""Note service - owner-only notes on applications, employees and sales leads.

All three note tables share one code path, described by a NoteKind. Only
the admin who wrote a note may edit or delete it; that check lives here so
every caller enforces it.
"""

from dataclasses import dataclass
from typing import Callable
from uuid import UUID

import nh3
from sqlalchemy.orm import Session

from app.db.enums import (
    EmployeeActivityAction,
    EmployeeNoteCategory,
    SalesLeadActivityAction,
    SalesLeadNoteCategory,
)
from app.db.models import AdminUser, ApplicationNote, EmployeeNote, SalesLeadNote
from app.schemas.note import NoteRead
from app.services import activity_service

# Notes are plain text with light formatting at most
ALLOWED_TAGS = {"p", "br", "strong", "em", "ul", "ol", "li", "a"}
ALLOWED_ATTRIBUTES = {"a": {"href"}}


class NoteNotFoundError(Exception):
    pass


class NoteOwnershipError(Exception):
    pass


class InvalidNoteError(ValueError):
    pass


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe formatting tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


@dataclass(frozen=True)
class NoteKind:
    model: type
    parent_field: str
    categories: frozenset[str] = frozenset()
    # (db, parent_id, admin_id, action, details) -> None
    log: Callable | None = None

    @property
    def has_category(self) -> bool:
        return bool(self.categories)


def _log_employee(db, employee_id, admin_id, action: str, details: dict) -> None:
    activity_service.log_employee_activity(
        db, employee_id, admin_id, EmployeeActivityAction(action), details=details
    )


def _log_sales_lead(db, lead_id, admin_id, action: str, details: dict) -> None:
    activity_service.log_sales_lead_activity(
        db, lead_id, admin_id, SalesLeadActivityAction(action), details=details
    )


APPLICATION_NOTES = NoteKind(ApplicationNote, "application_id")
EMPLOYEE_NOTES = NoteKind(
    EmployeeNote,
    "employee_id",
    frozenset(c.value for c in EmployeeNoteCategory),
    _log_employee,
)
SALES_LEAD_NOTES = NoteKind(
    SalesLeadNote,
    "lead_id",
    frozenset(c.value for c in SalesLeadNoteCategory),
    _log_sales_lead,
)


def _clean_content(content: str | None) -> str:
    content = (content or "").strip()
    if not content:
        raise InvalidNoteError("Content is required")
    return sanitize_html(content)


def _check_category(kind: NoteKind, category: str | None) -> str | None:
    if not kind.has_category or category is None:
        return None
    if category not in kind.categories:
        raise InvalidNoteError("Invalid category")
    return category


def to_note_read(note, author: AdminUser | None) -> NoteRead:
    return NoteRead(
        id=note.id,
        content=note.content,
        category=getattr(note, "category", None),
        admin_user_id=note.admin_user_id,
        author_name=author.name if author else None,
        author_email=author.email if author else None,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def list_notes(db: Session, kind: NoteKind, parent_id: UUID) -> list[NoteRead]:
    model = kind.model
    rows = (
        db.query(model, AdminUser)
        .outerjoin(AdminUser, AdminUser.id == model.admin_user_id)
        .filter(getattr(model, kind.parent_field) == parent_id)
        .order_by(model.created_at.desc())
        .all()
    )
    return [to_note_read(note, author) for note, author in rows]


def _get_note(db: Session, kind: NoteKind, parent_id: UUID, note_id: UUID):
    model = kind.model
    note = (
        db.query(model)
        .filter(model.id == note_id, getattr(model, kind.parent_field) == parent_id)
        .first()
    )
    if note is None:
        raise NoteNotFoundError("Note not found")
    return note


def create_note(
    db: Session,
    kind: NoteKind,
    parent_id: UUID,
    admin_user_id: UUID,
    content: str | None,
    category: str | None = None,
) -> NoteRead:
    fields = {
        kind.parent_field: parent_id,
        "admin_user_id": admin_user_id,
        "content": _clean_content(content),
    }
    category = _check_category(kind, category)
    if category:
        fields["category"] = category
    note = kind.model(**fields)
    db.add(note)
    db.flush()
    if kind.log:
        kind.log(db, parent_id, admin_user_id, "note_added", {"noteId": note.id})
    db.commit()
    db.refresh(note)
    return to_note_read(note, db.get(AdminUser, admin_user_id))


def update_note(
    db: Session,
    kind: NoteKind,
    parent_id: UUID,
    note_id: UUID,
    admin_user_id: UUID,
    content: str | None,
    category: str | None = None,
) -> NoteRead:
    """
    Raises:
        NoteNotFoundError, NoteOwnershipError, InvalidNoteError
    """
    note = _get_note(db, kind, parent_id, note_id)
    if note.admin_user_id != admin_user_id:
        raise NoteOwnershipError("You can only edit your own notes")
    note.content = _clean_content(content)
    category = _check_category(kind, category)
    if category:
        note.category = category
    if kind.log:
        kind.log(db, parent_id, admin_user_id, "note_updated", {"noteId": note.id})
    db.commit()
    db.refresh(note)
    return to_note_read(note, db.get(AdminUser, admin_user_id))


def delete_note(
    db: Session,
    kind: NoteKind,
    parent_id: UUID,
    note_id: UUID,
    admin_user_id: UUID,
) -> None:
    """
    Raises:
        NoteNotFoundError, NoteOwnershipError
    """
    note = _get_note(db, kind, parent_id, note_id)
    if note.admin_user_id != admin_user_id:
        raise NoteOwnershipError("You can only delete your own notes")
    if kind.log:
        kind.log(db, parent_id, admin_user_id, "note_deleted", {"noteId": note.id})
    db.delete(note)
    db.commit()
