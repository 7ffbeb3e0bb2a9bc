"""CSV exports for the admin panel."""

import csv
import io
from datetime import datetime
from typing import Any, Iterator, Sequence

from sqlalchemy.orm import Session

from app.db.models import Application, Job

EXPORT_TYPES = ("applications",)

APPLICATION_HEADERS = (
    "First Name",
    "Last Name",
    "Email",
    "Phone",
    "Status",
    "Applied Date",
    "Job Title",
    "Department",
)

# Spreadsheet apps evaluate cells starting with these as formulas
CSV_DANGEROUS_PREFIXES = ("=", "+", "-", "@")


def _csv_safe(value: str) -> str:
    if value and value.startswith(CSV_DANGEROUS_PREFIXES):
        return f"'{value}"
    return value


def _serialize_csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _write_csv_row(values: Sequence[Any]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([_csv_safe(_serialize_csv_value(value)) for value in values])
    return output.getvalue()


def iter_applications_csv(db: Session) -> Iterator[str]:
    """Header line, then one line per application, newest first."""
    yield _write_csv_row(APPLICATION_HEADERS)
    rows = (
        db.query(
            Application.first_name,
            Application.last_name,
            Application.email,
            Application.phone,
            Application.status,
            Application.created_at,
            Job.title,
            Job.department,
        )
        .outerjoin(Job, Job.id == Application.job_id)
        .order_by(Application.created_at.desc())
        .all()
    )
    for row in rows:
        yield _write_csv_row(row)
