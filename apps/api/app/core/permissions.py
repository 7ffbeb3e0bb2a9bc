"""Permission registry with metadata for UI and validation.

Permissions are a flat set of capability strings stored per admin user.
There is no role layer and no inheritance: a user can do exactly what
their list contains. An empty list means the account is pending approval.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterable


@dataclass(frozen=True)
class PermissionDef:
    """Permission definition with metadata."""
    key: str
    label: str
    category: str


class PermissionCategory(str, Enum):
    """Permission categories for UI grouping."""
    DASHBOARD = "Dashboard"
    APPLICATIONS = "Applications"
    JOBS = "Jobs"
    EMPLOYEES = "Employees"
    SALES = "Sales"
    SYSTEM = "System"


class Permission(str, Enum):
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_APPLICATIONS = "view_applications"
    MANAGE_APPLICATIONS = "manage_applications"
    SEND_EMAILS = "send_emails"
    VIEW_JOBS = "view_jobs"
    MANAGE_JOBS = "manage_jobs"
    VIEW_EMPLOYEES = "view_employees"
    MANAGE_EMPLOYEES = "manage_employees"
    VIEW_SALES_LEADS = "view_sales_leads"
    MANAGE_SALES_LEADS = "manage_sales_leads"
    EXPORT_DATA = "export_data"
    MANAGE_USERS = "manage_users"


# =============================================================================
# Permission Registry
# =============================================================================

PERMISSION_REGISTRY: dict[str, PermissionDef] = {
    p.key: p
    for p in (
        PermissionDef("view_dashboard", "View Dashboard", PermissionCategory.DASHBOARD),
        PermissionDef("view_applications", "View Applications", PermissionCategory.APPLICATIONS),
        PermissionDef("manage_applications", "Manage Applications", PermissionCategory.APPLICATIONS),
        PermissionDef("send_emails", "Send Emails", PermissionCategory.APPLICATIONS),
        PermissionDef("view_jobs", "View Jobs", PermissionCategory.JOBS),
        PermissionDef("manage_jobs", "Manage Jobs", PermissionCategory.JOBS),
        PermissionDef("view_employees", "View Employees", PermissionCategory.EMPLOYEES),
        PermissionDef("manage_employees", "Manage Employees", PermissionCategory.EMPLOYEES),
        PermissionDef("view_sales_leads", "View Sales Leads", PermissionCategory.SALES),
        PermissionDef("manage_sales_leads", "Manage Sales Leads", PermissionCategory.SALES),
        PermissionDef("export_data", "Export Data", PermissionCategory.SYSTEM),
        PermissionDef("manage_users", "Manage Users", PermissionCategory.SYSTEM),
    )
}

ALL_PERMISSIONS: list[str] = list(PERMISSION_REGISTRY)


def is_valid_permission(key: str) -> bool:
    """Check if permission key exists."""
    return key in PERMISSION_REGISTRY


def get_permission_groups() -> list[dict]:
    """Group permissions by category for the user management screen."""
    groups: dict[str, list[dict]] = {}
    for perm in PERMISSION_REGISTRY.values():
        groups.setdefault(perm.category.value, []).append(
            {"key": perm.key, "label": perm.label}
        )
    return [{"label": label, "permissions": perms} for label, perms in groups.items()]


def parse_permissions(raw: str | list | None) -> list[str]:
    """
    Normalize a stored permission value into a list of known keys.

    Accepts a JSON-encoded list or an already decoded list. Unknown keys are
    dropped; malformed input yields an empty list rather than an error.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []
    return [p for p in raw if isinstance(p, str) and is_valid_permission(p)]


def _key(permission: "str | Permission") -> str:
    return permission.value if isinstance(permission, Permission) else permission


def has_permission(permissions: Iterable[str], permission: str) -> bool:
    return _key(permission) in set(permissions)


def has_any_permission(permissions: Iterable[str], required: Iterable[str]) -> bool:
    owned = set(permissions)
    return any(_key(p) in owned for p in required)


def has_all_permissions(permissions: Iterable[str], required: Iterable[str]) -> bool:
    owned = set(permissions)
    return all(_key(p) in owned for p in required)
