"""API routers."""

from app.routers.admin_applications import router as admin_applications_router
from app.routers.admin_exports import router as admin_exports_router
from app.routers.admin_jobs import router as admin_jobs_router
from app.routers.analytics import router as analytics_router
from app.routers.applications import router as applications_router
from app.routers.auth import router as auth_router
from app.routers.email_templates import router as email_templates_router
from app.routers.emails import router as emails_router
from app.routers.employees import router as employees_router
from app.routers.files import router as files_router
from app.routers.health import router as health_router
from app.routers.jobs import router as jobs_router
from app.routers.sales_leads import router as sales_leads_router
from app.routers.users import router as users_router

__all__ = [
    "admin_applications_router",
    "admin_exports_router",
    "admin_jobs_router",
    "analytics_router",
    "applications_router",
    "auth_router",
    "email_templates_router",
    "emails_router",
    "employees_router",
    "files_router",
    "health_router",
    "jobs_router",
    "sales_leads_router",
    "users_router",
]
