"""Pydantic schemas for API request/response models."""

from app.schemas.auth import LoginRequest, MeResponse, UserSession, VerifyRequest
from app.schemas.common import CamelModel, SuccessResponse
from app.schemas.user import AdminUserRead, AdminUserUpdate
from app.schemas.job import JobCreate, JobRead, JobUpdate
from app.schemas.application import ApplicationDetail, ApplicationListItem
from app.schemas.employee import EmployeeCreate, EmployeeRead, EmployeeUpdate
from app.schemas.sales_lead import SalesLeadCreate, SalesLeadRead, SalesLeadUpdate
from app.schemas.note import NoteCreate, NoteRead, NoteUpdate

__all__ = [
    "MeResponse",
    "LoginRequest",
    "VerifyRequest",
    "UserSession",
    "CamelModel",
    "SuccessResponse",
    "AdminUserRead",
    "AdminUserUpdate",
    "JobCreate",
    "JobRead",
    "JobUpdate",
    "ApplicationDetail",
    "ApplicationListItem",
    "EmployeeCreate",
    "EmployeeRead",
    "EmployeeUpdate",
    "SalesLeadCreate",
    "SalesLeadRead",
    "SalesLeadUpdate",
    "NoteCreate",
    "NoteRead",
    "NoteUpdate",
]
