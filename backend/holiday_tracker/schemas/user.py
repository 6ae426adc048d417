# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from holiday_tracker.models.enums import HolidayType, UserRole, UserStatus

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterUserRequest(BaseModel):
    """Request body for self-registration. The account starts pending."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=_EMAIL_PATTERN)


class CreateUserRequest(BaseModel):
    """Request body for an admin creating an active account."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=_EMAIL_PATTERN)
    role: UserRole = UserRole.EMPLOYEE
    department_id: uuid.UUID | None = None
    holiday_allowance: int | None = Field(default=None, ge=0, le=366)


class UpdateUserRequest(BaseModel):
    """Admin update of a user. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    role: UserRole | None = None
    status: UserStatus | None = None
    department_id: uuid.UUID | None = None
    holiday_allowance: int | None = Field(default=None, ge=0, le=366)


class UserResponse(BaseModel):
    """Response schema for a user account."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    status: UserStatus
    department_id: uuid.UUID | None
    holiday_allowance: int
    created_at: datetime


class UserListResponse(BaseModel):
    """Paginated list of users."""

    items: list[UserResponse]
    total: int


class ApplyAllowanceResponse(BaseModel):
    """Result of resetting every user's allowance to the system default."""

    holiday_allowance: int
    updated: int


# ---------------------------------------------------------------------------
# Leave summary
# ---------------------------------------------------------------------------


class LeaveTypeSummary(BaseModel):
    """Per-type day counts for one user and calendar year."""

    type: HolidayType
    allowance: int | None  # None when the type is not capped
    used_days: int
    taken_days: int
    booked_days: int
    pending_days: int
    available_days: int | None
    total_requests: int
    approved_requests: int
    pending_requests: int
    rejected_requests: int


class LeaveSummaryResponse(BaseModel):
    """Leave statistics for one user and calendar year."""

    user_id: uuid.UUID
    year: int
    vacation: LeaveTypeSummary
    sick: LeaveTypeSummary
    personal: LeaveTypeSummary
