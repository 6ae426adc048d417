# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from holiday_tracker.models.enums import DecisionAction, HolidayStatus, HolidayType, ViewScope

_ISO_DATE = r"^\d{4}-\d{2}-\d{2}$"

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateHolidayPayload(BaseModel):
    """Request body for submitting a holiday request.

    Dates are kept as strings here; calendar validity (e.g. 2025-02-30) is
    checked by the request validator so it is reported with a rejection code.
    """

    start_date: str = Field(pattern=_ISO_DATE)
    end_date: str = Field(pattern=_ISO_DATE)
    type: HolidayType = HolidayType.VACATION
    notes: str | None = Field(default=None, max_length=500)


class EditHolidayPayload(BaseModel):
    """Request body for editing a pending or rejected request. Omitted fields keep their value."""

    start_date: str | None = Field(default=None, pattern=_ISO_DATE)
    end_date: str | None = Field(default=None, pattern=_ISO_DATE)
    type: HolidayType | None = None
    notes: str | None = Field(default=None, max_length=500)


class DecisionPayload(BaseModel):
    """Request body for the approve/reject action."""

    action: DecisionAction
    rejection_reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class DepartmentSummary(BaseModel):
    id: uuid.UUID
    name: str
    location: str | None = None


class HolidayOwner(BaseModel):
    """The request owner. Email is omitted for non-admin viewers of other users."""

    id: uuid.UUID
    name: str
    email: str | None = None
    department: DepartmentSummary | None = None


class ApproverSummary(BaseModel):
    id: uuid.UUID
    name: str
    email: str | None = None


class HolidayResponse(BaseModel):
    """Response schema for a single holiday request."""

    id: uuid.UUID
    user_id: uuid.UUID
    user: HolidayOwner | None = None
    start_date: date
    end_date: date
    type: HolidayType
    status: HolidayStatus
    working_days: int
    notes: str | None
    approved_by: uuid.UUID | None
    approver: ApproverSummary | None = None
    approved_at: datetime | None
    rejection_reason: str | None
    created_at: datetime
    updated_at: datetime


class StatusCounts(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0


class TypeCounts(BaseModel):
    vacation: int = 0
    sick: int = 0
    personal: int = 0


class HolidayListResponse(BaseModel):
    """Paginated, visibility-filtered list of holiday requests with aggregate counts."""

    items: list[HolidayResponse]
    total: int
    status_counts: StatusCounts
    type_counts: TypeCounts
    scope: ViewScope


# ---------------------------------------------------------------------------
# Listing query
# ---------------------------------------------------------------------------


class HolidayListQuery(BaseModel):
    """Filters, sorting and pagination for the holiday listing."""

    scope: ViewScope | None = None
    start_date: date | None = None  # requests starting on or after
    end_date: date | None = None  # requests ending on or before
    year: int | None = Field(default=None, ge=1970, le=9999)
    month: str | None = Field(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    status: HolidayStatus | None = None
    type: HolidayType | None = None
    user_id: uuid.UUID | None = None  # admin only
    department_id: uuid.UUID | None = None  # admin only
    sort_by: Literal["start_date", "end_date", "created_at", "status"] = "start_date"
    sort_order: Literal["asc", "desc"] = "desc"
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=50, ge=1, le=100)
