# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from holiday_tracker.models.base import TimestampMixin, UUIDBase
from holiday_tracker.models.enums import HolidayStatus, HolidayType


class HolidayRequest(UUIDBase, TimestampMixin, table=True):
    """A leave request for an inclusive date range, with its approval state."""

    __tablename__ = "holiday_request"
    __table_args__ = (
        sa.Index("ix_holiday_user_status", "user_id", "status"),
        sa.Index("ix_holiday_start_date", "start_date"),
        sa.CheckConstraint("start_date <= end_date", name="ck_holiday_date_order"),
        sa.CheckConstraint("working_days >= 1", name="ck_holiday_working_days_positive"),
    )

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    type: str = Field(default=HolidayType.VACATION, max_length=20, sa_column_kwargs={"server_default": "vacation"})
    status: str = Field(
        default=HolidayStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    working_days: int
    notes: str | None = Field(default=None, max_length=500)
    approved_by: uuid.UUID | None = None
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    rejection_reason: str | None = Field(default=None, max_length=500)
