# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from holiday_tracker.models.base import utcnow


class SystemSetting(SQLModel, table=True):
    """An admin-stored override for one process-wide setting key."""

    __tablename__ = "system_setting"

    key: str = Field(primary_key=True, max_length=100)
    value: str = Field(max_length=255)
    updated_by: uuid.UUID | None = None
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
