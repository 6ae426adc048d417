# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from holiday_tracker.models.base import CreatedAtMixin, UUIDBase
from holiday_tracker.models.enums import UserRole, UserStatus


class Department(UUIDBase, table=True):
    """An organisational unit that groups employees for team visibility."""

    __tablename__ = "department"

    name: str = Field(max_length=255, unique=True)
    location: str | None = Field(default=None, max_length=255)


class User(UUIDBase, CreatedAtMixin, table=True):
    """An employee or admin account with its annual vacation allowance."""

    __tablename__ = "app_user"
    __table_args__ = (sa.CheckConstraint("holiday_allowance >= 0", name="ck_user_allowance_non_negative"),)

    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)
    role: str = Field(default=UserRole.EMPLOYEE, max_length=20, sa_column_kwargs={"server_default": "employee"})
    status: str = Field(default=UserStatus.PENDING, max_length=20, sa_column_kwargs={"server_default": "pending"})
    department_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("department.id", ondelete="SET NULL"), nullable=True, index=True),
    )
    holiday_allowance: int = Field(default=20)
