from sqlmodel import SQLModel

from holiday_tracker.models.audit import AuditLog
from holiday_tracker.models.base import CreatedAtMixin, TimestampMixin, UUIDBase
from holiday_tracker.models.enums import (
    AuditAction,
    AuditEntityType,
    DecisionAction,
    HolidayEvent,
    HolidayStatus,
    HolidayType,
    UserRole,
    UserStatus,
    ViewScope,
    VisibilityMode,
)
from holiday_tracker.models.holiday import HolidayRequest
from holiday_tracker.models.setting import SystemSetting
from holiday_tracker.models.user import Department, User

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "CreatedAtMixin",
    "DecisionAction",
    "Department",
    "HolidayEvent",
    "HolidayRequest",
    "HolidayStatus",
    "HolidayType",
    "SQLModel",
    "SystemSetting",
    "TimestampMixin",
    "UUIDBase",
    "User",
    "UserRole",
    "UserStatus",
    "ViewScope",
    "VisibilityMode",
]
