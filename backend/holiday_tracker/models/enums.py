from __future__ import annotations

import enum


class UserRole(enum.StrEnum):
    """Role of an account."""

    EMPLOYEE = "employee"
    ADMIN = "admin"


class UserStatus(enum.StrEnum):
    """Account lifecycle: registered, activated by an admin, or disabled."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class HolidayType(enum.StrEnum):
    """Kind of leave. Only vacation draws down the annual allowance."""

    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"


class HolidayStatus(enum.StrEnum):
    """State machine for holiday requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class HolidayEvent(enum.StrEnum):
    """Events that move a holiday request between statuses."""

    SUBMIT = "submit"
    EDIT = "edit"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"


class DecisionAction(enum.StrEnum):
    """Admin decision on a pending request."""

    APPROVE = "approve"
    REJECT = "reject"


class ViewScope(enum.StrEnum):
    """Which owners' requests a listing covers."""

    OWN = "own"
    TEAM = "team"
    ALL = "all"


class VisibilityMode(enum.StrEnum):
    """Company-wide default for what non-admins see when they ask for no scope."""

    ALL_SEE_ALL = "all_see_all"
    DEPARTMENT_ONLY = "department_only"
    ADMIN_ONLY = "admin_only"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    HOLIDAY = "HOLIDAY"
    USER = "USER"
    SETTING = "SETTING"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    SUBMIT = "SUBMIT"
    ACTIVATE = "ACTIVATE"
