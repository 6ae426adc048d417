# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from holiday_tracker.models.enums import UserRole


class AuthContext(BaseModel):
    """The authenticated caller, as seen by authorization and visibility rules."""

    user_id: uuid.UUID
    role: UserRole = UserRole.EMPLOYEE
    department_id: uuid.UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
