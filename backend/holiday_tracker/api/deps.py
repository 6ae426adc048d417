# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import Depends, Header, status

from holiday_tracker.config import get_settings
from holiday_tracker.db import SessionDep
from holiday_tracker.exceptions import AppError
from holiday_tracker.models.enums import UserRole, UserStatus
from holiday_tracker.models.user import User
from holiday_tracker.schemas.auth import AuthContext
from holiday_tracker.schemas.settings import SystemSettings
from holiday_tracker.services.settings import load_system_settings


async def get_auth_context(
    session: SessionDep,
    x_user_id: uuid.UUID | None = Header(default=None),
) -> AuthContext:
    """Resolve the caller from the dev auth header; role and department come from the user row."""
    if x_user_id is None:
        raise AppError("Authentication required", status_code=status.HTTP_401_UNAUTHORIZED, code="UNAUTHENTICATED")
    user = await session.get(User, x_user_id)
    if user is None:
        raise AppError("Unknown user", status_code=status.HTTP_401_UNAUTHORIZED, code="UNAUTHENTICATED")
    if user.status != UserStatus.ACTIVE:
        raise AppError("Account is not active", status_code=status.HTTP_403_FORBIDDEN, code="ACCOUNT_INACTIVE")
    return AuthContext(user_id=user.id, role=UserRole(user.role), department_id=user.department_id)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise AppError("Admin access required", status_code=status.HTTP_403_FORBIDDEN, code="FORBIDDEN")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


def get_today() -> date:
    """The current date used by date rules. Overridden in tests."""
    return date.today()


TodayDep = Annotated[date, Depends(get_today)]


async def get_system_settings(session: SessionDep) -> SystemSettings:
    """Load admin-configurable settings once per request."""
    return await load_system_settings(session, get_settings())


SystemSettingsDep = Annotated[SystemSettings, Depends(get_system_settings)]
