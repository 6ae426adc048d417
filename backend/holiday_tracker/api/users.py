# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from holiday_tracker.api.deps import AdminDep, AuthDep, SystemSettingsDep, TodayDep
from holiday_tracker.db import SessionDep
from holiday_tracker.models.enums import UserStatus
from holiday_tracker.schemas.user import (
    ApplyAllowanceResponse,
    CreateUserRequest,
    LeaveSummaryResponse,
    RegisterUserRequest,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)
from holiday_tracker.services import user as user_service

users_router = APIRouter(prefix="/users", tags=["users"])


@users_router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: RegisterUserRequest,
    session: SessionDep,
    settings: SystemSettingsDep,
) -> UserResponse:
    """Self-registration. The account stays pending until an admin activates it."""
    return await user_service.register_user(session, payload, settings)


@users_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: CreateUserRequest,
    session: SessionDep,
    auth: AdminDep,
    settings: SystemSettingsDep,
) -> UserResponse:
    """Create an active account (admin only)."""
    return await user_service.create_user(session, auth, payload, settings)


@users_router.get("", response_model=UserListResponse)
async def list_users(
    session: SessionDep,
    auth: AdminDep,
    status_filter: UserStatus | None = Query(default=None, alias="status"),
    department_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> UserListResponse:
    """List users (admin only)."""
    return await user_service.list_users(session, status_filter, department_id, offset, limit)


@users_router.get("/me", response_model=UserResponse)
async def get_me(session: SessionDep, auth: AuthDep) -> UserResponse:
    """Return the caller's own account."""
    return await user_service.get_user(session, auth, auth.user_id)


@users_router.post("/apply-default-allowance", response_model=ApplyAllowanceResponse)
async def apply_default_allowance(
    session: SessionDep,
    auth: AdminDep,
    settings: SystemSettingsDep,
) -> ApplyAllowanceResponse:
    """Reset every user's allowance to the system default (admin only)."""
    return await user_service.apply_default_allowance(session, auth, settings)


@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> UserResponse:
    """Get a user (admin, or the user themselves)."""
    return await user_service.get_user(session, auth, user_id)


@users_router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: UpdateUserRequest,
    session: SessionDep,
    auth: AdminDep,
) -> UserResponse:
    """Update role, status, department or allowance (admin only)."""
    return await user_service.update_user(session, auth, user_id, payload)


@users_router.post("/{user_id}/activate", response_model=UserResponse)
async def activate_user(user_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> UserResponse:
    """Activate a pending registration (admin only)."""
    return await user_service.activate_user(session, auth, user_id)


@users_router.get("/{user_id}/leave-summary", response_model=LeaveSummaryResponse)
async def get_leave_summary(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
    year: int | None = Query(default=None, ge=1970, le=9999),
) -> LeaveSummaryResponse:
    """Per-type leave statistics for a calendar year (defaults to the current year)."""
    return await user_service.get_leave_summary(session, auth, user_id, year or today.year, today)
