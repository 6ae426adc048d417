# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from holiday_tracker.exceptions import AppError
from holiday_tracker.models.enums import (
    AuditAction,
    AuditEntityType,
    HolidayStatus,
    HolidayType,
    UserRole,
    UserStatus,
)
from holiday_tracker.models.holiday import HolidayRequest
from holiday_tracker.models.user import Department, User
from holiday_tracker.schemas.user import (
    ApplyAllowanceResponse,
    LeaveSummaryResponse,
    LeaveTypeSummary,
    UserListResponse,
    UserResponse,
)
from holiday_tracker.services.audit import model_to_audit_dict, write_audit_log
from holiday_tracker.services.working_days import year_bounds

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from holiday_tracker.schemas.auth import AuthContext
    from holiday_tracker.schemas.settings import SystemSettings
    from holiday_tracker.schemas.user import CreateUserRequest, RegisterUserRequest, UpdateUserRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=UserRole(user.role),
        status=UserStatus(user.status),
        department_id=user.department_id,
        holiday_allowance=user.holiday_allowance,
        created_at=user.created_at,
    )


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    """Fetch a user by ID. Raises 404 if not found."""
    user = await session.get(User, user_id)
    if user is None:
        raise AppError("User not found", status_code=status.HTTP_404_NOT_FOUND, code="NOT_FOUND")
    return user


async def _ensure_department_exists(session: AsyncSession, department_id: uuid.UUID) -> None:
    if await session.get(Department, department_id) is None:
        raise AppError("Department not found", status_code=status.HTTP_404_NOT_FOUND, code="NOT_FOUND")


async def _insert_user(session: AsyncSession, user: User, actor_id: uuid.UUID) -> User:
    existing = await session.execute(select(User).where(func.lower(col(User.email)) == user.email.lower()))
    if existing.scalar_one_or_none() is not None:
        raise AppError("Email already registered", status_code=status.HTTP_409_CONFLICT, code="EMAIL_TAKEN")

    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError("Email already registered", status_code=status.HTTP_409_CONFLICT, code="EMAIL_TAKEN") from None

    await write_audit_log(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.USER,
        entity_key=user.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(user),
    )
    await session.commit()
    await session.refresh(user)
    return user


def _require_self_or_admin(auth: AuthContext, user_id: uuid.UUID) -> None:
    if not auth.is_admin and auth.user_id != user_id:
        raise AppError("Not authorized to access this user", status_code=status.HTTP_403_FORBIDDEN, code="FORBIDDEN")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def register_user(
    session: AsyncSession,
    payload: RegisterUserRequest,
    settings: SystemSettings,
) -> UserResponse:
    """Self-registration: a pending employee with the default allowance, awaiting admin activation."""
    user = User(
        name=payload.name,
        email=payload.email,
        role=UserRole.EMPLOYEE.value,
        status=UserStatus.PENDING.value,
        holiday_allowance=settings.default_holiday_allowance,
    )
    user = await _insert_user(session, user, actor_id=user.id)
    logger.info("User %s registered, awaiting activation", user.id)
    return _build_user_response(user)


async def create_user(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateUserRequest,
    settings: SystemSettings,
) -> UserResponse:
    """Admin-created account, active immediately."""
    if payload.department_id is not None:
        await _ensure_department_exists(session, payload.department_id)

    allowance = payload.holiday_allowance
    user = User(
        name=payload.name,
        email=payload.email,
        role=payload.role.value,
        status=UserStatus.ACTIVE.value,
        department_id=payload.department_id,
        holiday_allowance=allowance if allowance is not None else settings.default_holiday_allowance,
    )
    user = await _insert_user(session, user, actor_id=auth.user_id)
    logger.info("User %s created by %s", user.id, auth.user_id)
    return _build_user_response(user)


async def get_user(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> UserResponse:
    _require_self_or_admin(auth, user_id)
    return _build_user_response(await get_user_or_404(session, user_id))


async def list_users(
    session: AsyncSession,
    status_filter: UserStatus | None = None,
    department_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> UserListResponse:
    """List users ordered by name."""
    filters = []
    if status_filter is not None:
        filters.append(col(User.status) == status_filter.value)
    if department_id is not None:
        filters.append(col(User.department_id) == department_id)

    count_result = await session.execute(select(func.count()).select_from(User).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(select(User).where(*filters).order_by(col(User.name)).offset(offset).limit(limit))
    return UserListResponse(
        items=[_build_user_response(u) for u in result.scalars().all()],
        total=total,
    )


async def update_user(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    payload: UpdateUserRequest,
) -> UserResponse:
    """Admin update. ``department_id: null`` in the body removes the department."""
    user = await get_user_or_404(session, user_id)
    before = model_to_audit_dict(user)
    changes = payload.model_dump(exclude_unset=True)
    # Only department_id may be explicitly cleared.
    changes = {k: v for k, v in changes.items() if v is not None or k == "department_id"}

    if changes.get("department_id") is not None:
        await _ensure_department_exists(session, changes["department_id"])

    for field, value in changes.items():
        setattr(user, field, value.value if isinstance(value, UserRole | UserStatus) else value)

    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_key=user.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(user),
    )
    await session.commit()
    await session.refresh(user)
    return _build_user_response(user)


async def activate_user(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> UserResponse:
    """Approve a pending registration."""
    user = await get_user_or_404(session, user_id)
    if user.status == UserStatus.ACTIVE:
        raise AppError("User is already active", status_code=status.HTTP_400_BAD_REQUEST, code="ALREADY_ACTIVE")

    before = model_to_audit_dict(user)
    user.status = UserStatus.ACTIVE.value
    await session.flush()
    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_key=user.id,
        action=AuditAction.ACTIVATE,
        before_json=before,
        after_json=model_to_audit_dict(user),
    )
    await session.commit()
    await session.refresh(user)
    logger.info("User %s activated by %s", user.id, auth.user_id)
    return _build_user_response(user)


async def apply_default_allowance(
    session: AsyncSession,
    auth: AuthContext,
    settings: SystemSettings,
) -> ApplyAllowanceResponse:
    """Reset every user's annual allowance to the configured default."""
    allowance = settings.default_holiday_allowance
    result = await session.execute(
        update(User).where(col(User.holiday_allowance) != allowance).values(holiday_allowance=allowance)
    )
    updated = result.rowcount or 0  # ty: ignore[unresolved-attribute]

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_key="*",
        action=AuditAction.UPDATE,
        after_json={"holiday_allowance": allowance, "updated": updated},
    )
    await session.commit()
    logger.info("Default allowance %d applied to %d users by %s", allowance, updated, auth.user_id)
    return ApplyAllowanceResponse(holiday_allowance=allowance, updated=updated)


def _summarize_type(
    holiday_type: HolidayType,
    requests: list[HolidayRequest],
    allowance: int | None,
    today: date,
) -> LeaveTypeSummary:
    of_type = [r for r in requests if r.type == holiday_type]
    approved = [r for r in of_type if r.status == HolidayStatus.APPROVED]
    pending = [r for r in of_type if r.status == HolidayStatus.PENDING]

    taken_days = sum(r.working_days for r in approved if r.end_date < today)
    used_days = sum(r.working_days for r in approved)
    pending_days = sum(r.working_days for r in pending)

    return LeaveTypeSummary(
        type=holiday_type,
        allowance=allowance,
        used_days=used_days,
        taken_days=taken_days,
        booked_days=used_days - taken_days,
        pending_days=pending_days,
        available_days=allowance - used_days - pending_days if allowance is not None else None,
        total_requests=len(of_type),
        approved_requests=len(approved),
        pending_requests=len(pending),
        rejected_requests=sum(1 for r in of_type if r.status == HolidayStatus.REJECTED),
    )


async def get_leave_summary(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    year: int,
    today: date,
) -> LeaveSummaryResponse:
    """Per-type day counts for requests starting in ``year``.

    Only vacation is capped by the allowance; ``available_days`` for vacation
    equals the remaining allowance the request validator enforces.
    """
    _require_self_or_admin(auth, user_id)
    user = await get_user_or_404(session, user_id)

    first_day, last_day = year_bounds(year)
    result = await session.execute(
        select(HolidayRequest).where(
            col(HolidayRequest.user_id) == user_id,
            col(HolidayRequest.start_date) >= first_day,
            col(HolidayRequest.start_date) <= last_day,
        )
    )
    requests = list(result.scalars().all())

    return LeaveSummaryResponse(
        user_id=user_id,
        year=year,
        vacation=_summarize_type(HolidayType.VACATION, requests, user.holiday_allowance, today),
        sick=_summarize_type(HolidayType.SICK, requests, None, today),
        personal=_summarize_type(HolidayType.PERSONAL, requests, None, today),
    )
