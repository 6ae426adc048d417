# ruff: noqa: TC003
from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any, NoReturn

from fastapi import status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import aliased
from sqlmodel import col

from holiday_tracker.exceptions import AppError, RejectionError
from holiday_tracker.models.base import utcnow
from holiday_tracker.models.enums import AuditAction, AuditEntityType, DecisionAction, HolidayStatus, ViewScope
from holiday_tracker.models.holiday import HolidayRequest
from holiday_tracker.models.user import Department, User
from holiday_tracker.schemas.holiday import HolidayListResponse, HolidayResponse, StatusCounts, TypeCounts
from holiday_tracker.services.audit import model_to_audit_dict, write_audit_log
from holiday_tracker.services.validation import (
    HolidayProposal,
    Rejection,
    apply_transition,
    check_editable,
    validate_cancellation,
    validate_decision,
    validate_deletion,
    validate_holiday_request,
)
from holiday_tracker.services.visibility import EffectiveScope, project_holiday, resolve_scope
from holiday_tracker.services.working_days import BLOCKING_STATUSES, year_bounds

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from holiday_tracker.schemas.auth import AuthContext
    from holiday_tracker.schemas.holiday import (
        CreateHolidayPayload,
        DecisionPayload,
        EditHolidayPayload,
        HolidayListQuery,
    )
    from holiday_tracker.schemas.settings import VisibilitySettings

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "start_date": col(HolidayRequest.start_date),
    "end_date": col(HolidayRequest.end_date),
    "created_at": col(HolidayRequest.created_at),
    "status": col(HolidayRequest.status),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _raise_rejection(
    rejection: Rejection, action: str, holiday_id: uuid.UUID | None, actor_id: uuid.UUID
) -> NoReturn:
    logger.info(
        "Holiday %s rejected for %s (request=%s): %s",
        action,
        actor_id,
        holiday_id,
        rejection.code.value,
    )
    raise RejectionError.from_rejection(rejection)


async def _get_holiday_or_404(session: AsyncSession, holiday_id: uuid.UUID) -> HolidayRequest:
    """Fetch a holiday request by ID. Raises 404 if not found."""
    holiday = await session.get(HolidayRequest, holiday_id)
    if holiday is None:
        raise AppError("Holiday request not found", status_code=status.HTTP_404_NOT_FOUND, code="NOT_FOUND")
    return holiday


async def _lock_owner(session: AsyncSession, user_id: uuid.UUID) -> User:
    """Load the owner row with SELECT ... FOR UPDATE.

    Concurrent submissions for the same owner serialize on this lock, so the
    overlap and allowance checks always see the other transaction's write.
    """
    result = await session.execute(select(User).where(col(User.id) == user_id).with_for_update())
    owner = result.scalar_one_or_none()
    if owner is None:
        raise AppError("User not found", status_code=status.HTTP_404_NOT_FOUND, code="NOT_FOUND")
    return owner


async def _load_blocking_requests(session: AsyncSession, user_id: uuid.UUID) -> list[HolidayRequest]:
    """The owner's pending and approved requests: the only ones overlap and allowance rules look at."""
    result = await session.execute(
        select(HolidayRequest).where(
            col(HolidayRequest.user_id) == user_id,
            col(HolidayRequest.status).in_([s.value for s in BLOCKING_STATUSES]),
        )
    )
    return list(result.scalars().all())


async def _build_holiday_response(
    session: AsyncSession,
    holiday: HolidayRequest,
    viewer: AuthContext,
) -> HolidayResponse:
    owner = await session.get(User, holiday.user_id)
    department = None
    if owner is not None and owner.department_id is not None:
        department = await session.get(Department, owner.department_id)
    approver = await session.get(User, holiday.approved_by) if holiday.approved_by is not None else None
    return project_holiday(holiday, viewer, owner=owner, department=department, approver=approver)


def _scope_conditions(scope: EffectiveScope) -> list[Any]:
    """SQL form of ``EffectiveScope.admits``. Requires User joined on the owner."""
    conditions: list[Any] = []
    if scope.owner_id is not None:
        conditions.append(col(HolidayRequest.user_id) == scope.owner_id)
    if scope.department_id is not None:
        conditions.append(col(User.department_id) == scope.department_id)
    if scope.approved_only_for_others:
        conditions.append(
            or_(
                col(HolidayRequest.user_id) == scope.viewer_id,
                col(HolidayRequest.status) == HolidayStatus.APPROVED.value,
            )
        )
    return conditions


def _filter_conditions(query: HolidayListQuery, viewer: AuthContext) -> list[Any]:
    conditions: list[Any] = []

    # Narrowing to another user or department is an admin tool.
    if viewer.is_admin and query.user_id is not None:
        conditions.append(col(HolidayRequest.user_id) == query.user_id)
    if viewer.is_admin and query.department_id is not None:
        conditions.append(col(User.department_id) == query.department_id)

    if query.status is not None:
        conditions.append(col(HolidayRequest.status) == query.status.value)
    if query.type is not None:
        conditions.append(col(HolidayRequest.type) == query.type.value)
    if query.start_date is not None:
        conditions.append(col(HolidayRequest.start_date) >= query.start_date)
    if query.end_date is not None:
        conditions.append(col(HolidayRequest.end_date) <= query.end_date)
    if query.year is not None:
        first_day, last_day = year_bounds(query.year)
        conditions.append(col(HolidayRequest.start_date).between(first_day, last_day))
    if query.month is not None:
        year, month = (int(part) for part in query.month.split("-"))
        last = calendar.monthrange(year, month)[1]
        conditions.append(col(HolidayRequest.start_date).between(date(year, month, 1), date(year, month, last)))
    return conditions


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_holiday_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayPayload,
    today: date,
) -> HolidayResponse:
    """Validate and persist a new request for the caller.

    Flow:
    1. Lock the owner row (serializes concurrent submissions)
    2. Load the owner's pending/approved requests
    3. Run the request validator
    4. Insert the request as pending
    5. Audit log and commit
    """
    owner = await _lock_owner(session, auth.user_id)
    existing = await _load_blocking_requests(session, owner.id)

    result = validate_holiday_request(
        HolidayProposal(
            start_date=payload.start_date,
            end_date=payload.end_date,
            type=payload.type,
            notes=payload.notes,
        ),
        owner_id=owner.id,
        holiday_allowance=owner.holiday_allowance,
        existing=existing,
        today=today,
    )
    if isinstance(result, Rejection):
        _raise_rejection(result, "create", None, auth.user_id)

    holiday = HolidayRequest(
        user_id=owner.id,
        start_date=result.start_date,
        end_date=result.end_date,
        type=result.type.value,
        notes=result.notes,
        working_days=result.working_days,
    )
    apply_transition(holiday, result.transition)
    session.add(holiday)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_key=holiday.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(holiday),
    )
    await session.commit()
    await session.refresh(holiday)

    logger.info(
        "Holiday request %s created by %s: %s..%s %s (%d working days)",
        holiday.id,
        owner.id,
        holiday.start_date,
        holiday.end_date,
        holiday.type,
        holiday.working_days,
    )
    return await _build_holiday_response(session, holiday, auth)


async def edit_holiday_request(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
    payload: EditHolidayPayload,
    today: date,
) -> HolidayResponse:
    """Edit a pending or rejected request. Editing a rejected request resubmits it."""
    holiday = await _get_holiday_or_404(session, holiday_id)

    guard = check_editable(holiday, auth, today)
    if guard is not None:
        _raise_rejection(guard, "edit", holiday.id, auth.user_id)

    owner = await _lock_owner(session, holiday.user_id)
    existing = await _load_blocking_requests(session, owner.id)

    result = validate_holiday_request(
        HolidayProposal(
            start_date=payload.start_date if payload.start_date is not None else holiday.start_date,
            end_date=payload.end_date if payload.end_date is not None else holiday.end_date,
            type=payload.type if payload.type is not None else holiday.type,
            notes=payload.notes if "notes" in payload.model_fields_set else holiday.notes,
        ),
        owner_id=owner.id,
        holiday_allowance=owner.holiday_allowance,
        existing=existing,
        today=today,
        editing=holiday,
    )
    if isinstance(result, Rejection):
        _raise_rejection(result, "edit", holiday.id, auth.user_id)

    before = model_to_audit_dict(holiday)
    holiday.start_date = result.start_date
    holiday.end_date = result.end_date
    holiday.type = result.type.value
    holiday.notes = result.notes
    holiday.working_days = result.working_days
    apply_transition(holiday, result.transition)
    holiday.updated_at = utcnow()
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_key=holiday.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(holiday),
    )
    await session.commit()
    await session.refresh(holiday)

    logger.info("Holiday request %s edited by %s", holiday.id, auth.user_id)
    return await _build_holiday_response(session, holiday, auth)


async def decide_holiday_request(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
    payload: DecisionPayload,
    today: date,
) -> HolidayResponse:
    """Approve or reject a pending request, stamping the deciding admin."""
    holiday = await _get_holiday_or_404(session, holiday_id)

    result = validate_decision(holiday, auth, payload.action, payload.rejection_reason, today)
    if isinstance(result, Rejection):
        _raise_rejection(result, payload.action.value, holiday.id, auth.user_id)

    before = model_to_audit_dict(holiday)
    now = utcnow()
    reason = payload.rejection_reason.strip() if payload.rejection_reason else None
    apply_transition(holiday, result, actor_id=auth.user_id, now=now, rejection_reason=reason)
    holiday.updated_at = now
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_key=holiday.id,
        action=AuditAction.APPROVE if payload.action == DecisionAction.APPROVE else AuditAction.REJECT,
        before_json=before,
        after_json=model_to_audit_dict(holiday),
    )
    await session.commit()
    await session.refresh(holiday)

    logger.info("Holiday request %s %sd by %s", holiday.id, payload.action.value, auth.user_id)
    return await _build_holiday_response(session, holiday, auth)


async def cancel_holiday_request(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> HolidayResponse:
    """Cancel a request. The owner or an admin can cancel."""
    holiday = await _get_holiday_or_404(session, holiday_id)

    result = validate_cancellation(holiday, auth)
    if isinstance(result, Rejection):
        _raise_rejection(result, "cancel", holiday.id, auth.user_id)

    before = model_to_audit_dict(holiday)
    apply_transition(holiday, result)
    holiday.updated_at = utcnow()
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_key=holiday.id,
        action=AuditAction.CANCEL,
        before_json=before,
        after_json=model_to_audit_dict(holiday),
    )
    await session.commit()
    await session.refresh(holiday)

    logger.info("Holiday request %s cancelled by %s", holiday.id, auth.user_id)
    return await _build_holiday_response(session, holiday, auth)


async def delete_holiday_request(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Delete one of the caller's own requests that has not been approved."""
    holiday = await _get_holiday_or_404(session, holiday_id)

    rejection = validate_deletion(holiday, auth)
    if rejection is not None:
        _raise_rejection(rejection, "delete", holiday.id, auth.user_id)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_key=holiday.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )
    await session.delete(holiday)
    await session.commit()

    logger.info("Holiday request %s deleted by %s", holiday_id, auth.user_id)


async def get_holiday_request(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
    settings: VisibilitySettings,
) -> HolidayResponse:
    """Get a single request, as a 404 when the widest scope the caller may request does not admit it."""
    holiday = await _get_holiday_or_404(session, holiday_id)
    owner = await session.get(User, holiday.user_id)
    owner_department_id = owner.department_id if owner is not None else None

    scope = resolve_scope(auth, ViewScope.ALL, settings)
    if not scope.admits(holiday.user_id, owner_department_id, holiday.status):
        raise AppError("Holiday request not found", status_code=status.HTTP_404_NOT_FOUND, code="NOT_FOUND")
    return await _build_holiday_response(session, holiday, auth)


async def list_holidays(
    session: AsyncSession,
    auth: AuthContext,
    query: HolidayListQuery,
    settings: VisibilitySettings,
) -> HolidayListResponse:
    """List the requests visible to the caller, with counts over the whole filtered set.

    The visibility filter is resolved first, then the caller's filters are
    added on top, then each row is projected for the caller's role.
    """
    scope = resolve_scope(auth, query.scope, settings)
    conditions = _scope_conditions(scope) + _filter_conditions(query, auth)

    owner_join = col(User.id) == col(HolidayRequest.user_id)

    count_result = await session.execute(
        select(func.count()).select_from(HolidayRequest).join(User, owner_join).where(*conditions)
    )
    total = count_result.scalar_one()

    status_rows = await session.execute(
        select(col(HolidayRequest.status), func.count())
        .select_from(HolidayRequest)
        .join(User, owner_join)
        .where(*conditions)
        .group_by(col(HolidayRequest.status))
    )
    type_rows = await session.execute(
        select(col(HolidayRequest.type), func.count())
        .select_from(HolidayRequest)
        .join(User, owner_join)
        .where(*conditions)
        .group_by(col(HolidayRequest.type))
    )

    approver = aliased(User, name="approver")
    sort_column = _SORT_COLUMNS[query.sort_by]
    order = sort_column.asc() if query.sort_order == "asc" else sort_column.desc()
    result = await session.execute(
        select(HolidayRequest, User, Department, approver)
        .join(User, owner_join)
        .outerjoin(Department, col(Department.id) == col(User.department_id))
        .outerjoin(approver, approver.id == col(HolidayRequest.approved_by))
        .where(*conditions)
        .order_by(order, col(HolidayRequest.created_at).desc())
        .offset(query.offset)
        .limit(query.limit)
    )
    items = [
        project_holiday(holiday, auth, owner=owner, department=department, approver=approver_user)
        for holiday, owner, department, approver_user in result.all()
    ]

    logger.debug(
        "Holidays listed by %s: scope=%s total=%d returned=%d",
        auth.user_id,
        scope.scope.value,
        total,
        len(items),
    )
    return HolidayListResponse(
        items=items,
        total=total,
        status_counts=StatusCounts(**{str(s): n for s, n in status_rows.all()}),
        type_counts=TypeCounts(**{str(t): n for t, n in type_rows.all()}),
        scope=scope.scope,
    )
