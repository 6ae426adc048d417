"""Holiday request validation and the request status state machine.

Nothing in this module touches the database. Callers load the owner's
allowance and existing requests, pass today's date explicitly, and get back
either an accepted value or a ``Rejection`` describing the first rule that
failed.
"""

# ruff: noqa: TC003
from __future__ import annotations

import enum
import re
import uuid
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from holiday_tracker.models.enums import DecisionAction, HolidayEvent, HolidayStatus, HolidayType
from holiday_tracker.models.holiday import HolidayRequest
from holiday_tracker.schemas.auth import AuthContext
from holiday_tracker.services.working_days import (
    BLOCKING_STATUSES,
    add_one_year,
    count_working_days,
    find_overlapping,
)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class RejectionCategory(enum.StrEnum):
    """Who has to act on a rejection: fix the input, change the plan, or get permission."""

    INPUT = "input"
    BUSINESS = "business"
    AUTHORIZATION = "authorization"


class RejectionCode(enum.StrEnum):
    INVALID_DATE = "INVALID_DATE"
    INVALID_RANGE = "INVALID_RANGE"
    PAST_DATE = "PAST_DATE"
    TOO_FAR_IN_FUTURE = "TOO_FAR_IN_FUTURE"
    ZERO_DURATION = "ZERO_DURATION"
    DATE_OVERLAP = "DATE_OVERLAP"
    INSUFFICIENT_ALLOWANCE = "INSUFFICIENT_ALLOWANCE"
    PAST_DATE_EDIT = "PAST_DATE_EDIT"
    APPROVED_NOT_EDITABLE = "APPROVED_NOT_EDITABLE"
    CANCELLED_NOT_EDITABLE = "CANCELLED_NOT_EDITABLE"
    NOT_FOUND = "NOT_FOUND"
    NOT_PENDING = "NOT_PENDING"
    SELF_APPROVAL = "SELF_APPROVAL"
    PAST_DATE_APPROVAL = "PAST_DATE_APPROVAL"
    MISSING_REJECTION_REASON = "MISSING_REJECTION_REASON"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    FORBIDDEN = "FORBIDDEN"


class Rejection(BaseModel):
    """A failed rule, with a machine-readable code and a message for humans."""

    model_config = ConfigDict(frozen=True)

    code: RejectionCode
    message: str
    category: RejectionCategory = RejectionCategory.BUSINESS
    field: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class HolidayProposal(BaseModel):
    """Requested values for a new request, or the merged values of an edit."""

    start_date: str | date
    end_date: str | date
    type: HolidayType = HolidayType.VACATION
    notes: str | None = None


class AcceptedHoliday(BaseModel):
    """Validated values ready to be written to a holiday request."""

    start_date: date
    end_date: date
    type: HolidayType
    notes: str | None
    working_days: int
    transition: Transition


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class Transition(BaseModel):
    """Target status of a transition and the metadata changes that go with it."""

    model_config = ConfigDict(frozen=True)

    target: HolidayStatus
    clear_approval: bool = False
    stamp_decision: bool = False


TRANSITIONS: dict[tuple[HolidayStatus | None, HolidayEvent], Transition] = {
    (None, HolidayEvent.SUBMIT): Transition(target=HolidayStatus.PENDING),
    (HolidayStatus.PENDING, HolidayEvent.EDIT): Transition(target=HolidayStatus.PENDING),
    (HolidayStatus.REJECTED, HolidayEvent.EDIT): Transition(target=HolidayStatus.PENDING, clear_approval=True),
    (HolidayStatus.PENDING, HolidayEvent.APPROVE): Transition(target=HolidayStatus.APPROVED, stamp_decision=True),
    (HolidayStatus.PENDING, HolidayEvent.REJECT): Transition(target=HolidayStatus.REJECTED, stamp_decision=True),
    (HolidayStatus.PENDING, HolidayEvent.CANCEL): Transition(target=HolidayStatus.CANCELLED),
    (HolidayStatus.APPROVED, HolidayEvent.CANCEL): Transition(target=HolidayStatus.CANCELLED),
    (HolidayStatus.REJECTED, HolidayEvent.CANCEL): Transition(target=HolidayStatus.CANCELLED),
}


def resolve_transition(current: HolidayStatus | str | None, event: HolidayEvent) -> Transition | None:
    """Look up the transition for (status, event); None when the move is not allowed."""
    key_status = HolidayStatus(current) if current is not None else None
    return TRANSITIONS.get((key_status, event))


def apply_transition(
    request: HolidayRequest,
    transition: Transition,
    *,
    actor_id: uuid.UUID | None = None,
    now: datetime | None = None,
    rejection_reason: str | None = None,
) -> None:
    """Move a request to the transition's target status and apply its side effects."""
    request.status = transition.target.value
    if transition.clear_approval:
        request.approved_by = None
        request.approved_at = None
        request.rejection_reason = None
    if transition.stamp_decision:
        request.approved_by = actor_id
        request.approved_at = now
        request.rejection_reason = rejection_reason if transition.target == HolidayStatus.REJECTED else None


# ---------------------------------------------------------------------------
# Allowance accounting
# ---------------------------------------------------------------------------


def vacation_days_used(
    owner_id: uuid.UUID,
    existing: Iterable[HolidayRequest],
    year: int,
    exclude_request_id: uuid.UUID | None = None,
) -> int:
    """Working days reserved against the vacation allowance in a calendar year.

    Pending requests count as well as approved ones. A request belongs to the
    year its start date falls in.
    """
    return sum(
        request.working_days
        for request in existing
        if request.user_id == owner_id
        and request.type == HolidayType.VACATION
        and request.status in BLOCKING_STATUSES
        and request.start_date.year == year
        and request.id != exclude_request_id
    )


def remaining_allowance(
    owner_id: uuid.UUID,
    holiday_allowance: int,
    existing: Iterable[HolidayRequest],
    year: int,
    exclude_request_id: uuid.UUID | None = None,
) -> int:
    return holiday_allowance - vacation_days_used(owner_id, existing, year, exclude_request_id)


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def _parse_date(value: str | date, field: str) -> date | Rejection:
    if isinstance(value, date):
        return value
    if _ISO_DATE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    return Rejection(
        code=RejectionCode.INVALID_DATE,
        message=f"{field} must be a valid date in YYYY-MM-DD format",
        category=RejectionCategory.INPUT,
        field=field,
        details={"value": value},
    )


def _not_editable(status: str) -> Rejection:
    if status == HolidayStatus.APPROVED:
        return Rejection(
            code=RejectionCode.APPROVED_NOT_EDITABLE,
            message="Approved requests cannot be modified. Contact an administrator.",
        )
    return Rejection(
        code=RejectionCode.CANCELLED_NOT_EDITABLE,
        message="Cancelled requests cannot be modified",
    )


def validate_holiday_request(
    proposal: HolidayProposal,
    *,
    owner_id: uuid.UUID,
    holiday_allowance: int,
    existing: Iterable[HolidayRequest],
    today: date,
    editing: HolidayRequest | None = None,
) -> AcceptedHoliday | Rejection:
    """Validate a new request or an edit, stopping at the first failing rule.

    Rules, in order: parseable dates, start <= end, start not in the past (PAST_DATE_EDIT on an edit),
    start at most one year ahead, at least one working day, no overlap with
    the owner's pending/approved requests (the edited one excluded), and for
    vacation enough allowance left in the start date's calendar year.
    """
    existing = list(existing)
    event = HolidayEvent.EDIT if editing is not None else HolidayEvent.SUBMIT
    current_status = editing.status if editing is not None else None
    transition = resolve_transition(current_status, event)
    if transition is None:
        return _not_editable(str(current_status))
    exclude_id = editing.id if editing is not None else None

    start = _parse_date(proposal.start_date, "start_date")
    if isinstance(start, Rejection):
        return start
    end = _parse_date(proposal.end_date, "end_date")
    if isinstance(end, Rejection):
        return end

    if start > end:
        return Rejection(
            code=RejectionCode.INVALID_RANGE,
            message="Start date cannot be after end date",
            details={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )

    if start < today:
        return Rejection(
            code=RejectionCode.PAST_DATE_EDIT if editing is not None else RejectionCode.PAST_DATE,
            message="Start date cannot be in the past",
            field="start_date",
            details={"start_date": start.isoformat(), "today": today.isoformat()},
        )

    latest_start = add_one_year(today)
    if start > latest_start:
        return Rejection(
            code=RejectionCode.TOO_FAR_IN_FUTURE,
            message="Requests cannot be made more than one year in advance",
            field="start_date",
            details={"start_date": start.isoformat(), "latest_start_date": latest_start.isoformat()},
        )

    working_days = count_working_days(start, end)
    if working_days == 0:
        return Rejection(
            code=RejectionCode.ZERO_DURATION,
            message="The request must include at least one working day",
        )

    conflict = find_overlapping(owner_id, start, end, existing, exclude_request_id=exclude_id)
    if conflict is not None:
        return Rejection(
            code=RejectionCode.DATE_OVERLAP,
            message="The selected dates overlap an existing request",
            details={
                "conflicting_request_id": str(conflict.id),
                "conflicting_start_date": conflict.start_date.isoformat(),
                "conflicting_end_date": conflict.end_date.isoformat(),
            },
        )

    if proposal.type == HolidayType.VACATION:
        used = vacation_days_used(owner_id, existing, start.year, exclude_request_id=exclude_id)
        available = holiday_allowance - used
        if working_days > available:
            return Rejection(
                code=RejectionCode.INSUFFICIENT_ALLOWANCE,
                message=f"Not enough vacation days left. Available: {available}, requested: {working_days}",
                details={
                    "requested": working_days,
                    "available": available,
                    "total": holiday_allowance,
                    "used": used,
                    "year": start.year,
                },
            )

    return AcceptedHoliday(
        start_date=start,
        end_date=end,
        type=proposal.type,
        notes=proposal.notes,
        working_days=working_days,
        transition=transition,
    )


def check_editable(existing: HolidayRequest, viewer: AuthContext, today: date) -> Rejection | None:
    """Guard run before validating an edit: ownership, status and start date of the stored request."""
    if not viewer.is_admin and existing.user_id != viewer.user_id:
        return Rejection(
            code=RejectionCode.FORBIDDEN,
            message="Not authorized to modify this request",
            category=RejectionCategory.AUTHORIZATION,
        )
    if resolve_transition(existing.status, HolidayEvent.EDIT) is None:
        return _not_editable(existing.status)
    if existing.start_date < today:
        return Rejection(
            code=RejectionCode.PAST_DATE_EDIT,
            message="Requests for dates that have already started cannot be modified",
            details={"start_date": existing.start_date.isoformat()},
        )
    return None


# ---------------------------------------------------------------------------
# Decisions, cancellation, deletion
# ---------------------------------------------------------------------------


def validate_decision(
    request: HolidayRequest,
    viewer: AuthContext,
    action: DecisionAction,
    rejection_reason: str | None,
    today: date,
) -> Transition | Rejection:
    """Check that an admin may approve or reject this request now."""
    if not viewer.is_admin:
        return Rejection(
            code=RejectionCode.FORBIDDEN,
            message="Admin access required",
            category=RejectionCategory.AUTHORIZATION,
        )
    if action == DecisionAction.REJECT and not (rejection_reason and rejection_reason.strip()):
        return Rejection(
            code=RejectionCode.MISSING_REJECTION_REASON,
            message="A rejection reason is required",
            category=RejectionCategory.INPUT,
            field="rejection_reason",
        )

    event = HolidayEvent.APPROVE if action == DecisionAction.APPROVE else HolidayEvent.REJECT
    transition = resolve_transition(request.status, event)
    if transition is None:
        return Rejection(
            code=RejectionCode.NOT_PENDING,
            message="Only pending requests can be approved or rejected",
            details={"current_status": str(request.status)},
        )
    if request.user_id == viewer.user_id:
        return Rejection(
            code=RejectionCode.SELF_APPROVAL,
            message="You cannot approve or reject your own requests",
            category=RejectionCategory.AUTHORIZATION,
        )
    if action == DecisionAction.APPROVE and request.start_date < today:
        return Rejection(
            code=RejectionCode.PAST_DATE_APPROVAL,
            message="Requests for past dates cannot be approved",
            details={"start_date": request.start_date.isoformat()},
        )
    return transition


def validate_cancellation(request: HolidayRequest, viewer: AuthContext) -> Transition | Rejection:
    """The owner or an admin may cancel any request that is not already cancelled."""
    if not viewer.is_admin and request.user_id != viewer.user_id:
        return Rejection(
            code=RejectionCode.FORBIDDEN,
            message="Not authorized to cancel this request",
            category=RejectionCategory.AUTHORIZATION,
        )
    transition = resolve_transition(request.status, HolidayEvent.CANCEL)
    if transition is None:
        return Rejection(code=RejectionCode.ALREADY_CANCELLED, message="Request is already cancelled")
    return transition


def validate_deletion(request: HolidayRequest, viewer: AuthContext) -> Rejection | None:
    """Only the owner may delete a request, and never an approved one."""
    if request.user_id != viewer.user_id:
        return Rejection(
            code=RejectionCode.FORBIDDEN,
            message="Not authorized to delete this request",
            category=RejectionCategory.AUTHORIZATION,
        )
    if request.status == HolidayStatus.APPROVED:
        return _not_editable(request.status)
    return None


AcceptedHoliday.model_rebuild()
