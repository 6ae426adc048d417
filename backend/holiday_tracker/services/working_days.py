"""Date utilities shared by the request validator: working-day counting and overlap detection.

Everything here works on ``datetime.date`` values only, never on timestamps,
so results do not shift with time zones or DST transitions.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from fastapi import status

from holiday_tracker.exceptions import AppError
from holiday_tracker.models.enums import HolidayStatus

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable

    from holiday_tracker.models.holiday import HolidayRequest

# Saturday and Sunday, as returned by date.weekday().
_WEEKEND = frozenset({5, 6})

BLOCKING_STATUSES = frozenset({HolidayStatus.PENDING, HolidayStatus.APPROVED})


def count_working_days(start: date, end: date) -> int:
    """Count Monday-Friday dates in the inclusive range [start, end].

    A weekend-only range yields 0; rejecting it is the caller's decision.
    Raises ``AppError`` (INVALID_RANGE) when start is after end.
    """
    if start > end:
        raise AppError(
            "Start date cannot be after end date",
            status_code=status.HTTP_400_BAD_REQUEST,
            code="INVALID_RANGE",
        )

    # Whole weeks contribute five working days each; walk only the remainder.
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    working_days = full_weeks * 5

    current = start + timedelta(days=full_weeks * 7)
    for _ in range(remainder):
        if current.weekday() not in _WEEKEND:
            working_days += 1
        current += timedelta(days=1)

    return working_days


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Return True when two inclusive date ranges share at least one day.

    Covers all four cases: A starts during B, A ends during B, A contains B,
    and B contains A.
    """
    return a_start <= b_end and b_start <= a_end


def has_overlap(
    user_id: uuid.UUID,
    start: date,
    end: date,
    existing: Iterable[HolidayRequest],
    exclude_request_id: uuid.UUID | None = None,
) -> bool:
    """Return True if the range collides with one of the user's pending or approved requests.

    Rejected and cancelled requests never block. ``exclude_request_id`` drops
    the request being edited so it cannot collide with itself.
    """
    return find_overlapping(user_id, start, end, existing, exclude_request_id) is not None


def find_overlapping(
    user_id: uuid.UUID,
    start: date,
    end: date,
    existing: Iterable[HolidayRequest],
    exclude_request_id: uuid.UUID | None = None,
) -> HolidayRequest | None:
    """Return the first blocking request that overlaps the range, if any."""
    for request in existing:
        if request.user_id != user_id:
            continue
        if exclude_request_id is not None and request.id == exclude_request_id:
            continue
        if request.status not in BLOCKING_STATUSES:
            continue
        if ranges_overlap(start, end, request.start_date, request.end_date):
            return request
    return None


def add_one_year(day: date) -> date:
    """Return the same calendar day one year later; Feb 29 maps to Feb 28."""
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        return day.replace(year=day.year + 1, day=28)


def year_bounds(year: int) -> tuple[date, date]:
    """First and last day of a calendar year."""
    return date(year, 1, 1), date(year, 12, 31)
