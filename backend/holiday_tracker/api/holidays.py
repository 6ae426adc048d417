# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Literal

from fastapi import APIRouter, Query, status

from holiday_tracker.api.deps import AdminDep, AuthDep, SystemSettingsDep, TodayDep
from holiday_tracker.db import SessionDep
from holiday_tracker.models.enums import HolidayStatus, HolidayType, ViewScope
from holiday_tracker.schemas.holiday import (
    CreateHolidayPayload,
    DecisionPayload,
    EditHolidayPayload,
    HolidayListQuery,
    HolidayListResponse,
    HolidayResponse,
)
from holiday_tracker.services import holiday as holiday_service

holidays_router = APIRouter(
    prefix="/holidays",
    tags=["holidays"],
)


@holidays_router.post("", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def create_holiday_request(
    payload: CreateHolidayPayload,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> HolidayResponse:
    """Submit a new holiday request for the caller."""
    return await holiday_service.create_holiday_request(session, auth, payload, today)


@holidays_router.get("", response_model=HolidayListResponse)
async def list_holidays(
    session: SessionDep,
    auth: AuthDep,
    settings: SystemSettingsDep,
    scope: ViewScope | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    year: int | None = Query(default=None, ge=1970, le=9999),
    month: str | None = Query(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    status_filter: HolidayStatus | None = Query(default=None, alias="status"),
    type_filter: HolidayType | None = Query(default=None, alias="type"),
    user_id: uuid.UUID | None = Query(default=None),
    department_id: uuid.UUID | None = Query(default=None),
    sort_by: Literal["start_date", "end_date", "created_at", "status"] = Query(default="start_date"),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HolidayListResponse:
    """List holiday requests visible to the caller, with status and type counts."""
    query = HolidayListQuery(
        scope=scope,
        start_date=start_date,
        end_date=end_date,
        year=year,
        month=month,
        status=status_filter,
        type=type_filter,
        user_id=user_id,
        department_id=department_id,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=offset,
        limit=limit,
    )
    return await holiday_service.list_holidays(session, auth, query, settings.visibility)


@holidays_router.get("/{holiday_id}", response_model=HolidayResponse)
async def get_holiday_request(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    settings: SystemSettingsDep,
) -> HolidayResponse:
    """Get a single holiday request, if visible to the caller."""
    return await holiday_service.get_holiday_request(session, auth, holiday_id, settings.visibility)


@holidays_router.put("/{holiday_id}", response_model=HolidayResponse)
async def edit_holiday_request(
    holiday_id: uuid.UUID,
    payload: EditHolidayPayload,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> HolidayResponse:
    """Edit a pending or rejected request."""
    return await holiday_service.edit_holiday_request(session, auth, holiday_id, payload, today)


@holidays_router.post("/{holiday_id}/decision", response_model=HolidayResponse)
async def decide_holiday_request(
    holiday_id: uuid.UUID,
    payload: DecisionPayload,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> HolidayResponse:
    """Approve or reject a pending request (admin only)."""
    return await holiday_service.decide_holiday_request(session, auth, holiday_id, payload, today)


@holidays_router.post("/{holiday_id}/cancel", response_model=HolidayResponse)
async def cancel_holiday_request(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> HolidayResponse:
    """Cancel a request (owner or admin)."""
    return await holiday_service.cancel_holiday_request(session, auth, holiday_id)


@holidays_router.delete("/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday_request(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> None:
    """Delete one of the caller's own requests that has not been approved."""
    await holiday_service.delete_holiday_request(session, auth, holiday_id)
