"""Unit tests for request payload and query schemas."""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from holiday_tracker.models.enums import DecisionAction, HolidayType, UserRole
from holiday_tracker.schemas.auth import AuthContext
from holiday_tracker.schemas.holiday import (
    CreateHolidayPayload,
    DecisionPayload,
    EditHolidayPayload,
    HolidayListQuery,
)
from holiday_tracker.schemas.settings import SystemSettings, UpdateSettingsRequest
from holiday_tracker.schemas.user import CreateUserRequest, RegisterUserRequest, UpdateUserRequest

# ---------------------------------------------------------------------------
# Holiday payloads
# ---------------------------------------------------------------------------


def test_create_payload_defaults_to_vacation() -> None:
    payload = CreateHolidayPayload(start_date="2025-08-11", end_date="2025-08-15")
    assert payload.type == HolidayType.VACATION
    assert payload.notes is None


def test_create_payload_keeps_impossible_date_for_validator() -> None:
    payload = CreateHolidayPayload(start_date="2025-02-30", end_date="2025-03-01")
    assert payload.start_date == "2025-02-30"


def test_create_payload_rejects_wrong_format() -> None:
    with pytest.raises(ValidationError):
        CreateHolidayPayload(start_date="2025/08/11", end_date="2025-08-15")


def test_create_payload_rejects_long_notes() -> None:
    with pytest.raises(ValidationError):
        CreateHolidayPayload(start_date="2025-08-11", end_date="2025-08-15", notes="x" * 501)


def test_create_payload_rejects_unknown_type() -> None:
    with pytest.raises(ValidationError):
        CreateHolidayPayload(start_date="2025-08-11", end_date="2025-08-15", type="sabbatical")  # type: ignore[arg-type]


def test_edit_payload_tracks_explicit_fields() -> None:
    payload = EditHolidayPayload(notes=None)
    assert payload.model_fields_set == {"notes"}


def test_decision_payload() -> None:
    payload = DecisionPayload(action=DecisionAction.REJECT, rejection_reason="Busy week")
    assert payload.action == DecisionAction.REJECT


def test_list_query_defaults() -> None:
    query = HolidayListQuery()
    assert query.sort_by == "start_date"
    assert query.sort_order == "desc"
    assert query.limit == 50


@pytest.mark.parametrize("month", ["2025-00", "2025-13", "2025-1", "August"])
def test_list_query_rejects_bad_month(month: str) -> None:
    with pytest.raises(ValidationError):
        HolidayListQuery(month=month)


def test_list_query_limit_bounds() -> None:
    with pytest.raises(ValidationError):
        HolidayListQuery(limit=101)


# ---------------------------------------------------------------------------
# User payloads
# ---------------------------------------------------------------------------


def test_register_requires_valid_email() -> None:
    with pytest.raises(ValidationError):
        RegisterUserRequest(name="Nina", email="nina-at-example")


def test_create_user_defaults() -> None:
    request = CreateUserRequest(name="Carl", email="carl@example.com")
    assert request.holiday_allowance is None
    assert request.department_id is None


def test_update_user_rejects_negative_allowance() -> None:
    with pytest.raises(ValidationError):
        UpdateUserRequest(holiday_allowance=-1)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def test_system_settings_defaults() -> None:
    settings = SystemSettings()
    assert settings.visibility.visibility_mode == "all_see_all"
    assert settings.default_holiday_allowance == 20


def test_update_settings_rejects_unknown_mode() -> None:
    with pytest.raises(ValidationError):
        UpdateSettingsRequest(visibility_mode="everyone")  # type: ignore[arg-type]


@pytest.mark.parametrize("allowance", [0, 51])
def test_update_settings_allowance_bounds(allowance: int) -> None:
    with pytest.raises(ValidationError):
        UpdateSettingsRequest(default_holiday_allowance=allowance)


# ---------------------------------------------------------------------------
# Auth context
# ---------------------------------------------------------------------------


def test_auth_context_admin_flag() -> None:
    assert AuthContext(user_id=uuid.uuid4(), role=UserRole.ADMIN).is_admin
    assert not AuthContext(user_id=uuid.uuid4()).is_admin
