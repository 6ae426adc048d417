"""Tests for visibility scope resolution and per-role projection."""

from __future__ import annotations

import uuid
from datetime import date

import pytest

from holiday_tracker.models.enums import HolidayStatus, HolidayType, UserRole, ViewScope, VisibilityMode
from holiday_tracker.models.holiday import HolidayRequest
from holiday_tracker.models.user import Department, User
from holiday_tracker.schemas.auth import AuthContext
from holiday_tracker.schemas.settings import VisibilitySettings
from holiday_tracker.services.visibility import project_holiday, resolve_scope

ENGINEERING_ID = uuid.uuid4()
SALES_ID = uuid.uuid4()

EMPLOYEE = AuthContext(user_id=uuid.uuid4(), department_id=ENGINEERING_ID)
NO_DEPARTMENT = AuthContext(user_id=uuid.uuid4())
ADMIN = AuthContext(user_id=uuid.uuid4(), role=UserRole.ADMIN, department_id=ENGINEERING_ID)

ALL_SEE_ALL = VisibilitySettings(visibility_mode=VisibilityMode.ALL_SEE_ALL)
DEPARTMENT_ONLY = VisibilitySettings(visibility_mode=VisibilityMode.DEPARTMENT_ONLY)
ADMIN_ONLY = VisibilitySettings(visibility_mode=VisibilityMode.ADMIN_ONLY)


def _request(owner_id: uuid.UUID, status: HolidayStatus = HolidayStatus.APPROVED) -> HolidayRequest:
    return HolidayRequest(
        user_id=owner_id,
        start_date=date(2025, 8, 11),
        end_date=date(2025, 8, 15),
        type=HolidayType.VACATION.value,
        status=status.value,
        working_days=5,
    )


# ---------------------------------------------------------------------------
# resolve_scope
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("settings", "expected"),
    [
        (ALL_SEE_ALL, ViewScope.ALL),
        (DEPARTMENT_ONLY, ViewScope.TEAM),
        (ADMIN_ONLY, ViewScope.OWN),
        (VisibilitySettings(visibility_mode="something_else"), ViewScope.OWN),
    ],
)
def test_default_scope_follows_visibility_mode(settings: VisibilitySettings, expected: ViewScope) -> None:
    assert resolve_scope(EMPLOYEE, None, settings).scope == expected


def test_department_only_without_department_falls_back_to_own() -> None:
    scope = resolve_scope(NO_DEPARTMENT, None, DEPARTMENT_ONLY)
    assert scope.scope == ViewScope.OWN
    assert scope.owner_id == NO_DEPARTMENT.user_id


def test_explicit_team_without_department_falls_back_to_own() -> None:
    assert resolve_scope(NO_DEPARTMENT, ViewScope.TEAM, ALL_SEE_ALL).scope == ViewScope.OWN


def test_explicit_scope_overrides_mode_for_employee() -> None:
    scope = resolve_scope(EMPLOYEE, ViewScope.ALL, ADMIN_ONLY)
    assert scope.scope == ViewScope.ALL
    assert scope.approved_only_for_others


def test_admin_sees_all_statuses() -> None:
    scope = resolve_scope(ADMIN, None, ADMIN_ONLY)
    assert scope.scope == ViewScope.ALL
    assert not scope.approved_only_for_others


def test_admin_team_scope_uses_department() -> None:
    scope = resolve_scope(ADMIN, ViewScope.TEAM, ALL_SEE_ALL)
    assert scope.scope == ViewScope.TEAM
    assert scope.department_id == ENGINEERING_ID
    assert not scope.approved_only_for_others


def test_admin_team_scope_without_department_is_all() -> None:
    admin = AuthContext(user_id=uuid.uuid4(), role=UserRole.ADMIN)
    assert resolve_scope(admin, ViewScope.TEAM, ALL_SEE_ALL).scope == ViewScope.ALL


def test_admin_own_scope() -> None:
    scope = resolve_scope(ADMIN, ViewScope.OWN, ALL_SEE_ALL)
    assert scope.owner_id == ADMIN.user_id


# ---------------------------------------------------------------------------
# EffectiveScope.admits
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("requested", [None, ViewScope.OWN, ViewScope.TEAM, ViewScope.ALL])
@pytest.mark.parametrize("settings", [ALL_SEE_ALL, DEPARTMENT_ONLY, ADMIN_ONLY])
@pytest.mark.parametrize("status", [HolidayStatus.PENDING, HolidayStatus.REJECTED, HolidayStatus.CANCELLED])
def test_employee_never_sees_other_peoples_unapproved_requests(
    requested: ViewScope | None,
    settings: VisibilitySettings,
    status: HolidayStatus,
) -> None:
    scope = resolve_scope(EMPLOYEE, requested, settings)
    assert not scope.admits(uuid.uuid4(), ENGINEERING_ID, status)


@pytest.mark.parametrize("requested", [None, ViewScope.OWN, ViewScope.TEAM, ViewScope.ALL])
@pytest.mark.parametrize("status", list(HolidayStatus))
def test_employee_always_sees_own_requests(requested: ViewScope | None, status: HolidayStatus) -> None:
    scope = resolve_scope(EMPLOYEE, requested, DEPARTMENT_ONLY)
    assert scope.admits(EMPLOYEE.user_id, ENGINEERING_ID, status)


def test_department_only_mode() -> None:
    scope = resolve_scope(EMPLOYEE, None, DEPARTMENT_ONLY)
    assert scope.admits(uuid.uuid4(), ENGINEERING_ID, HolidayStatus.APPROVED)
    assert not scope.admits(uuid.uuid4(), SALES_ID, HolidayStatus.APPROVED)
    assert not scope.admits(uuid.uuid4(), None, HolidayStatus.APPROVED)


def test_admin_sees_pending_requests_of_others() -> None:
    scope = resolve_scope(ADMIN, None, ALL_SEE_ALL)
    assert scope.admits(uuid.uuid4(), SALES_ID, HolidayStatus.PENDING)


# ---------------------------------------------------------------------------
# project_holiday
# ---------------------------------------------------------------------------


def _owner(department: Department | None = None) -> User:
    return User(
        name="Olga Owner",
        email="olga@example.com",
        role=UserRole.EMPLOYEE.value,
        status="active",
        department_id=department.id if department is not None else None,
    )


def test_projection_hides_emails_from_other_employees() -> None:
    department = Department(name="Sales", location="London")
    owner = _owner(department)
    approver = User(name="Ada Admin", email="ada@example.com", role=UserRole.ADMIN.value, status="active")
    request = _request(owner.id)
    request.approved_by = approver.id

    projected = project_holiday(request, EMPLOYEE, owner=owner, department=department, approver=approver)

    assert projected.user is not None
    assert projected.user.name == "Olga Owner"
    assert projected.user.email is None
    assert projected.user.department is not None
    assert projected.user.department.name == "Sales"
    assert projected.approver is not None
    assert projected.approver.name == "Ada Admin"
    assert projected.approver.email is None


def test_projection_shows_own_email() -> None:
    owner = _owner()
    viewer = AuthContext(user_id=owner.id)
    projected = project_holiday(_request(owner.id, HolidayStatus.PENDING), viewer, owner=owner)
    assert projected.user is not None
    assert projected.user.email == "olga@example.com"


def test_projection_shows_everything_to_admin() -> None:
    owner = _owner()
    approver = User(name="Ada Admin", email="ada@example.com", role=UserRole.ADMIN.value, status="active")
    projected = project_holiday(_request(owner.id), ADMIN, owner=owner, approver=approver)
    assert projected.user is not None
    assert projected.user.email == "olga@example.com"
    assert projected.approver is not None
    assert projected.approver.email == "ada@example.com"
