"""API tests for registration, account administration and leave summaries."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from holiday_tracker.models.audit import AuditLog
from holiday_tracker.models.enums import UserStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from holiday_tracker.models.user import Department, User

USERS_URL = "/users"


def _headers(user: User) -> dict[str, str]:
    return {"X-User-Id": str(user.id)}


async def _register(client: AsyncClient, name: str = "Nina New", email: str = "nina@example.com") -> dict[str, Any]:
    resp = await client.post(f"{USERS_URL}/register", json={"name": name, "email": email})
    assert resp.status_code == 201, resp.json()
    result: dict[str, Any] = resp.json()
    return result


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def test_register_creates_pending_user(async_client: AsyncClient) -> None:
    data = await _register(async_client)

    assert data["status"] == "pending"
    assert data["role"] == "employee"
    assert data["holiday_allowance"] == 20
    assert data["department_id"] is None


async def test_pending_user_cannot_sign_in(async_client: AsyncClient) -> None:
    data = await _register(async_client)
    resp = await async_client.get(f"{USERS_URL}/me", headers={"X-User-Id": data["id"]})
    assert resp.status_code == 403


async def test_register_duplicate_email_is_409(async_client: AsyncClient) -> None:
    await _register(async_client)
    resp = await async_client.post(f"{USERS_URL}/register", json={"name": "Other", "email": "NINA@example.com"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "EMAIL_TAKEN"


async def test_register_invalid_email_is_422(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{USERS_URL}/register", json={"name": "Nina", "email": "not-an-email"})
    assert resp.status_code == 422


async def test_register_writes_audit_log(async_client: AsyncClient, db_session: AsyncSession) -> None:
    data = await _register(async_client)
    result = await db_session.execute(select(AuditLog).where(col(AuditLog.entity_key) == data["id"]))
    entry = result.scalar_one()
    assert entry.action == "CREATE"
    assert entry.entity_type == "USER"


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


async def test_admin_creates_active_user(async_client: AsyncClient, admin: User, engineering: Department) -> None:
    resp = await async_client.post(
        USERS_URL,
        json={
            "name": "Carl Created",
            "email": "carl@example.com",
            "department_id": str(engineering.id),
            "holiday_allowance": 25,
        },
        headers=_headers(admin),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "active"
    assert data["holiday_allowance"] == 25
    assert data["department_id"] == str(engineering.id)


async def test_create_user_with_unknown_department_is_404(async_client: AsyncClient, admin: User) -> None:
    resp = await async_client.post(
        USERS_URL,
        json={"name": "Carl", "email": "carl@example.com", "department_id": str(uuid.uuid4())},
        headers=_headers(admin),
    )
    assert resp.status_code == 404


async def test_employee_cannot_create_user(async_client: AsyncClient, employee: User) -> None:
    resp = await async_client.post(
        USERS_URL,
        json={"name": "Carl", "email": "carl@example.com"},
        headers=_headers(employee),
    )
    assert resp.status_code == 403


async def test_list_users_filters_by_status(async_client: AsyncClient, admin: User, employee: User) -> None:
    await _register(async_client)

    resp = await async_client.get(USERS_URL, headers=_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["total"] == 3

    resp = await async_client.get(USERS_URL, params={"status": "pending"}, headers=_headers(admin))
    data = resp.json()
    assert data["total"] == 1
    assert data["items"][0]["email"] == "nina@example.com"


async def test_get_me(async_client: AsyncClient, employee: User) -> None:
    resp = await async_client.get(f"{USERS_URL}/me", headers=_headers(employee))
    assert resp.status_code == 200
    assert resp.json()["id"] == str(employee.id)


async def test_employee_cannot_read_other_user(async_client: AsyncClient, employee: User, teammate: User) -> None:
    resp = await async_client.get(f"{USERS_URL}/{teammate.id}", headers=_headers(employee))
    assert resp.status_code == 403


async def test_admin_reads_unknown_user_is_404(async_client: AsyncClient, admin: User) -> None:
    resp = await async_client.get(f"{USERS_URL}/{uuid.uuid4()}", headers=_headers(admin))
    assert resp.status_code == 404


async def test_update_user_department_and_clear(
    async_client: AsyncClient,
    admin: User,
    employee: User,
    sales: Department,
) -> None:
    resp = await async_client.patch(
        f"{USERS_URL}/{employee.id}",
        json={"department_id": str(sales.id), "holiday_allowance": 30},
        headers=_headers(admin),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["department_id"] == str(sales.id)
    assert data["holiday_allowance"] == 30

    resp = await async_client.patch(
        f"{USERS_URL}/{employee.id}",
        json={"department_id": None},
        headers=_headers(admin),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["department_id"] is None
    assert data["holiday_allowance"] == 30


async def test_update_user_role(async_client: AsyncClient, admin: User, employee: User) -> None:
    resp = await async_client.patch(f"{USERS_URL}/{employee.id}", json={"role": "admin"}, headers=_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"


async def test_activate_pending_user(async_client: AsyncClient, admin: User) -> None:
    registered = await _register(async_client)

    resp = await async_client.post(f"{USERS_URL}/{registered['id']}/activate", headers=_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["status"] == "active"

    resp = await async_client.get(f"{USERS_URL}/me", headers={"X-User-Id": registered["id"]})
    assert resp.status_code == 200


async def test_activate_active_user_is_400(async_client: AsyncClient, admin: User, employee: User) -> None:
    resp = await async_client.post(f"{USERS_URL}/{employee.id}/activate", headers=_headers(admin))
    assert resp.status_code == 400
    assert resp.json()["code"] == "ALREADY_ACTIVE"


async def test_deactivated_user_is_locked_out(
    async_client: AsyncClient,
    admin: User,
    employee: User,
) -> None:
    resp = await async_client.patch(
        f"{USERS_URL}/{employee.id}",
        json={"status": UserStatus.INACTIVE.value},
        headers=_headers(admin),
    )
    assert resp.status_code == 200

    resp = await async_client.get(f"{USERS_URL}/me", headers=_headers(employee))
    assert resp.status_code == 403


async def test_apply_default_allowance(async_client: AsyncClient, admin: User, employee: User) -> None:
    resp = await async_client.put("/settings", json={"default_holiday_allowance": 25}, headers=_headers(admin))
    assert resp.status_code == 200

    resp = await async_client.post(f"{USERS_URL}/apply-default-allowance", headers=_headers(admin))
    assert resp.status_code == 200
    assert resp.json() == {"holiday_allowance": 25, "updated": 2}

    resp = await async_client.get(f"{USERS_URL}/{employee.id}", headers=_headers(admin))
    assert resp.json()["holiday_allowance"] == 25


# ---------------------------------------------------------------------------
# Leave summary
# ---------------------------------------------------------------------------


async def test_leave_summary(async_client: AsyncClient, admin: User, employee: User) -> None:
    headers = _headers(employee)
    approved = await async_client.post(
        "/holidays", json={"start_date": "2025-08-11", "end_date": "2025-08-15"}, headers=headers
    )
    await async_client.post("/holidays", json={"start_date": "2025-08-18", "end_date": "2025-08-19"}, headers=headers)
    await async_client.post(
        "/holidays", json={"start_date": "2025-09-01", "end_date": "2025-09-02", "type": "sick"}, headers=headers
    )
    resp = await async_client.post(
        f"/holidays/{approved.json()['id']}/decision", json={"action": "approve"}, headers=_headers(admin)
    )
    assert resp.status_code == 200

    resp = await async_client.get(f"{USERS_URL}/{employee.id}/leave-summary", params={"year": 2025}, headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["year"] == 2025

    vacation = data["vacation"]
    assert vacation["allowance"] == 20
    assert vacation["used_days"] == 5
    assert vacation["taken_days"] == 0
    assert vacation["booked_days"] == 5
    assert vacation["pending_days"] == 2
    assert vacation["available_days"] == 13
    assert vacation["total_requests"] == 2

    sick = data["sick"]
    assert sick["allowance"] is None
    assert sick["available_days"] is None
    assert sick["pending_days"] == 2
    assert data["personal"]["total_requests"] == 0


async def test_leave_summary_defaults_to_current_year(async_client: AsyncClient, employee: User) -> None:
    resp = await async_client.get(f"{USERS_URL}/{employee.id}/leave-summary", headers=_headers(employee))
    assert resp.status_code == 200
    assert resp.json()["year"] == 2025


async def test_leave_summary_of_other_user_is_forbidden(
    async_client: AsyncClient,
    employee: User,
    teammate: User,
) -> None:
    resp = await async_client.get(f"{USERS_URL}/{teammate.id}/leave-summary", headers=_headers(employee))
    assert resp.status_code == 403
