"""Tests for account management, login and the /me endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from vacation_portal.models.enums import AccountRole

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient

    from vacation_portal.models import Account

ACCOUNTS_URL = "/accounts"

# Matches the make_account fixture default.
DEFAULT_PASSWORD = "correct-horse-battery"


def _headers(account: Account) -> dict[str, str]:
    return {"X-User-Id": str(account.id), "X-Role": account.role}


def _payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Nina Newhire",
        "email": "nina@example.com",
        "employee_code": "1234567",
        "password": "s3cret-pass",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def manager(make_account: Callable[..., Awaitable[Account]]) -> Account:
    return await make_account(name="Maria Manager", role=AccountRole.MANAGER)


@pytest.fixture
async def employee(make_account: Callable[..., Awaitable[Account]]) -> Account:
    return await make_account(name="Eve Employee")


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_account_defaults(async_client: AsyncClient, manager: Account) -> None:
    resp = await async_client.post(ACCOUNTS_URL, json=_payload(), headers=_headers(manager))
    assert resp.status_code == 201
    data = resp.json()
    assert data["role"] == "employee"
    assert data["total_days"] == 20
    assert data["used_days"] == 0
    assert data["remaining_days"] == 20
    assert "password" not in data
    assert "password_hash" not in data


async def test_create_manager_with_custom_entitlement(async_client: AsyncClient, manager: Account) -> None:
    resp = await async_client.post(
        ACCOUNTS_URL, json=_payload(role="manager", total_days=25), headers=_headers(manager)
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "manager"
    assert resp.json()["total_days"] == 25


async def test_employee_cannot_create_account(async_client: AsyncClient, employee: Account) -> None:
    resp = await async_client.post(ACCOUNTS_URL, json=_payload(), headers=_headers(employee))
    assert resp.status_code == 403


async def test_duplicate_email_conflicts(async_client: AsyncClient, manager: Account) -> None:
    await async_client.post(ACCOUNTS_URL, json=_payload(), headers=_headers(manager))
    resp = await async_client.post(ACCOUNTS_URL, json=_payload(employee_code="7654321"), headers=_headers(manager))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Email already exists"


async def test_duplicate_employee_code_conflicts(async_client: AsyncClient, manager: Account) -> None:
    await async_client.post(ACCOUNTS_URL, json=_payload(), headers=_headers(manager))
    resp = await async_client.post(ACCOUNTS_URL, json=_payload(email="other@example.com"), headers=_headers(manager))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Employee code already exists"


@pytest.mark.parametrize("code", ["123456", "12345678", "12a4567", ""])
async def test_invalid_employee_code_returns_422(async_client: AsyncClient, manager: Account, code: str) -> None:
    resp = await async_client.post(ACCOUNTS_URL, json=_payload(employee_code=code), headers=_headers(manager))
    assert resp.status_code == 422
    assert resp.json()["error"] == "RequestValidationError"


async def test_create_audits_without_password_hash(async_client: AsyncClient, manager: Account) -> None:
    created = (await async_client.post(ACCOUNTS_URL, json=_payload(), headers=_headers(manager))).json()
    resp = await async_client.get(
        "/audit-log",
        params={"entity_type": "ACCOUNT", "entity_id": created["id"], "action": "CREATE"},
        headers=_headers(manager),
    )
    entries = resp.json()["items"]
    assert len(entries) == 1
    assert entries[0]["actor_id"] == manager.id
    assert entries[0]["after_json"]["email"] == "nina@example.com"
    assert "password_hash" not in entries[0]["after_json"]


# ---------------------------------------------------------------------------
# Read, list and /me
# ---------------------------------------------------------------------------


async def test_me_returns_balance(
    async_client: AsyncClient, make_account: Callable[..., Awaitable[Account]]
) -> None:
    account = await make_account(total_days=25, used_days=7)
    resp = await async_client.get("/me", headers=_headers(account))
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == account.id
    assert data["used_days"] == 7
    assert data["remaining_days"] == 18


async def test_employee_reads_only_own_account(
    async_client: AsyncClient, employee: Account, manager: Account
) -> None:
    own = await async_client.get(f"{ACCOUNTS_URL}/{employee.id}", headers=_headers(employee))
    assert own.status_code == 200

    other = await async_client.get(f"{ACCOUNTS_URL}/{manager.id}", headers=_headers(employee))
    assert other.status_code == 403

    by_manager = await async_client.get(f"{ACCOUNTS_URL}/{employee.id}", headers=_headers(manager))
    assert by_manager.status_code == 200


async def test_get_unknown_account_returns_404(async_client: AsyncClient, manager: Account) -> None:
    resp = await async_client.get(f"{ACCOUNTS_URL}/999", headers=_headers(manager))
    assert resp.status_code == 404


async def test_list_accounts_is_manager_only(async_client: AsyncClient, employee: Account) -> None:
    resp = await async_client.get(ACCOUNTS_URL, headers=_headers(employee))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Manager access required"


async def test_list_accounts_filters(
    async_client: AsyncClient, manager: Account, make_account: Callable[..., Awaitable[Account]]
) -> None:
    await make_account(name="Alice Anders")
    await make_account(name="Bob Brown")

    employees = await async_client.get(ACCOUNTS_URL, params={"role": "employee"}, headers=_headers(manager))
    assert employees.json()["total"] == 2

    searched = await async_client.get(ACCOUNTS_URL, params={"search": "anders"}, headers=_headers(manager))
    assert [a["name"] for a in searched.json()["items"]] == ["Alice Anders"]

    everyone = await async_client.get(ACCOUNTS_URL, headers=_headers(manager))
    assert everyone.json()["total"] == 3


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


async def test_self_update_name(async_client: AsyncClient, employee: Account) -> None:
    resp = await async_client.patch(
        f"{ACCOUNTS_URL}/{employee.id}", json={"name": "Eve Renamed"}, headers=_headers(employee)
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Eve Renamed"


async def test_employee_cannot_update_other_account(
    async_client: AsyncClient, employee: Account, make_account: Callable[..., Awaitable[Account]]
) -> None:
    other = await make_account()
    resp = await async_client.patch(f"{ACCOUNTS_URL}/{other.id}", json={"name": "Hacked"}, headers=_headers(employee))
    assert resp.status_code == 403


@pytest.mark.parametrize("field", ["role", "used_days", "total_days", "employee_code"])
async def test_update_rejects_protected_fields(async_client: AsyncClient, employee: Account, field: str) -> None:
    value: Any = "manager" if field == "role" else 1
    resp = await async_client.patch(f"{ACCOUNTS_URL}/{employee.id}", json={field: value}, headers=_headers(employee))
    assert resp.status_code == 422


async def test_update_to_taken_email_conflicts(
    async_client: AsyncClient, employee: Account, make_account: Callable[..., Awaitable[Account]]
) -> None:
    other = await make_account()
    resp = await async_client.patch(
        f"{ACCOUNTS_URL}/{employee.id}", json={"email": other.email}, headers=_headers(employee)
    )
    assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def test_login_success(async_client: AsyncClient, employee: Account) -> None:
    resp = await async_client.post("/auth/login", json={"email": employee.email, "password": DEFAULT_PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["id"] == employee.id


async def test_login_wrong_password_returns_401(async_client: AsyncClient, employee: Account) -> None:
    resp = await async_client.post("/auth/login", json={"email": employee.email, "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


async def test_login_unknown_email_returns_401(async_client: AsyncClient) -> None:
    resp = await async_client.post("/auth/login", json={"email": "ghost@example.com", "password": "whatever1"})
    assert resp.status_code == 401


async def test_login_after_password_change(async_client: AsyncClient, employee: Account) -> None:
    resp = await async_client.patch(
        f"{ACCOUNTS_URL}/{employee.id}", json={"password": "brand-new-pass"}, headers=_headers(employee)
    )
    assert resp.status_code == 200

    old = await async_client.post("/auth/login", json={"email": employee.email, "password": DEFAULT_PASSWORD})
    assert old.status_code == 401
    new = await async_client.post("/auth/login", json={"email": employee.email, "password": "brand-new-pass"})
    assert new.status_code == 200


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


async def test_delete_account_removes_its_requests(
    async_client: AsyncClient, employee: Account, manager: Account
) -> None:
    created = await async_client.post(
        "/requests", json={"start_date": "2025-01-10", "end_date": "2025-01-12"}, headers=_headers(employee)
    )
    request_id = created.json()["id"]

    resp = await async_client.delete(f"{ACCOUNTS_URL}/{employee.id}", headers=_headers(manager))
    assert resp.status_code == 204

    assert (await async_client.get(f"{ACCOUNTS_URL}/{employee.id}", headers=_headers(manager))).status_code == 404
    assert (await async_client.get(f"/requests/{request_id}", headers=_headers(manager))).status_code == 404


async def test_delete_decider_keeps_decided_request(
    async_client: AsyncClient, employee: Account, manager: Account, make_account: Callable[..., Awaitable[Account]]
) -> None:
    other_manager = await make_account(role=AccountRole.MANAGER)
    created = await async_client.post(
        "/requests", json={"start_date": "2025-01-10", "end_date": "2025-01-12"}, headers=_headers(employee)
    )
    request_id = created.json()["id"]
    await async_client.post(f"/requests/{request_id}/approve", headers=_headers(other_manager))

    resp = await async_client.delete(f"{ACCOUNTS_URL}/{other_manager.id}", headers=_headers(manager))
    assert resp.status_code == 204

    remaining = await async_client.get(f"/requests/{request_id}", headers=_headers(manager))
    assert remaining.status_code == 200
    assert remaining.json()["status"] == "approved"
    assert remaining.json()["decided_by"] is None


async def test_manager_cannot_delete_self(async_client: AsyncClient, manager: Account) -> None:
    resp = await async_client.delete(f"{ACCOUNTS_URL}/{manager.id}", headers=_headers(manager))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot delete your own account"


async def test_employee_cannot_delete_account(
    async_client: AsyncClient, employee: Account, make_account: Callable[..., Awaitable[Account]]
) -> None:
    other = await make_account()
    resp = await async_client.delete(f"{ACCOUNTS_URL}/{other.id}", headers=_headers(employee))
    assert resp.status_code == 403


async def test_delete_unknown_account_returns_404(async_client: AsyncClient, manager: Account) -> None:
    resp = await async_client.delete(f"{ACCOUNTS_URL}/999", headers=_headers(manager))
    assert resp.status_code == 404


async def test_list_accounts_search_treats_wildcards_literally(
    async_client: AsyncClient, manager: Account, make_account: Callable[..., Awaitable[Account]]
) -> None:
    await make_account(name="Alice Anders")
    await make_account(name="100% Bob")

    percent = await async_client.get(ACCOUNTS_URL, params={"search": "%"}, headers=_headers(manager))
    assert [a["name"] for a in percent.json()["items"]] == ["100% Bob"]

    underscore = await async_client.get(ACCOUNTS_URL, params={"search": "_"}, headers=_headers(manager))
    assert underscore.json()["total"] == 0
