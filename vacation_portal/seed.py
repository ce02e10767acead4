"""Seed script for development data.

Run against a running API with:  python -m vacation_portal.seed

The identity gateway is bypassed by sending the trusted principal headers
directly, so the first manager is created by a bootstrap principal.
"""

from __future__ import annotations

import asyncio
import os
import sys
from datetime import UTC, date, datetime, timedelta

import httpx

BASE_URL = os.environ.get("SEED_BASE_URL", "http://localhost:8000")
BOOTSTRAP_MANAGER_ID = "1"

MANAGER = {
    "name": "Maria Manager",
    "email": "maria.manager@example.com",
    "employee_code": "1000001",
    "password": "manager-pass-123",
    "role": "manager",
}

EMPLOYEES = [
    {
        "name": "Alice Johnson",
        "email": "alice.johnson@example.com",
        "employee_code": "2000001",
        "password": "employee-pass-1",
    },
    {
        "name": "Bob Smith",
        "email": "bob.smith@example.com",
        "employee_code": "2000002",
        "password": "employee-pass-2",
    },
    {
        "name": "Carol Williams",
        "email": "carol.williams@example.com",
        "employee_code": "2000003",
        "password": "employee-pass-3",
        "total_days": 25,
    },
]


def _headers(account_id: str, role: str) -> dict[str, str]:
    return {"Content-Type": "application/json", "X-User-Id": account_id, "X-Role": role}


async def _safe_post(
    client: httpx.AsyncClient, url: str, json: dict | None, headers: dict[str, str], label: str
) -> dict | None:
    """POST tolerating conflicts so the script can be re-run."""
    resp = await client.post(url, json=json, headers=headers)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code in (400, 409):
        print(f"  [SKIP] {label} ({resp.json().get('detail')})")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def _find_account(client: httpx.AsyncClient, manager_id: str, email: str) -> dict | None:
    resp = await client.get(
        f"{BASE_URL}/accounts", params={"search": email}, headers=_headers(manager_id, "manager")
    )
    if resp.status_code != 200:
        return None
    items = [a for a in resp.json()["items"] if a["email"] == email]
    return items[0] if items else None


async def seed_accounts(client: httpx.AsyncClient) -> tuple[str, dict[str, str]]:
    """Create the manager and employees. Returns (manager id, employee ids by email)."""
    print("\n--- Seeding accounts ---")
    bootstrap = _headers(BOOTSTRAP_MANAGER_ID, "manager")

    manager = await _safe_post(client, f"{BASE_URL}/accounts", MANAGER, bootstrap, f"Manager {MANAGER['name']}")
    if manager is None:
        manager = await _find_account(client, BOOTSTRAP_MANAGER_ID, MANAGER["email"])
    if manager is None:
        print("  [ERROR] Could not resolve the manager account")
        sys.exit(1)
    manager_id = str(manager["id"])

    employee_ids: dict[str, str] = {}
    for employee in EMPLOYEES:
        created = await _safe_post(
            client, f"{BASE_URL}/accounts", employee, _headers(manager_id, "manager"), f"Employee {employee['name']}"
        )
        if created is None:
            created = await _find_account(client, manager_id, employee["email"])
        if created is not None:
            employee_ids[employee["email"]] = str(created["id"])
    return manager_id, employee_ids


async def seed_requests(client: httpx.AsyncClient, manager_id: str, employee_ids: dict[str, str]) -> None:
    """Create a mix of pending, approved and rejected requests."""
    print("\n--- Seeding requests ---")
    today = datetime.now(UTC).date()

    def _span(days_ahead: int, length: int) -> tuple[str, str]:
        start = today + timedelta(days=days_ahead)
        return start.isoformat(), (start + timedelta(days=length - 1)).isoformat()

    plan: list[tuple[str, tuple[str, str], str, str | None]] = [
        ("alice.johnson@example.com", _span(14, 5), "Summer trip with family", "approve"),
        ("alice.johnson@example.com", _span(60, 2), "Conference in Berlin", None),
        ("bob.smith@example.com", _span(21, 3), "Moving apartments", "reject"),
        ("bob.smith@example.com", _span(30, 1), "Conference talk prep", None),
        ("carol.williams@example.com", _span(45, 10), "Hiking holiday", "approve"),
    ]

    manager_headers = _headers(manager_id, "manager")
    for email, (start, end), reason, decision in plan:
        account_id = employee_ids.get(email)
        if account_id is None:
            print(f"  [SKIP] {email} has no account")
            continue
        created = await _safe_post(
            client,
            f"{BASE_URL}/requests",
            {"start_date": start, "end_date": end, "reason": reason},
            _headers(account_id, "employee"),
            f"Request {email} {start}..{end}",
        )
        if created is None or decision is None:
            continue
        await _safe_post(
            client,
            f"{BASE_URL}/requests/{created['id']}/{decision}",
            {"note": f"Seeded {decision}"},
            manager_headers,
            f"{decision.capitalize()} request {created['id']}",
        )


async def main() -> None:
    """Run all seeders in order."""
    print(f"Seeding {BASE_URL} on {date.today().isoformat()}")
    async with httpx.AsyncClient(timeout=10.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            print(f"API not reachable at {BASE_URL}: {exc}")
            sys.exit(1)

        manager_id, employee_ids = await seed_accounts(client)
        await seed_requests(client, manager_id, employee_ids)
    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())
