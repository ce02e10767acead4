"""Tests for the used-days ledger and the balance repair command."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacation_portal.models.audit import AuditLog
from vacation_portal.models.enums import AccountRole, AuditAction, RequestStatus
from vacation_portal.models.request import VacationRequest
from vacation_portal.services import ledger
from vacation_portal.services.account import get_account_or_404

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_portal.models import Account


async def _add_request(
    session: AsyncSession,
    account_id: int,
    start: date,
    end: date,
    status: RequestStatus,
) -> None:
    session.add(VacationRequest(account_id=account_id, start_date=start, end_date=end, status=status.value))
    await session.commit()


# ---------------------------------------------------------------------------
# apply_approval
# ---------------------------------------------------------------------------


async def test_apply_approval_increments_used_days(
    db_session: AsyncSession, make_account: Callable[..., Awaitable[Account]]
) -> None:
    account = await make_account(used_days=2)
    await ledger.apply_approval(db_session, account.id, 3)
    await db_session.commit()

    stored = await get_account_or_404(db_session, account.id)
    assert stored.used_days == 5


async def test_apply_approval_past_entitlement_violates_constraint(
    db_session: AsyncSession, make_account: Callable[..., Awaitable[Account]]
) -> None:
    account = await make_account(total_days=5, used_days=3)
    with pytest.raises(IntegrityError):
        await ledger.apply_approval(db_session, account.id, 3)
    await db_session.rollback()

    stored = await get_account_or_404(db_session, account.id)
    assert stored.used_days == 3


# ---------------------------------------------------------------------------
# recompute_used_days
# ---------------------------------------------------------------------------


async def test_recompute_sums_approved_only(
    db_session: AsyncSession, make_account: Callable[..., Awaitable[Account]]
) -> None:
    account = await make_account()
    await _add_request(db_session, account.id, date(2025, 1, 1), date(2025, 1, 3), RequestStatus.APPROVED)
    await _add_request(db_session, account.id, date(2025, 2, 1), date(2025, 2, 2), RequestStatus.APPROVED)
    await _add_request(db_session, account.id, date(2025, 3, 1), date(2025, 3, 9), RequestStatus.PENDING)
    await _add_request(db_session, account.id, date(2025, 4, 1), date(2025, 4, 9), RequestStatus.REJECTED)

    assert await ledger.recompute_used_days(db_session, account.id) == 5


async def test_recompute_with_no_requests_is_zero(
    db_session: AsyncSession, make_account: Callable[..., Awaitable[Account]]
) -> None:
    account = await make_account()
    assert await ledger.recompute_used_days(db_session, account.id) == 0


# ---------------------------------------------------------------------------
# repair_balances
# ---------------------------------------------------------------------------


async def test_repair_corrects_drift_and_audits(
    db_session: AsyncSession, make_account: Callable[..., Awaitable[Account]]
) -> None:
    manager = await make_account(role=AccountRole.MANAGER)
    drifted = await make_account(used_days=9)
    consistent = await make_account(used_days=2)
    await _add_request(db_session, drifted.id, date(2025, 1, 6), date(2025, 1, 9), RequestStatus.APPROVED)
    await _add_request(db_session, consistent.id, date(2025, 1, 6), date(2025, 1, 7), RequestStatus.APPROVED)

    result = await ledger.repair_balances(db_session, actor_id=manager.id)

    assert result.processed == 3
    assert result.corrected == 1
    assert result.skipped == 0
    assert (await get_account_or_404(db_session, drifted.id)).used_days == 4
    assert (await get_account_or_404(db_session, consistent.id)).used_days == 2

    entries = (
        (await db_session.execute(select(AuditLog).where(col(AuditLog.action) == AuditAction.RECOMPUTE.value)))
        .scalars()
        .all()
    )
    assert len(entries) == 1
    assert entries[0].entity_id == drifted.id
    assert entries[0].actor_id == manager.id
    assert entries[0].before_json is not None
    assert entries[0].before_json["used_days"] == 9
    assert entries[0].after_json is not None
    assert entries[0].after_json["used_days"] == 4


async def test_repair_skips_account_above_entitlement(
    db_session: AsyncSession, make_account: Callable[..., Awaitable[Account]]
) -> None:
    account = await make_account(total_days=5, used_days=1)
    await _add_request(db_session, account.id, date(2025, 1, 1), date(2025, 1, 6), RequestStatus.APPROVED)

    result = await ledger.repair_balances(db_session)

    assert result.skipped == 1
    assert result.corrected == 0
    assert (await get_account_or_404(db_session, account.id)).used_days == 1


async def test_repair_is_idempotent(
    db_session: AsyncSession, make_account: Callable[..., Awaitable[Account]]
) -> None:
    account = await make_account(used_days=7)
    await _add_request(db_session, account.id, date(2025, 5, 1), date(2025, 5, 2), RequestStatus.APPROVED)

    first = await ledger.repair_balances(db_session)
    second = await ledger.repair_balances(db_session)

    assert first.corrected == 1
    assert second.corrected == 0
    assert (await get_account_or_404(db_session, account.id)).used_days == 2
