"""Balance ledger: keeps ``Account.used_days`` equal to the approved-day total.

``apply_approval`` is the only mutation used in normal request processing and
runs inside the approval transaction. ``recompute_used_days`` and
``repair_balances`` rebuild the counter from scratch and are meant for
migrations and consistency repair only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from vacation_portal.models.account import Account
from vacation_portal.models.enums import AuditAction, AuditEntityType, RequestStatus
from vacation_portal.models.request import VacationRequest
from vacation_portal.schemas.analytics import RepairResult
from vacation_portal.services.audit import model_to_audit_dict, write_audit_log
from vacation_portal.services.eligibility import request_duration

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def apply_approval(session: AsyncSession, account_id: int, days: int) -> None:
    """Add ``days`` to the account's used counter in a single UPDATE.

    The ``valid_vacation_days`` check constraint rejects an increment past
    ``total_days``; the resulting IntegrityError is left to the caller.
    """
    await session.execute(
        update(Account)
        .where(col(Account.id) == account_id)
        .values(used_days=col(Account.used_days) + days)
        .execution_options(synchronize_session="fetch")
    )


async def recompute_used_days(session: AsyncSession, account_id: int) -> int:
    """Sum the durations of the account's approved requests."""
    result = await session.execute(
        select(VacationRequest.start_date, VacationRequest.end_date).where(
            col(VacationRequest.account_id) == account_id,
            col(VacationRequest.status) == RequestStatus.APPROVED.value,
        )
    )
    return sum(request_duration(start, end) for start, end in result.all())


async def repair_balances(session: AsyncSession, actor_id: int | None = None) -> RepairResult:
    """Rewrite every drifted ``used_days`` counter from the approved requests.

    Accounts whose recomputed value exceeds their entitlement are left
    untouched and reported as skipped.
    """
    result = await session.execute(
        select(Account).order_by(col(Account.id)).with_for_update().execution_options(populate_existing=True)
    )
    accounts = list(result.scalars().all())

    processed = corrected = skipped = 0
    for account in accounts:
        processed += 1
        expected = await recompute_used_days(session, account.id)  # ty: ignore[invalid-argument-type]
        if expected == account.used_days:
            continue
        if expected > account.total_days:
            logger.error(
                "Account %s: approved requests total %d days, above entitlement %d; not repaired",
                account.id,
                expected,
                account.total_days,
            )
            skipped += 1
            continue

        before = model_to_audit_dict(account)
        logger.info("Account %s: used_days %d -> %d", account.id, account.used_days, expected)
        account.used_days = expected
        await session.flush()
        await write_audit_log(
            session,
            actor_id=actor_id,
            entity_type=AuditEntityType.ACCOUNT,
            entity_id=account.id,  # ty: ignore[invalid-argument-type]
            action=AuditAction.RECOMPUTE,
            before_json=before,
            after_json=model_to_audit_dict(account),
        )
        corrected += 1

    await session.commit()
    return RepairResult(processed=processed, corrected=corrected, skipped=skipped)
