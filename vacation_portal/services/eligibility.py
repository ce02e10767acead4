"""Admissibility checks for a candidate date range.

Both checks are pure reads. Callers load the owning account with
``SELECT ... FOR UPDATE`` first so the checks and the following write see the
same snapshot.
"""

# ruff: noqa: TC003
from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from vacation_portal.exceptions import ValidationError
from vacation_portal.models.enums import RequestStatus
from vacation_portal.models.request import VacationRequest

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_portal.models.account import Account

# Statuses that occupy calendar days for overlap purposes.
ACTIVE_STATUSES = (RequestStatus.PENDING.value, RequestStatus.APPROVED.value)


def request_duration(start_date: date, end_date: date) -> int:
    """Number of calendar days in the inclusive range."""
    return (end_date - start_date).days + 1


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Inclusive-endpoint interval test; covers containment and exact match."""
    return start_a <= end_b and start_b <= end_a


async def check_overlap(
    session: AsyncSession,
    account_id: int,
    start_date: date,
    end_date: date,
    exclude_request_id: int | None = None,
) -> bool:
    """Return True if a pending or approved request of the account shares a day with the range."""
    query = select(VacationRequest.id).where(
        col(VacationRequest.account_id) == account_id,
        col(VacationRequest.status).in_(ACTIVE_STATUSES),
        col(VacationRequest.start_date) <= end_date,
        col(VacationRequest.end_date) >= start_date,
    )
    if exclude_request_id is not None:
        query = query.where(col(VacationRequest.id) != exclude_request_id)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


def check_balance(account: Account, days_needed: int) -> bool:
    """Return True if the account's remaining balance covers ``days_needed``."""
    return days_needed <= account.total_days - account.used_days


async def ensure_admissible(
    session: AsyncSession,
    account: Account,
    start_date: date,
    end_date: date,
    exclude_request_id: int | None = None,
) -> int:
    """Validate a candidate range for ``account`` and return its duration.

    Raises ValidationError on a reversed range, insufficient balance or overlap.
    """
    if end_date < start_date:
        raise ValidationError("End date must be on or after start date")

    days_needed = request_duration(start_date, end_date)
    if not check_balance(account, days_needed):
        raise ValidationError(
            f"Insufficient vacation balance: requested {days_needed} days, {account.remaining_days} remaining"
        )

    if await check_overlap(session, account.id, start_date, end_date, exclude_request_id):  # ty: ignore[invalid-argument-type]
        raise ValidationError("Request overlaps with an existing pending or approved request")

    return days_needed
