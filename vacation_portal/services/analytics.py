"""Manager dashboard aggregates over requests and accounts."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from vacation_portal.config import get_settings
from vacation_portal.exceptions import AuthorizationError
from vacation_portal.models.account import Account
from vacation_portal.models.enums import AccountRole, RequestStatus
from vacation_portal.models.request import VacationRequest
from vacation_portal.schemas.analytics import (
    AccountUtilization,
    AnalyticsResponse,
    MonthlyCount,
    RequesterCount,
    StatusCounts,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_portal.schemas.auth import AuthContext


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (as returned by some drivers) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _month_key(value: date | datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def trailing_months(today: date, window: int) -> list[str]:
    """Month keys for the ``window`` months ending with ``today``'s month, oldest first."""
    return [
        "{:04d}-{:02d}".format(*_shift_month(today.year, today.month, offset)) for offset in range(-(window - 1), 1)
    ]


async def _status_counts(session: AsyncSession) -> StatusCounts:
    result = await session.execute(
        select(col(VacationRequest.status), func.count()).group_by(col(VacationRequest.status))
    )
    counts = {status: count for status, count in result.all()}
    return StatusCounts(
        total=sum(counts.values()),
        pending=counts.get(RequestStatus.PENDING.value, 0),
        approved=counts.get(RequestStatus.APPROVED.value, 0),
        rejected=counts.get(RequestStatus.REJECTED.value, 0),
    )


async def _average_decision_hours(session: AsyncSession) -> float | None:
    """Mean submission-to-decision latency over decided requests only."""
    result = await session.execute(
        select(VacationRequest.created_at, VacationRequest.decided_at).where(
            col(VacationRequest.decided_at).is_not(None)
        )
    )
    latencies = [
        (_as_utc(decided_at) - _as_utc(created_at)).total_seconds() / 3600 for created_at, decided_at in result.all()
    ]
    if not latencies:
        return None
    return round(sum(latencies) / len(latencies), 1)


async def _requests_by_month(session: AsyncSession, today: date, window: int) -> list[MonthlyCount]:
    months = trailing_months(today, window)
    first_year, first_month = _shift_month(today.year, today.month, -(window - 1))
    window_start = datetime(first_year, first_month, 1, tzinfo=UTC)

    result = await session.execute(
        select(VacationRequest.created_at).where(col(VacationRequest.created_at) >= window_start)
    )
    counts = dict.fromkeys(months, 0)
    for (created_at,) in result.all():
        key = _month_key(_as_utc(created_at))
        if key in counts:
            counts[key] += 1
    return [MonthlyCount(month=month, count=count) for month, count in counts.items()]


async def _utilization(session: AsyncSession) -> list[AccountUtilization]:
    result = await session.execute(
        select(Account)
        .where(col(Account.role) == AccountRole.EMPLOYEE.value)
        .execution_options(populate_existing=True)
    )
    rows = []
    for account in result.scalars().all():
        ratio = account.used_days / account.total_days if account.total_days else 0.0
        rows.append(
            AccountUtilization(
                account_id=account.id,  # ty: ignore[invalid-argument-type]
                account_name=account.name,
                used_days=account.used_days,
                total_days=account.total_days,
                ratio=ratio,
                percent=round(ratio * 100, 2),
            )
        )
    rows.sort(key=lambda row: (-row.ratio, row.account_id))
    return rows


async def _top_requesters(session: AsyncSession, limit: int) -> list[RequesterCount]:
    request_count = func.count(col(VacationRequest.id)).label("request_count")
    result = await session.execute(
        select(col(Account.id), col(Account.name), request_count)
        .outerjoin(VacationRequest, col(VacationRequest.account_id) == col(Account.id))
        .where(col(Account.role) == AccountRole.EMPLOYEE.value)
        .group_by(col(Account.id), col(Account.name))
        .order_by(request_count.desc(), col(Account.id))
        .limit(limit)
    )
    return [
        RequesterCount(account_id=account_id, account_name=name, request_count=count)
        for account_id, name, count in result.all()
    ]


async def get_analytics(
    session: AsyncSession,
    auth: AuthContext,
    today: date | None = None,
) -> AnalyticsResponse:
    """Build the manager dashboard: status counts, latency, monthly volume, utilization, leaderboard."""
    if not auth.is_manager:
        raise AuthorizationError("Only managers can view analytics")

    settings = get_settings()
    today = today or datetime.now(UTC).date()

    return AnalyticsResponse(
        status_counts=await _status_counts(session),
        average_decision_hours=await _average_decision_hours(session),
        requests_by_month=await _requests_by_month(session, today, settings.analytics_window_months),
        utilization=await _utilization(session),
        top_requesters=await _top_requesters(session, settings.leaderboard_size),
    )
