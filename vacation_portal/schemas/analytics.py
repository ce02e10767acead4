from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class StatusCounts(BaseModel):
    """Request counts by lifecycle state."""

    total: int
    pending: int
    approved: int
    rejected: int


class MonthlyCount(BaseModel):
    """Number of requests submitted in one calendar month (``YYYY-MM``)."""

    month: str
    count: int


class AccountUtilization(BaseModel):
    """How much of an account's entitlement has been consumed."""

    account_id: int
    account_name: str
    used_days: int
    total_days: int
    ratio: float
    percent: float


class RequesterCount(BaseModel):
    """Leaderboard row: an account and its total request count."""

    account_id: int
    account_name: str
    request_count: int


class AnalyticsResponse(BaseModel):
    """Aggregate statistics for the manager dashboard."""

    status_counts: StatusCounts
    average_decision_hours: float | None
    requests_by_month: list[MonthlyCount]
    utilization: list[AccountUtilization]
    top_requesters: list[RequesterCount]


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: int
    actor_id: int | None
    entity_type: str
    entity_id: int
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    total: int


class RepairResult(BaseModel):
    """Outcome of a balance repair run."""

    processed: int
    corrected: int
    skipped: int
