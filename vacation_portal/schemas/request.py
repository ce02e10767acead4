# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from vacation_portal.models.enums import RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateRequestPayload(BaseModel):
    """Request body for submitting a new vacation request."""

    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=1000)


class UpdateRequestPayload(BaseModel):
    """Request body for editing a pending request. Omitted fields keep their value."""

    model_config = ConfigDict(extra="forbid")

    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=1000)


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    note: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single vacation request."""

    id: int
    account_id: int
    account_name: str | None = None
    account_email: str | None = None
    start_date: date
    end_date: date
    duration_days: int
    reason: str | None
    status: RequestStatus
    decided_by: int | None
    decided_at: datetime | None
    decision_note: str | None
    created_at: datetime
    updated_at: datetime


class RequestListResponse(BaseModel):
    """Paginated list of vacation requests."""

    items: list[RequestResponse]
    total: int
