# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from vacation_portal.models.enums import AccountRole

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CreateAccountPayload(BaseModel):
    """Request body for creating an account (manager only)."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=_EMAIL_PATTERN)
    employee_code: str = Field(pattern=r"^\d{7}$")
    password: str = Field(min_length=8, max_length=128)
    role: AccountRole = AccountRole.EMPLOYEE
    total_days: int | None = Field(default=None, ge=0, le=366)


class UpdateAccountPayload(BaseModel):
    """Request body for updating an account.

    Role and balance are not part of the generic update; unknown fields are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255, pattern=_EMAIL_PATTERN)
    password: str | None = Field(default=None, min_length=8, max_length=128)


class AccountResponse(BaseModel):
    """Response schema for an account, without credentials."""

    id: int
    name: str
    email: str
    employee_code: str
    role: AccountRole
    total_days: int
    used_days: int
    remaining_days: int
    created_at: datetime
    updated_at: datetime


class AccountListResponse(BaseModel):
    """Paginated list of accounts."""

    items: list[AccountResponse]
    total: int
