# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from vacation_portal.api.deps import AuthDep, ManagerDep
from vacation_portal.db import SessionDep
from vacation_portal.models.enums import AccountRole
from vacation_portal.schemas.account import (
    AccountListResponse,
    AccountResponse,
    CreateAccountPayload,
    UpdateAccountPayload,
)
from vacation_portal.services import account as account_service

accounts_router = APIRouter(prefix="/accounts", tags=["accounts"])


@accounts_router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: CreateAccountPayload,
    session: SessionDep,
    auth: ManagerDep,
) -> AccountResponse:
    """Create a manager or employee account (manager only)."""
    return await account_service.create_account(session, auth, payload)


@accounts_router.get("", response_model=AccountListResponse)
async def list_accounts(
    session: SessionDep,
    auth: ManagerDep,
    role: AccountRole | None = Query(default=None),
    search: str | None = Query(default=None, max_length=255),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AccountListResponse:
    """List accounts (manager only)."""
    return await account_service.list_accounts(session, auth, role, search, offset, limit)


@accounts_router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    session: SessionDep,
    auth: AuthDep,
) -> AccountResponse:
    """Get one account. Employees may only read their own."""
    return await account_service.get_account(session, auth, account_id)


@accounts_router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int,
    payload: UpdateAccountPayload,
    session: SessionDep,
    auth: AuthDep,
) -> AccountResponse:
    """Update name, email or password (manager or the account itself)."""
    return await account_service.update_account(session, auth, account_id, payload)


@accounts_router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: int,
    session: SessionDep,
    auth: ManagerDep,
) -> Response:
    """Delete an account and its requests (manager only)."""
    await account_service.delete_account(session, auth, account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
