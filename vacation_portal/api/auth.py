# ruff: noqa: TC001
from __future__ import annotations

from fastapi import APIRouter

from vacation_portal.api.deps import AuthDep
from vacation_portal.db import SessionDep
from vacation_portal.schemas.account import AccountResponse
from vacation_portal.schemas.auth import LoginPayload
from vacation_portal.services import account as account_service

auth_router = APIRouter(tags=["auth"])


@auth_router.post("/auth/login", response_model=AccountResponse)
async def login(payload: LoginPayload, session: SessionDep) -> AccountResponse:
    """Verify credentials and return the matching account profile."""
    return await account_service.authenticate(session, payload)


@auth_router.get("/me", response_model=AccountResponse)
async def get_current_account(session: SessionDep, auth: AuthDep) -> AccountResponse:
    """Return the calling account, including its vacation balance."""
    return await account_service.get_account(session, auth, auth.account_id)
