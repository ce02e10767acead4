# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, Response, status

from vacation_portal.api.deps import AuthDep
from vacation_portal.db import SessionDep
from vacation_portal.models.enums import RequestStatus
from vacation_portal.schemas.request import (
    CreateRequestPayload,
    DecisionPayload,
    RequestListResponse,
    RequestResponse,
    UpdateRequestPayload,
)
from vacation_portal.services import request as request_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Submit a new vacation request (employee only)."""
    return await request_service.create_request(session, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=255),
    account_id: int | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List vacation requests. Employees only see their own."""
    return await request_service.list_requests(
        session, auth, status_filter, search, account_id, start_date, end_date, offset, limit
    )


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: int,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single vacation request."""
    return await request_service.get_request(session, auth, request_id)


@requests_router.patch("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: int,
    payload: UpdateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Edit the dates or reason of a pending request (owner only)."""
    return await request_service.update_request(session, auth, request_id, payload)


@requests_router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: int,
    session: SessionDep,
    auth: AuthDep,
) -> Response:
    """Delete a pending request (owner or manager)."""
    await request_service.delete_request(session, auth, request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@requests_router.post("/{request_id}/approve", response_model=RequestResponse)
async def approve_request(
    request_id: int,
    session: SessionDep,
    auth: AuthDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending request (manager only)."""
    return await request_service.approve_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/reject", response_model=RequestResponse)
async def reject_request(
    request_id: int,
    session: SessionDep,
    auth: AuthDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject a pending request (manager only)."""
    return await request_service.reject_request(session, auth, request_id, payload)
