from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacation_portal.exceptions import AuthorizationError, ConflictError, NotFoundError
from vacation_portal.models.account import Account
from vacation_portal.models.enums import AccountRole, AuditAction, AuditEntityType, RequestAction, RequestStatus
from vacation_portal.models.request import VacationRequest
from vacation_portal.schemas.request import RequestListResponse, RequestResponse
from vacation_portal.services import ledger
from vacation_portal.services.account import get_account_or_404
from vacation_portal.services.audit import model_to_audit_dict, write_audit_log
from vacation_portal.services.eligibility import ensure_admissible
from vacation_portal.services.lifecycle import transition

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_portal.schemas.auth import AuthContext
    from vacation_portal.schemas.request import CreateRequestPayload, DecisionPayload, UpdateRequestPayload

logger = logging.getLogger(__name__)

_STALE_STATE_MESSAGE = "Request is no longer pending; it was changed by another operation"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(
    request: VacationRequest,
    account_name: str | None = None,
    account_email: str | None = None,
) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,  # ty: ignore[invalid-argument-type]
        account_id=request.account_id,
        account_name=account_name,
        account_email=account_email,
        start_date=request.start_date,
        end_date=request.end_date,
        duration_days=request.duration_days,
        reason=request.reason,
        status=RequestStatus(request.status),
        decided_by=request.decided_by,
        decided_at=request.decided_at,
        decision_note=request.decision_note,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: int) -> VacationRequest:
    """Fetch a request by ID. Raises NotFoundError if absent."""
    result = await session.execute(
        select(VacationRequest)
        .where(col(VacationRequest.id) == request_id)
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError(f"Request {request_id} not found")
    return request


async def _decide(
    session: AsyncSession,
    auth: AuthContext,
    request_id: int,
    action: RequestAction,
    note: str | None,
) -> RequestResponse:
    """Shared logic for approve and reject.

    1. Lock the owner's account row, then re-read the request under that lock.
    2. Validate the transition from the stored status.
    3. Conditionally update the row (only while still pending).
    4. On approval, increment the owner's used days in the same transaction.
    5. Audit log.
    6. Commit.

    Edits take the same account lock, so the duration charged on approval is
    the one stored when the status flips.
    """
    if not auth.is_manager:
        raise AuthorizationError("Only managers can decide vacation requests")

    await get_account_or_404(session, auth.account_id)
    vacation_request = await _get_request_or_404(session, request_id)
    await get_account_or_404(session, vacation_request.account_id, for_update=True)
    vacation_request = await _get_request_or_404(session, request_id)

    new_status = transition(vacation_request.status, action)
    before_dict = model_to_audit_dict(vacation_request)
    days = vacation_request.duration_days

    try:
        result = await session.execute(
            update(VacationRequest)
            .where(
                col(VacationRequest.id) == request_id,
                col(VacationRequest.status) == RequestStatus.PENDING.value,
            )
            .values(
                status=new_status,
                decided_by=auth.account_id,
                decided_at=datetime.now(UTC),
                decision_note=note,
            )
        )
    except IntegrityError:
        # decided_by references an account deleted after the check above.
        await session.rollback()
        raise NotFoundError(f"Account {auth.account_id} not found") from None
    if result.rowcount == 0:  # ty: ignore[unresolved-attribute]
        await session.rollback()
        raise ConflictError(_STALE_STATE_MESSAGE)

    if new_status == RequestStatus.APPROVED:
        try:
            await ledger.apply_approval(session, vacation_request.account_id, days)
        except IntegrityError:
            await session.rollback()
            raise ConflictError("Approving this request would exceed the account's vacation entitlement") from None

    await session.refresh(vacation_request)
    await write_audit_log(
        session,
        actor_id=auth.account_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request_id,
        action=AuditAction.APPROVE if new_status == RequestStatus.APPROVED else AuditAction.REJECT,
        before_json=before_dict,
        after_json=model_to_audit_dict(vacation_request),
    )

    await session.commit()
    logger.info(
        "Request %s %s by manager %s (%d days, account %s)",
        request_id,
        new_status.value,
        auth.account_id,
        days,
        vacation_request.account_id,
    )
    return _build_request_response(vacation_request)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateRequestPayload,
) -> RequestResponse:
    """Submit a vacation request for the calling employee.

    Flow:
    1. Require the employee role
    2. Lock the owner's account row
    3. Check date order, balance and overlap against that snapshot
    4. Insert the request as pending
    5. Audit log and commit
    """
    if auth.role != AccountRole.EMPLOYEE:
        raise AuthorizationError("Only employees can create vacation requests")

    account = await get_account_or_404(session, auth.account_id, for_update=True)
    days = await ensure_admissible(session, account, payload.start_date, payload.end_date)

    vacation_request = VacationRequest(
        account_id=auth.account_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        status=RequestStatus.PENDING.value,
    )
    session.add(vacation_request)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.account_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=vacation_request.id,  # ty: ignore[invalid-argument-type]
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(vacation_request),
    )

    await session.commit()
    await session.refresh(vacation_request)
    logger.info("Request %s created by account %s (%d days)", vacation_request.id, auth.account_id, days)
    return _build_request_response(vacation_request, account.name, account.email)


async def update_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: int,
    payload: UpdateRequestPayload,
) -> RequestResponse:
    """Edit a pending request's dates and/or reason (owner only).

    The merged candidate range is re-validated, excluding the request itself,
    and all fields are written together or not at all.
    """
    vacation_request = await _get_request_or_404(session, request_id)
    if vacation_request.account_id != auth.account_id:
        raise AuthorizationError("Only the owner can edit a vacation request")
    transition(vacation_request.status, RequestAction.EDIT)

    account = await get_account_or_404(session, vacation_request.account_id, for_update=True)

    start_date = payload.start_date if payload.start_date is not None else vacation_request.start_date
    end_date = payload.end_date if payload.end_date is not None else vacation_request.end_date
    reason = payload.reason if "reason" in payload.model_fields_set else vacation_request.reason

    await ensure_admissible(session, account, start_date, end_date, exclude_request_id=request_id)

    before_dict = model_to_audit_dict(vacation_request)
    result = await session.execute(
        update(VacationRequest)
        .where(
            col(VacationRequest.id) == request_id,
            col(VacationRequest.status) == RequestStatus.PENDING.value,
        )
        .values(start_date=start_date, end_date=end_date, reason=reason)
    )
    if result.rowcount == 0:  # ty: ignore[unresolved-attribute]
        await session.rollback()
        raise ConflictError(_STALE_STATE_MESSAGE)

    await session.refresh(vacation_request)
    await write_audit_log(
        session,
        actor_id=auth.account_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request_id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(vacation_request),
    )

    await session.commit()
    return _build_request_response(vacation_request, account.name, account.email)


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: int,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending request and charge its duration to the owner's balance."""
    return await _decide(session, auth, request_id, RequestAction.APPROVE, payload.note if payload else None)


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: int,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject a pending request. The balance is not touched."""
    return await _decide(session, auth, request_id, RequestAction.REJECT, payload.note if payload else None)


async def delete_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: int,
) -> None:
    """Delete a pending request. The owner or any manager may do this."""
    vacation_request = await _get_request_or_404(session, request_id)
    if not auth.is_manager and vacation_request.account_id != auth.account_id:
        raise AuthorizationError("Not authorized to delete this request")
    transition(vacation_request.status, RequestAction.DELETE)

    before_dict = model_to_audit_dict(vacation_request)
    result = await session.execute(
        delete(VacationRequest).where(
            col(VacationRequest.id) == request_id,
            col(VacationRequest.status) == RequestStatus.PENDING.value,
        )
    )
    if result.rowcount == 0:  # ty: ignore[unresolved-attribute]
        await session.rollback()
        raise ConflictError(_STALE_STATE_MESSAGE)

    await write_audit_log(
        session,
        actor_id=auth.account_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    await session.commit()
    logger.info("Request %s deleted by account %s", request_id, auth.account_id)


async def get_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: int,
) -> RequestResponse:
    """Get a single request. Employees may only read their own."""
    result = await session.execute(
        select(VacationRequest, Account.name, Account.email)
        .join(Account, col(Account.id) == col(VacationRequest.account_id))
        .where(col(VacationRequest.id) == request_id)
        .execution_options(populate_existing=True)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(f"Request {request_id} not found")

    vacation_request, account_name, account_email = row
    if not auth.is_manager and vacation_request.account_id != auth.account_id:
        raise AuthorizationError("Employees can only view their own requests")
    return _build_request_response(vacation_request, account_name, account_email)


async def list_requests(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: RequestStatus | None = None,
    search: str | None = None,
    account_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, newest first.

    ``search`` is a case-insensitive substring match against the owner's
    name OR the request reason. Employees only ever see their own requests.
    """
    if not auth.is_manager:
        if account_id is not None and account_id != auth.account_id:
            raise AuthorizationError("Employees can only list their own requests")
        account_id = auth.account_id

    filters = []
    if status_filter is not None:
        filters.append(col(VacationRequest.status) == status_filter.value)
    if account_id is not None:
        filters.append(col(VacationRequest.account_id) == account_id)
    if start_date is not None:
        filters.append(col(VacationRequest.start_date) >= start_date)
    if end_date is not None:
        filters.append(col(VacationRequest.end_date) <= end_date)
    if search:
        filters.append(
            or_(
                col(Account.name).icontains(search, autoescape=True),
                col(VacationRequest.reason).icontains(search, autoescape=True),
            )
        )

    join_on = col(Account.id) == col(VacationRequest.account_id)

    count_result = await session.execute(
        select(func.count()).select_from(VacationRequest).join(Account, join_on).where(*filters)
    )
    total = count_result.scalar_one()

    result = await session.execute(
        select(VacationRequest, Account.name, Account.email)
        .join(Account, join_on)
        .where(*filters)
        .order_by(col(VacationRequest.created_at).desc(), col(VacationRequest.id).desc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )

    return RequestListResponse(
        items=[_build_request_response(r, name, email) for r, name, email in result.all()],
        total=total,
    )
