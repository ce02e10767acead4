from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacation_portal.config import get_settings
from vacation_portal.exceptions import AppError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from vacation_portal.models.account import Account
from vacation_portal.models.enums import AccountRole, AuditAction, AuditEntityType
from vacation_portal.models.request import VacationRequest
from vacation_portal.schemas.account import AccountListResponse, AccountResponse
from vacation_portal.security import hash_password, verify_password
from vacation_portal.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_portal.schemas.account import CreateAccountPayload, UpdateAccountPayload
    from vacation_portal.schemas.auth import AuthContext, LoginPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_account_response(account: Account) -> AccountResponse:
    """Map an account model to its response schema."""
    return AccountResponse(
        id=account.id,  # ty: ignore[invalid-argument-type]
        name=account.name,
        email=account.email,
        employee_code=account.employee_code,
        role=AccountRole(account.role),
        total_days=account.total_days,
        used_days=account.used_days,
        remaining_days=account.remaining_days,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


async def get_account_or_404(
    session: AsyncSession,
    account_id: int,
    *,
    for_update: bool = False,
) -> Account:
    """Fetch an account by ID, optionally locking the row. Raises NotFoundError."""
    query = select(Account).where(col(Account.id) == account_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query.execution_options(populate_existing=True))
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFoundError(f"Account {account_id} not found")
    return account


async def _ensure_unique(
    session: AsyncSession,
    *,
    email: str | None = None,
    employee_code: str | None = None,
    exclude_id: int | None = None,
) -> None:
    """Raise ConflictError if the email or employee code is already taken."""
    checks = []
    if email is not None:
        checks.append((col(Account.email) == email, "Email already exists"))
    if employee_code is not None:
        checks.append((col(Account.employee_code) == employee_code, "Employee code already exists"))

    for condition, message in checks:
        query = select(Account.id).where(condition)
        if exclude_id is not None:
            query = query.where(col(Account.id) != exclude_id)
        result = await session.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            raise ConflictError(message)


def _require_manager(auth: AuthContext, message: str) -> None:
    if not auth.is_manager:
        raise AuthorizationError(message)


def _require_self_or_manager(auth: AuthContext, account_id: int) -> None:
    if not auth.is_manager and auth.account_id != account_id:
        raise AuthorizationError("Employees can only access their own account")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_account(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateAccountPayload,
) -> AccountResponse:
    """Create an account with a hashed password (manager only)."""
    _require_manager(auth, "Only managers can create accounts")
    await _ensure_unique(session, email=payload.email, employee_code=payload.employee_code)

    total_days = payload.total_days if payload.total_days is not None else get_settings().default_vacation_days
    account = Account(
        name=payload.name,
        email=payload.email,
        employee_code=payload.employee_code,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        total_days=total_days,
        used_days=0,
    )
    session.add(account)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Email or employee code already exists") from None

    await write_audit_log(
        session,
        actor_id=auth.account_id,
        entity_type=AuditEntityType.ACCOUNT,
        entity_id=account.id,  # ty: ignore[invalid-argument-type]
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(account),
    )

    await session.commit()
    await session.refresh(account)
    logger.info("Account %s (%s) created by %s", account.id, account.role, auth.account_id)
    return _build_account_response(account)


async def update_account(
    session: AsyncSession,
    auth: AuthContext,
    account_id: int,
    payload: UpdateAccountPayload,
) -> AccountResponse:
    """Update name, email or password. Allowed for managers and for the account itself."""
    _require_self_or_manager(auth, account_id)
    account = await get_account_or_404(session, account_id, for_update=True)

    if payload.email is not None and payload.email != account.email:
        await _ensure_unique(session, email=payload.email, exclude_id=account_id)

    before_dict = model_to_audit_dict(account)

    if payload.name is not None:
        account.name = payload.name
    if payload.email is not None:
        account.email = payload.email
    if payload.password is not None:
        account.password_hash = hash_password(payload.password)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Email already exists") from None

    await write_audit_log(
        session,
        actor_id=auth.account_id,
        entity_type=AuditEntityType.ACCOUNT,
        entity_id=account_id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(account),
    )

    await session.commit()
    await session.refresh(account)
    return _build_account_response(account)


async def delete_account(
    session: AsyncSession,
    auth: AuthContext,
    account_id: int,
) -> None:
    """Delete an account and all of its requests (manager only)."""
    _require_manager(auth, "Only managers can delete accounts")
    if auth.account_id == account_id:
        raise ValidationError("Cannot delete your own account")

    account = await get_account_or_404(session, account_id, for_update=True)
    before_dict = model_to_audit_dict(account)

    # Explicit cascade so backends without enforced foreign keys stay consistent.
    deleted = await session.execute(delete(VacationRequest).where(col(VacationRequest.account_id) == account_id))
    await session.execute(
        update(VacationRequest).where(col(VacationRequest.decided_by) == account_id).values(decided_by=None)
    )
    await session.delete(account)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.account_id,
        entity_type=AuditEntityType.ACCOUNT,
        entity_id=account_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )

    await session.commit()
    logger.info(
        "Account %s deleted by %s together with %d requests",
        account_id,
        auth.account_id,
        deleted.rowcount,  # ty: ignore[unresolved-attribute]
    )


async def get_account(
    session: AsyncSession,
    auth: AuthContext,
    account_id: int,
) -> AccountResponse:
    """Get a single account. Employees may only read their own."""
    _require_self_or_manager(auth, account_id)
    account = await get_account_or_404(session, account_id)
    return _build_account_response(account)


async def list_accounts(
    session: AsyncSession,
    auth: AuthContext,
    role: AccountRole | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AccountListResponse:
    """List accounts (manager only), newest first."""
    _require_manager(auth, "Only managers can list accounts")

    filters = []
    if role is not None:
        filters.append(col(Account.role) == role.value)
    if search:
        filters.append(
            or_(
                col(Account.name).icontains(search, autoescape=True),
                col(Account.email).icontains(search, autoescape=True),
                col(Account.employee_code).icontains(search, autoescape=True),
            )
        )

    count_result = await session.execute(select(func.count()).select_from(Account).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Account)
        .where(*filters)
        .order_by(col(Account.created_at).desc(), col(Account.id).desc())
        .offset(offset)
        .limit(limit)
    )
    accounts = list(result.scalars().all())

    return AccountListResponse(items=[_build_account_response(a) for a in accounts], total=total)


async def authenticate(session: AsyncSession, payload: LoginPayload) -> AccountResponse:
    """Verify email and password; token issuance is left to the identity gateway."""
    result = await session.execute(select(Account).where(col(Account.email) == payload.email))
    account = result.scalar_one_or_none()
    if account is None or not verify_password(payload.password, account.password_hash):
        raise AppError("Invalid email or password", status_code=status.HTTP_401_UNAUTHORIZED)
    return _build_account_response(account)
