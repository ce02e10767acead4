# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header

from vacation_portal.exceptions import AuthorizationError
from vacation_portal.models.enums import AccountRole
from vacation_portal.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: int = Header(),
    x_role: AccountRole = Header(default=AccountRole.EMPLOYEE),
) -> AuthContext:
    """Build the principal from headers set by the upstream identity gateway."""
    return AuthContext(account_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_manager(
    auth: AuthDep,
) -> AuthContext:
    """Require the manager role for the request."""
    if not auth.is_manager:
        raise AuthorizationError("Manager access required")
    return auth


ManagerDep = Annotated[AuthContext, Depends(require_manager)]
