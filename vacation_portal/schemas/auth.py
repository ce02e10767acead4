from __future__ import annotations

from pydantic import BaseModel, Field

from vacation_portal.models.enums import AccountRole


class AuthContext(BaseModel):
    """Trusted principal supplied by the identity layer."""

    account_id: int
    role: AccountRole = AccountRole.EMPLOYEE

    @property
    def is_manager(self) -> bool:
        return self.role == AccountRole.MANAGER


class LoginPayload(BaseModel):
    """Request body for credential verification."""

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
