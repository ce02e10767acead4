from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from vacation_portal.models.base import IntIdBase, TimestampMixin
from vacation_portal.models.enums import AccountRole


class Account(IntIdBase, TimestampMixin, table=True):
    """A person with a role and a vacation-day balance."""

    __tablename__ = "account"
    __table_args__ = (
        sa.CheckConstraint(
            "used_days >= 0 AND used_days <= total_days",
            name="valid_vacation_days",
        ),
    )

    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)
    employee_code: str = Field(max_length=7, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    role: str = Field(
        default=AccountRole.EMPLOYEE, max_length=20, index=True, sa_column_kwargs={"server_default": "employee"}
    )
    total_days: int = Field(default=20, sa_column_kwargs={"server_default": "20"})
    used_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})

    @property
    def remaining_days(self) -> int:
        return self.total_days - self.used_days
