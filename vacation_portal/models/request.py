# ruff: noqa: TC003
from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_portal.models.base import IntIdBase, TimestampMixin
from vacation_portal.models.enums import RequestStatus


class VacationRequest(IntIdBase, TimestampMixin, table=True):
    """A date-range request for time off, owned by one account.

    ``created_at`` doubles as the submission timestamp.
    """

    __tablename__ = "vacation_request"
    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="valid_date_range"),
        sa.Index("ix_vacation_request_dates", "start_date", "end_date"),
        sa.Index("ix_vacation_request_account_status", "account_id", "status"),
    )

    account_id: int = Field(
        sa_column=sa.Column(sa.Integer, sa.ForeignKey("account.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date = Field(sa_type=sa.Date)  # ty: ignore[invalid-argument-type]
    end_date: date = Field(sa_type=sa.Date)  # ty: ignore[invalid-argument-type]
    reason: str | None = Field(default=None, max_length=1000)
    status: str = Field(
        default=RequestStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    decided_by: int | None = Field(
        default=None,
        sa_column=sa.Column(sa.Integer, sa.ForeignKey("account.id", ondelete="SET NULL"), nullable=True),
    )
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decision_note: str | None = Field(default=None, max_length=1000)

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1
