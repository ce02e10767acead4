from sqlmodel import SQLModel

from vacation_portal.models.account import Account
from vacation_portal.models.audit import AuditLog
from vacation_portal.models.base import IntIdBase, TimestampMixin
from vacation_portal.models.enums import (
    AccountRole,
    AuditAction,
    AuditEntityType,
    RequestAction,
    RequestStatus,
)
from vacation_portal.models.request import VacationRequest

__all__ = [
    "Account",
    "AccountRole",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "IntIdBase",
    "RequestAction",
    "RequestStatus",
    "SQLModel",
    "TimestampMixin",
    "VacationRequest",
]
