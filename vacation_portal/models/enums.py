from __future__ import annotations

import enum


class AccountRole(enum.StrEnum):
    """Role of an account, fixed at creation."""

    MANAGER = "manager"
    EMPLOYEE = "employee"


class RequestStatus(enum.StrEnum):
    """Lifecycle state of a vacation request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestAction(enum.StrEnum):
    """Operations that act on an existing vacation request."""

    EDIT = "edit"
    APPROVE = "approve"
    REJECT = "reject"
    DELETE = "delete"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    ACCOUNT = "ACCOUNT"
    REQUEST = "REQUEST"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    RECOMPUTE = "RECOMPUTE"
