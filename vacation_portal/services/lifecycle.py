from __future__ import annotations

from vacation_portal.exceptions import ConflictError
from vacation_portal.models.enums import RequestAction, RequestStatus

# (current status, action) -> next status. None means the request is removed.
# Terminal states have no outgoing edges.
_TRANSITIONS: dict[tuple[RequestStatus, RequestAction], RequestStatus | None] = {
    (RequestStatus.PENDING, RequestAction.EDIT): RequestStatus.PENDING,
    (RequestStatus.PENDING, RequestAction.APPROVE): RequestStatus.APPROVED,
    (RequestStatus.PENDING, RequestAction.REJECT): RequestStatus.REJECTED,
    (RequestStatus.PENDING, RequestAction.DELETE): None,
}

TERMINAL_STATUSES = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})


def can_transition(current: RequestStatus | str, action: RequestAction) -> bool:
    """Return True if ``action`` is allowed from ``current``."""
    return (RequestStatus(current), action) in _TRANSITIONS


def transition(current: RequestStatus | str, action: RequestAction) -> RequestStatus | None:
    """Validate ``action`` against ``current`` and return the resulting status.

    Raises ConflictError when the request is not in a state that allows the action.
    """
    key = (RequestStatus(current), action)
    if key not in _TRANSITIONS:
        raise ConflictError(f"Only pending requests can be modified or decided (request is {key[0].value})")
    return _TRANSITIONS[key]
