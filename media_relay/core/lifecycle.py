"""Request lifecycle transitions."""
from typing import Dict, FrozenSet

from media_relay.core.exceptions import InvalidTransitionError
from media_relay.core.models import RequestStatus

TERMINAL_STATUSES: FrozenSet[RequestStatus] = frozenset({
    RequestStatus.REJECTED,
    RequestStatus.APPROVED,
})

# Statuts à partir desquels un administrateur peut approuver ou rejeter
ADMIN_ACTIONABLE_STATUSES: FrozenSet[RequestStatus] = frozenset({
    RequestStatus.PENDING,
    RequestStatus.FAILED,
})

ALLOWED_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({
        RequestStatus.SUBMITTED,
        RequestStatus.FAILED,
        RequestStatus.REJECTED,
    }),
    RequestStatus.FAILED: frozenset({
        RequestStatus.SUBMITTED,
        RequestStatus.FAILED,
        RequestStatus.REJECTED,
    }),
    RequestStatus.SUBMITTED: frozenset({RequestStatus.APPROVED}),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.APPROVED: frozenset(),
}

# Statuts possibles à la création d'une demande
INITIAL_STATUSES: FrozenSet[RequestStatus] = frozenset({
    RequestStatus.REJECTED,
    RequestStatus.PENDING,
    RequestStatus.SUBMITTED,
    RequestStatus.FAILED,
})


def is_terminal(status: RequestStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: RequestStatus, new: RequestStatus) -> bool:
    """Vérifie si le moteur peut passer de `current` à `new`."""
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(current: RequestStatus, new: RequestStatus) -> None:
    if not can_transition(current, new):
        raise InvalidTransitionError(
            f"Cannot move request from {current.value} to {new.value}"
        )


def validate_initial_status(status: RequestStatus) -> None:
    if status not in INITIAL_STATUSES:
        raise InvalidTransitionError(f"Requests cannot be created as {status.value}")


def ensure_admin_actionable(status: RequestStatus, action: str) -> None:
    """Approve/reject ne sont permis que sur PENDING ou FAILED."""
    if status not in ADMIN_ACTIONABLE_STATUSES:
        raise InvalidTransitionError(
            f"Request must be in PENDING or FAILED status to {action}"
        )
