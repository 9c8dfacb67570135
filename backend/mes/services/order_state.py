"""Production order lifecycle rules.

Pure functions with no database access, shared by the production service
and its tests.
"""

from mes.core.exceptions import InvalidTransitionError, OrderLockedError, OverProductionError
from mes.models.production import OrderStatus

TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    # reopen path
    OrderStatus.CANCELLED: frozenset({OrderStatus.PENDING}),
}

LOCKED_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


def is_valid_transition(from_status: str, to_status: str) -> bool:
    return to_status in TRANSITIONS.get(from_status, frozenset())


def check_transition(from_status: str, to_status: str) -> None:
    """Raise InvalidTransitionError unless from -> to is in the table."""
    if not is_valid_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status)


def ensure_mutable(status: str) -> None:
    if status in LOCKED_STATUSES:
        raise OrderLockedError(f"Order is {status} and can no longer be modified")


def derive_status(produced: int, quantity: int) -> str:
    """Status implied by reported production progress."""
    if produced == 0:
        return OrderStatus.PENDING
    if produced < quantity:
        return OrderStatus.PROCESSING
    return OrderStatus.COMPLETED


def check_produced(produced: int, quantity: int) -> None:
    if produced > quantity:
        raise OverProductionError(
            f"Produced quantity {produced} exceeds planned quantity {quantity}"
        )
