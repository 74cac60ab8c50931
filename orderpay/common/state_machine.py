"""Order status transitions enforced on payment verification."""

from orderpay.common.errors import InvalidTransition

PENDING = "pending"
PAID = "paid"
FAILED = "failed"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    PENDING: {PAID, FAILED},
    PAID: set(),
    FAILED: set(),
}


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(f"Invalid transition: {current} -> {new}")
