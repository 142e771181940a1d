"""Order and payment-record transition tables.

Customer and payment flows go through `ensure_transition`. The admin status
update validates the enum values only.
"""

from common.choices import OrderStatus, PaymentRecordStatus
from common.exceptions import Conflict

ORDER_TRANSITIONS = {
    OrderStatus.PLACED: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

CANCELLABLE = frozenset(
    status for status, targets in ORDER_TRANSITIONS.items() if OrderStatus.CANCELLED in targets
)

PAYMENT_RECORD_TRANSITIONS = {
    PaymentRecordStatus.CREATED: frozenset({PaymentRecordStatus.PAID, PaymentRecordStatus.FAILED}),
    PaymentRecordStatus.FAILED: frozenset({PaymentRecordStatus.PAID}),
    PaymentRecordStatus.PAID: frozenset(),
}


def can_transition(current, target) -> bool:
    return target in ORDER_TRANSITIONS.get(current, frozenset())


def is_terminal(status) -> bool:
    return not ORDER_TRANSITIONS.get(status)


def ensure_transition(current, target) -> None:
    """Raise `Conflict` unless the order may move from `current` to `target`."""
    if not can_transition(current, target):
        raise Conflict(f"Cannot change order status from {current} to {target}")


def ensure_payment_transition(current, target) -> None:
    if target not in PAYMENT_RECORD_TRANSITIONS.get(current, frozenset()):
        raise Conflict(f"Cannot change payment status from {current} to {target}")
