"""Order services: placement from the cart, cancellation and admin status edits.

Placement and cancellation each run in one transaction. Stock moves only via
`inventory.services.reserve` / `release`, nested as savepoints.
"""

import logging
import random
from datetime import timedelta

from cart.models import Cart
from cart.pricing import line_subtotal, recompute_totals
from cart.services import empty_cart
from catalog.models import Product
from common.choices import OrderStatus, PaymentMethod, PaymentRecordStatus, PaymentStatus
from common.exceptions import (
    Conflict,
    DomainError,
    EmptyCart,
    InsufficientStock,
    InternalError,
    ProductUnavailable,
    ValidationError,
)
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from inventory import services as inventory
from payments.models import Payment

from .emails import send_order_confirmation_email
from .models import Order, OrderItem
from .state import CANCELLABLE

logger = logging.getLogger("shopfront.orders")

REQUIRED_ADDRESS_FIELDS = ("full_name", "phone", "address_line1", "city", "state", "postal_code")
OPTIONAL_ADDRESS_FIELDS = ("address_line2",)
DEFAULT_COUNTRY = "India"


def validate_shipping_address(address) -> dict:
    """Return a cleaned copy of `address` or raise `ValidationError` naming missing fields."""

    if not isinstance(address, dict):
        raise ValidationError("Complete shipping address is required")

    cleaned = {}
    missing = []
    for field in REQUIRED_ADDRESS_FIELDS:
        value = str(address.get(field) or "").strip()
        if not value:
            missing.append(field)
        cleaned[field] = value
    if missing:
        raise ValidationError(f"Complete shipping address is required (missing: {', '.join(missing)})")

    for field in OPTIONAL_ADDRESS_FIELDS:
        cleaned[field] = str(address.get(field) or "").strip()
    cleaned["country"] = str(address.get("country") or "").strip() or DEFAULT_COUNTRY
    return cleaned


def validate_payment_method(payment_method) -> str:
    if payment_method not in PaymentMethod.values:
        raise ValidationError("Invalid payment method")
    return payment_method


def generate_order_number() -> str:
    """``ORD-<epoch milliseconds>-<5 random digits>``."""
    millis = int(timezone.now().timestamp() * 1000)
    return f"ORD-{millis}-{random.randint(10000, 99999)}"


def _insert_order(**fields) -> Order:
    attempts = max(1, int(getattr(settings, "ORDER_NUMBER_MAX_ATTEMPTS", 5)))
    for attempt in range(1, attempts + 1):
        order_number = generate_order_number()
        try:
            with transaction.atomic():
                return Order.objects.create(order_number=order_number, **fields)
        except IntegrityError:
            logger.warning("order.number_collision", extra={"order_number": order_number, "attempt": attempt})
    raise InternalError("Could not allocate an order number")


def _lock_line_product(item) -> Product:
    product = Product.objects.select_for_update().filter(pk=item.product_id, is_active=True).first()
    if product is None:
        raise ProductUnavailable(f"Product {item.product_name} is no longer available")
    if item.quantity > product.stock:
        raise InsufficientStock(f"Insufficient stock for {item.product_name}")
    return product


@transaction.atomic
def create_order_from_cart(*, user, shipping_address, payment_method=PaymentMethod.COD) -> Order:
    """Turn the user's active cart into an order.

    Every line is re-validated against the locked product row and its stock is
    reserved for both payment methods. Any failure rolls back the whole
    placement: no order, no stock change, cart untouched.
    """

    address = validate_shipping_address(shipping_address)
    payment_method = validate_payment_method(payment_method)

    cart = Cart.objects.select_for_update().filter(user=user, is_active=True).first()
    lines = list(cart.items.order_by("id")) if cart is not None else []
    if not lines:
        raise EmptyCart()

    for item in lines:
        _lock_line_product(item)

    totals = recompute_totals([(item.unit_price, item.quantity) for item in lines], cart.discount)
    order = _insert_order(
        user=user,
        subtotal=totals.subtotal,
        discount=cart.discount,
        discount_amount=totals.discount_amount,
        total_amount=totals.subtotal - totals.discount_amount,
        total_items=totals.total_items,
        currency=getattr(settings, "PAYMENT_CURRENCY", "INR"),
        payment_method=payment_method,
        payment_status=PaymentStatus.PENDING,
        order_status=OrderStatus.PLACED,
        shipping_address=address,
    )

    for item in lines:
        inventory.reserve(
            product_id=item.product_id,
            quantity=item.quantity,
            reference=order.order_number,
            reason="order_placed",
        )
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product_id=item.product_id,
                product_name=item.product_name,
                product_image=item.product_image,
                unit_price=item.unit_price,
                quantity=item.quantity,
                subtotal=line_subtotal(item.unit_price, item.quantity),
            )
            for item in lines
        ]
    )
    empty_cart(cart)

    logger.info(
        "order.created",
        extra={
            "order_id": order.id,
            "order_number": order.order_number,
            "user_id": user.id,
            "payment_method": payment_method,
            "total_amount": str(order.total_amount),
            "total_items": order.total_items,
        },
    )
    if payment_method == PaymentMethod.COD:
        transaction.on_commit(lambda: send_order_confirmation_email(order))
    return order


def _log_status_change(order: Order, previous: str, actor) -> None:
    logger.info(
        "order.status_changed",
        extra={
            "order_id": order.id,
            "order_number": order.order_number,
            "status_from": previous,
            "status_to": order.order_status,
            "actor_id": getattr(actor, "id", None),
        },
    )


def _restore_stock(order: Order) -> int:
    """Release each line's stock in its own savepoint. Returns the number of failed lines."""

    failures = 0
    for item in order.items.all():
        try:
            inventory.release(
                product_id=item.product_id,
                quantity=item.quantity,
                reference=order.order_number,
                reason="order_cancelled",
            )
        except (DomainError, DatabaseError):
            failures += 1
            logger.exception(
                "order.stock_restore_failed",
                extra={
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                },
            )
    return failures


def _fail_open_payments(order: Order) -> None:
    Payment.objects.filter(order=order, status=PaymentRecordStatus.CREATED).update(
        status=PaymentRecordStatus.FAILED, updated_at=timezone.now()
    )


def _apply_cancellation(order: Order, *, actor, payment_status=None) -> Order:
    previous = order.order_status
    _restore_stock(order)

    order.order_status = OrderStatus.CANCELLED
    if payment_status is not None:
        order.payment_status = payment_status
    elif order.payment_method == PaymentMethod.ONLINE:
        # Refund itself happens at the gateway, outside this system.
        order.payment_status = PaymentStatus.REFUNDED
    order.cancelled_at = timezone.now()
    order.cancelled_by = actor if getattr(actor, "pk", None) else None
    order.is_active = False
    order.save(
        update_fields=[
            "order_status",
            "payment_status",
            "cancelled_at",
            "cancelled_by",
            "is_active",
            "updated_at",
        ]
    )
    _fail_open_payments(order)

    _log_status_change(order, previous, actor)
    logger.info(
        "order.cancelled",
        extra={
            "order_id": order.id,
            "order_number": order.order_number,
            "payment_status": order.payment_status,
            "actor_id": getattr(actor, "id", None),
        },
    )
    return order


def _lock_order(order) -> Order:
    return Order.objects.select_for_update().get(pk=getattr(order, "pk", order))


@transaction.atomic
def cancel_order(*, order, actor) -> Order:
    """Cancel a placed or confirmed order and put its stock back.

    Stock restoration is best-effort per line: a line that fails is logged as
    ``order.stock_restore_failed`` and the cancellation still goes through.
    """

    order = _lock_order(order)
    if order.order_status not in CANCELLABLE:
        raise Conflict(f"Order cannot be cancelled once {order.order_status}")
    return _apply_cancellation(order, actor=actor)


@transaction.atomic
def admin_update_status(*, order, actor, order_status=None, payment_status=None) -> Order:
    """Set order and/or payment status as an administrator.

    Only enum membership is checked; any combination is accepted. Moving into
    ``cancelled`` performs the same stock restoration and refund flagging as a
    customer cancellation. An explicit `payment_status` is applied last.
    """

    if order_status is None and payment_status is None:
        raise ValidationError("Provide order_status or payment_status")
    if order_status is not None and order_status not in OrderStatus.values:
        raise ValidationError(f"Invalid order status: {order_status}")
    if payment_status is not None and payment_status not in PaymentStatus.values:
        raise ValidationError(f"Invalid payment status: {payment_status}")

    order = _lock_order(order)
    if order_status == OrderStatus.CANCELLED and order.order_status != OrderStatus.CANCELLED:
        _apply_cancellation(order, actor=actor)
    elif order_status is not None and order_status != order.order_status:
        previous = order.order_status
        order.order_status = order_status
        order.save(update_fields=["order_status", "updated_at"])
        _log_status_change(order, previous, actor)

    if payment_status is not None and payment_status != order.payment_status:
        previous_payment = order.payment_status
        order.payment_status = payment_status
        order.save(update_fields=["payment_status", "updated_at"])
        logger.info(
            "order.payment_status_changed",
            extra={
                "order_id": order.id,
                "status_from": previous_payment,
                "status_to": payment_status,
                "actor_id": getattr(actor, "id", None),
            },
        )
    return order


def expire_unpaid_orders(*, older_than_minutes: int | None = None) -> list[str]:
    """Cancel ONLINE orders still awaiting payment past the TTL, releasing their stock.

    Each order is handled in its own transaction. Returns the expired order numbers.
    """

    ttl = older_than_minutes
    if ttl is None:
        ttl = int(getattr(settings, "ORDER_PAYMENT_TTL_MINUTES", 60))
    cutoff = timezone.now() - timedelta(minutes=ttl)
    candidates = Order.objects.filter(
        payment_method=PaymentMethod.ONLINE,
        payment_status=PaymentStatus.PENDING,
        order_status=OrderStatus.PLACED,
        created_at__lt=cutoff,
    ).values_list("pk", flat=True)

    expired = []
    for pk in list(candidates):
        with transaction.atomic():
            order = Order.objects.select_for_update(skip_locked=True).filter(pk=pk).first()
            # Re-check under the lock; a payment may have landed meanwhile.
            if order is None or order.payment_status != PaymentStatus.PENDING or order.order_status not in CANCELLABLE:
                continue
            _apply_cancellation(order, actor=None, payment_status=PaymentStatus.FAILED)
            expired.append(order.order_number)
    if expired:
        logger.info("order.expired_unpaid", extra={"count": len(expired), "ttl_minutes": ttl})
    return expired
