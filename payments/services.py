"""Checkout and payment verification for ONLINE orders.

``create_checkout`` opens (or reuses) a gateway intent for a pending order.
``verify_payment`` is the only code path that marks an order paid; it trusts
nothing but the HMAC signature over the stored gateway order id.
"""

import logging
from dataclasses import dataclass

from common.choices import OrderStatus, PaymentMethod, PaymentRecordStatus, PaymentStatus
from common.exceptions import (
    AlreadyPaid,
    IncompletePayload,
    InvalidSignature,
    NotFound,
    OrderNotEligible,
    PaymentNotPending,
)
from common.money import from_minor_units, to_minor_units
from django.db import IntegrityError, transaction
from orders.emails import send_order_confirmation_email
from orders.models import Order
from orders.state import ensure_payment_transition, ensure_transition

from .gateway import get_gateway
from .models import Payment

logger = logging.getLogger("shopfront.payments")


@dataclass(frozen=True)
class CheckoutSession:
    """Parameters the client needs to complete payment with the gateway."""

    payment: Payment
    order: Order
    key_id: str
    reused: bool

    @property
    def amount(self) -> int:
        return to_minor_units(self.payment.amount)

    def as_dict(self) -> dict:
        user = self.order.user
        return {
            "key_id": self.key_id,
            "amount": self.amount,
            "currency": self.payment.currency,
            "gateway_order_id": self.payment.gateway_order_id,
            "payment_id": self.payment.id,
            "order_id": self.order.id,
            "order_number": self.order.order_number,
            "user": {"name": user.display_name, "email": user.email},
        }


def _get_eligible_order(order_id, user) -> Order:
    order = (
        Order.objects.select_related("user")
        .filter(pk=order_id, user_id=user.id, payment_method=PaymentMethod.ONLINE, is_active=True)
        .first()
    )
    if order is None:
        raise OrderNotEligible()
    if order.payment_status == PaymentStatus.PAID:
        raise AlreadyPaid()
    if order.payment_status != PaymentStatus.PENDING:
        raise PaymentNotPending()
    return order


def _open_payment(order: Order) -> Payment | None:
    return Payment.objects.filter(order=order, status=PaymentRecordStatus.CREATED).first()


def create_checkout(*, order_id, user, gateway=None) -> CheckoutSession:
    """Return checkout parameters for one of the user's pending ONLINE orders.

    An existing ``created`` payment is reused so repeated page loads never open
    a second gateway intent. The gateway call runs outside any transaction.
    """

    gateway = gateway or get_gateway()
    order = _get_eligible_order(order_id, user)

    payment = _open_payment(order)
    if payment is not None:
        logger.info("payment.checkout_reused", extra={"order_id": order.id, "payment_id": payment.id})
        return CheckoutSession(payment=payment, order=order, key_id=gateway.key_id, reused=True)

    intent = gateway.create_intent(amount=order.total_amount, currency=order.currency, receipt=order.order_number)
    try:
        with transaction.atomic():
            payment = Payment.objects.create(
                order=order,
                user=order.user,
                gateway_order_id=intent.intent_id,
                amount=from_minor_units(intent.amount),
                currency=intent.currency,
                status=PaymentRecordStatus.CREATED,
                notes={"receipt": order.order_number},
            )
    except IntegrityError:
        # A concurrent checkout inserted the open payment first.
        payment = _open_payment(order)
        if payment is None:
            raise
        logger.info(
            "payment.checkout_race_reused",
            extra={"order_id": order.id, "payment_id": payment.id, "discarded_intent": intent.intent_id},
        )
        return CheckoutSession(payment=payment, order=order, key_id=gateway.key_id, reused=True)

    logger.info(
        "payment.checkout_created",
        extra={"order_id": order.id, "payment_id": payment.id, "gateway_order_id": payment.gateway_order_id},
    )
    return CheckoutSession(payment=payment, order=order, key_id=gateway.key_id, reused=False)


def _load_payment(payment_id, order_id) -> Payment:
    try:
        payment_pk = int(payment_id)
        order_pk = int(order_id)
    except (TypeError, ValueError):
        raise NotFound("Payment not found")
    payment = Payment.objects.filter(pk=payment_pk).first()
    if payment is None or payment.order_id != order_pk:
        raise NotFound("Payment not found")
    return payment


def _mark_failed(payment: Payment) -> None:
    with transaction.atomic():
        locked = Payment.objects.select_for_update().get(pk=payment.pk)
        if locked.status == PaymentRecordStatus.CREATED:
            ensure_payment_transition(locked.status, PaymentRecordStatus.FAILED)
            locked.status = PaymentRecordStatus.FAILED
            locked.save(update_fields=["status", "updated_at"])
        payment.status = locked.status


def verify_payment(
    *, payment_id, order_id, gateway_order_id, gateway_payment_id, gateway_signature, gateway=None
) -> Payment:
    """Confirm a gateway callback and mark the payment and its order paid.

    Replays of an already-verified payment return it without writing. A bad
    signature marks the attempt ``failed`` (committed) and raises
    `InvalidSignature`; the order is left untouched.
    """

    fields = (payment_id, order_id, gateway_order_id, gateway_payment_id, gateway_signature)
    if any(value in (None, "") for value in fields):
        raise IncompletePayload()

    payment = _load_payment(payment_id, order_id)
    if payment.status == PaymentRecordStatus.PAID:
        logger.info("payment.verify_replayed", extra={"payment_id": payment.id, "order_id": payment.order_id})
        return payment

    gateway = gateway or get_gateway()
    signature_ok = gateway.verify_signature(payment.gateway_order_id, str(gateway_payment_id), str(gateway_signature))
    if not signature_ok or str(gateway_order_id) != payment.gateway_order_id:
        _mark_failed(payment)
        logger.warning(
            "payment.signature_invalid",
            extra={"payment_id": payment.id, "order_id": payment.order_id, "payment_status": payment.status},
        )
        raise InvalidSignature()

    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status == PaymentRecordStatus.PAID:
            return payment
        ensure_payment_transition(payment.status, PaymentRecordStatus.PAID)
        order = Order.objects.select_for_update().select_related("user").get(pk=payment.order_id)

        payment.status = PaymentRecordStatus.PAID
        payment.gateway_payment_id = str(gateway_payment_id)
        payment.gateway_signature = str(gateway_signature)
        payment.save(update_fields=["status", "gateway_payment_id", "gateway_signature", "updated_at"])

        if order.order_status == OrderStatus.CANCELLED:
            # Money moved for an order that is gone; needs a manual refund.
            logger.warning(
                "payment.paid_for_cancelled_order",
                extra={"payment_id": payment.id, "order_id": order.id, "order_number": order.order_number},
            )
            return payment

        if order.payment_status == PaymentStatus.PAID:
            # Another attempt already settled this order.
            logger.warning(
                "payment.duplicate_for_paid_order",
                extra={"payment_id": payment.id, "order_id": order.id, "order_number": order.order_number},
            )
            return payment

        previous = order.order_status
        order.payment_status = PaymentStatus.PAID
        update_fields = ["payment_status", "updated_at"]
        if order.order_status == OrderStatus.PLACED:
            ensure_transition(order.order_status, OrderStatus.CONFIRMED)
            order.order_status = OrderStatus.CONFIRMED
            update_fields.append("order_status")
        order.save(update_fields=update_fields)
        transaction.on_commit(lambda: send_order_confirmation_email(order))

    logger.info(
        "payment.verified",
        extra={
            "payment_id": payment.id,
            "order_id": order.id,
            "order_number": order.order_number,
            "amount": str(payment.amount),
            "status_from": previous,
            "status_to": order.order_status,
        },
    )
    return payment
