from decimal import Decimal

import pytest
from common.choices import OrderStatus, PaymentRecordStatus, PaymentStatus
from common.exceptions import IncompletePayload, InvalidSignature, NotFound
from django.conf import settings
from orders.tests.factories import OrderFactory
from payments.gateway import sign_payload
from payments.services import verify_payment
from payments.tests.factories import PaymentFactory


def _payload(payment, gateway_payment_id="pay_001", signature=None):
    if signature is None:
        signature = sign_payload(settings.PAYMENT_GATEWAY_KEY_SECRET, payment.gateway_order_id, gateway_payment_id)
    return {
        "payment_id": payment.id,
        "order_id": payment.order_id,
        "gateway_order_id": payment.gateway_order_id,
        "gateway_payment_id": gateway_payment_id,
        "gateway_signature": signature,
    }


@pytest.mark.django_db
def test_valid_signature_marks_payment_and_order_paid():
    payment = PaymentFactory(order=OrderFactory(total_amount=Decimal("50.00")))

    verified = verify_payment(**_payload(payment))

    order = verified.order
    order.refresh_from_db()
    assert verified.status == PaymentRecordStatus.PAID
    assert verified.gateway_payment_id == "pay_001"
    assert order.payment_status == PaymentStatus.PAID
    assert order.order_status == OrderStatus.CONFIRMED


@pytest.mark.django_db
def test_replayed_verification_is_a_no_op():
    payment = PaymentFactory()
    payload = _payload(payment)
    verify_payment(**payload)
    payment.refresh_from_db()
    order = payment.order
    order.refresh_from_db()
    snapshot = (payment.updated_at, payment.gateway_signature, order.updated_at)

    again = verify_payment(**payload)

    payment.refresh_from_db()
    order.refresh_from_db()
    assert again.status == PaymentRecordStatus.PAID
    assert (payment.updated_at, payment.gateway_signature, order.updated_at) == snapshot


@pytest.mark.django_db
def test_tampered_signature_fails_payment_and_leaves_order_pending():
    payment = PaymentFactory()
    payload = _payload(payment)
    payload["gateway_signature"] = "0" * 64

    with pytest.raises(InvalidSignature):
        verify_payment(**payload)

    payment.refresh_from_db()
    order = payment.order
    order.refresh_from_db()
    assert payment.status == PaymentRecordStatus.FAILED
    assert payment.gateway_payment_id == ""
    assert order.payment_status == PaymentStatus.PENDING
    assert order.order_status == OrderStatus.PLACED


@pytest.mark.django_db
def test_signature_for_a_different_gateway_order_is_rejected():
    payment = PaymentFactory()
    payload = _payload(payment)
    payload["gateway_order_id"] = "order_SOMEONE_ELSE"
    payload["gateway_signature"] = sign_payload(settings.PAYMENT_GATEWAY_KEY_SECRET, "order_SOMEONE_ELSE", "pay_001")

    with pytest.raises(InvalidSignature):
        verify_payment(**payload)


@pytest.mark.django_db
def test_failed_attempt_can_still_be_verified_with_a_valid_signature():
    payment = PaymentFactory(status=PaymentRecordStatus.FAILED)

    verified = verify_payment(**_payload(payment))

    assert verified.status == PaymentRecordStatus.PAID


@pytest.mark.django_db
@pytest.mark.parametrize(
    "missing", ["payment_id", "order_id", "gateway_order_id", "gateway_payment_id", "gateway_signature"]
)
def test_missing_field_is_incomplete_payload(missing):
    payment = PaymentFactory()
    payload = _payload(payment)
    payload[missing] = ""

    with pytest.raises(IncompletePayload):
        verify_payment(**payload)
    payment.refresh_from_db()
    assert payment.status == PaymentRecordStatus.CREATED


@pytest.mark.django_db
def test_unknown_payment_or_mismatched_order_is_not_found():
    payment = PaymentFactory()
    other_order = OrderFactory()

    payload = _payload(payment)
    payload["payment_id"] = payment.id + 1000
    with pytest.raises(NotFound):
        verify_payment(**payload)

    payload = _payload(payment)
    payload["order_id"] = other_order.id
    with pytest.raises(NotFound):
        verify_payment(**payload)


@pytest.mark.django_db
def test_payment_for_cancelled_order_is_recorded_without_reviving_order():
    order = OrderFactory(order_status=OrderStatus.CANCELLED, payment_status=PaymentStatus.FAILED, is_active=False)
    payment = PaymentFactory(order=order, status=PaymentRecordStatus.FAILED)

    verified = verify_payment(**_payload(payment))

    order.refresh_from_db()
    assert verified.status == PaymentRecordStatus.PAID
    assert order.order_status == OrderStatus.CANCELLED
    assert order.payment_status == PaymentStatus.FAILED


@pytest.mark.django_db
def test_verification_emails_customer_on_commit(django_capture_on_commit_callbacks, mailoutbox):
    payment = PaymentFactory()

    with django_capture_on_commit_callbacks(execute=True):
        verify_payment(**_payload(payment))

    assert len(mailoutbox) == 1
    assert payment.order.order_number in mailoutbox[0].subject


@pytest.mark.django_db
def test_second_attempt_on_already_paid_order_leaves_order_and_sends_no_email(
    django_capture_on_commit_callbacks, mailoutbox
):
    order = OrderFactory(order_status=OrderStatus.SHIPPED, payment_status=PaymentStatus.PAID)
    PaymentFactory(order=order, status=PaymentRecordStatus.PAID)
    second = PaymentFactory(order=order, status=PaymentRecordStatus.FAILED)
    order.refresh_from_db()
    before = order.updated_at

    with django_capture_on_commit_callbacks(execute=True):
        verified = verify_payment(**_payload(second, gateway_payment_id="pay_002"))

    order.refresh_from_db()
    assert verified.status == PaymentRecordStatus.PAID
    assert order.order_status == OrderStatus.SHIPPED
    assert order.updated_at == before
    assert mailoutbox == []
