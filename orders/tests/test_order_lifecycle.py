from datetime import timedelta
from unittest.mock import patch

import pytest
from catalog.tests.factories import ProductFactory
from common.choices import OrderStatus, PaymentMethod, PaymentRecordStatus, PaymentStatus
from common.exceptions import Conflict, ProductUnavailable, ValidationError
from django.utils import timezone
from inventory.models import StockMovement
from orders import services
from orders.models import Order
from orders.services import admin_update_status, cancel_order, expire_unpaid_orders
from orders.state import CANCELLABLE, can_transition, ensure_transition, is_terminal
from orders.tests.factories import OrderFactory, OrderItemFactory
from payments.models import Payment
from payments.tests.factories import PaymentFactory
from users.tests.factories import AdminUserFactory


def _order_with_items(*quantities, **order_fields):
    order = OrderFactory(**order_fields)
    products = []
    for quantity in quantities:
        product = ProductFactory(stock=0)
        OrderItemFactory(order=order, product=product, quantity=quantity)
        products.append(product)
    return order, products


def test_transition_table():
    assert CANCELLABLE == {OrderStatus.PLACED, OrderStatus.CONFIRMED}
    assert can_transition(OrderStatus.PLACED, OrderStatus.CONFIRMED)
    assert can_transition(OrderStatus.SHIPPED, OrderStatus.DELIVERED)
    assert not can_transition(OrderStatus.SHIPPED, OrderStatus.CANCELLED)
    assert not can_transition(OrderStatus.DELIVERED, OrderStatus.PLACED)
    assert is_terminal(OrderStatus.DELIVERED) and is_terminal(OrderStatus.CANCELLED)
    with pytest.raises(Conflict):
        ensure_transition(OrderStatus.CONFIRMED, OrderStatus.PLACED)


@pytest.mark.django_db
def test_cancel_restores_stock_for_every_item():
    order, (first, second) = _order_with_items(3, 5, payment_method=PaymentMethod.COD)

    cancelled = cancel_order(order=order, actor=order.user)

    first.refresh_from_db()
    second.refresh_from_db()
    assert (first.stock, second.stock) == (3, 5)
    assert cancelled.order_status == OrderStatus.CANCELLED
    assert cancelled.is_active is False
    assert cancelled.cancelled_at is not None
    assert cancelled.cancelled_by == order.user
    assert cancelled.payment_status == PaymentStatus.PENDING
    assert StockMovement.objects.filter(reference=order.order_number, quantity__gt=0).count() == 2


@pytest.mark.django_db
def test_cancel_online_order_flags_refund_and_fails_open_payment():
    order, _ = _order_with_items(1, order_status=OrderStatus.CONFIRMED, payment_method=PaymentMethod.ONLINE)
    payment = PaymentFactory(order=order)

    cancelled = cancel_order(order=order, actor=order.user)

    payment.refresh_from_db()
    assert cancelled.payment_status == PaymentStatus.REFUNDED
    assert payment.status == PaymentRecordStatus.FAILED


@pytest.mark.django_db
@pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED])
def test_cancel_from_terminal_or_shipped_is_conflict_and_changes_nothing(status):
    order, (product,) = _order_with_items(2, order_status=status)
    before = Order.objects.values().get(pk=order.pk)

    with pytest.raises(Conflict):
        cancel_order(order=order, actor=order.user)

    product.refresh_from_db()
    assert product.stock == 0
    assert Order.objects.values().get(pk=order.pk) == before


@pytest.mark.django_db
def test_stock_restore_failure_does_not_block_cancellation(caplog):
    order, (ok_product, broken_product) = _order_with_items(2, 4)
    real_release = services.inventory.release

    def flaky_release(*, product_id, **kwargs):
        if product_id == broken_product.id:
            raise ProductUnavailable("Product not found")
        return real_release(product_id=product_id, **kwargs)

    with patch("inventory.services.release", side_effect=flaky_release):
        cancelled = cancel_order(order=order, actor=order.user)

    ok_product.refresh_from_db()
    broken_product.refresh_from_db()
    assert cancelled.order_status == OrderStatus.CANCELLED
    assert ok_product.stock == 2
    assert broken_product.stock == 0
    assert any(record.getMessage() == "order.stock_restore_failed" for record in caplog.records)


@pytest.mark.django_db
def test_admin_can_skip_states():
    admin = AdminUserFactory()
    order = OrderFactory(order_status=OrderStatus.PLACED)

    updated = admin_update_status(order=order, actor=admin, order_status=OrderStatus.DELIVERED)

    assert updated.order_status == OrderStatus.DELIVERED
    assert updated.is_active is True


@pytest.mark.django_db
def test_admin_cancel_runs_cancellation_side_effects_then_applies_payment_status():
    admin = AdminUserFactory()
    order, (product,) = _order_with_items(3, payment_method=PaymentMethod.ONLINE)

    updated = admin_update_status(
        order=order, actor=admin, order_status=OrderStatus.CANCELLED, payment_status=PaymentStatus.FAILED
    )

    product.refresh_from_db()
    assert product.stock == 3
    assert updated.order_status == OrderStatus.CANCELLED
    assert updated.payment_status == PaymentStatus.FAILED
    assert updated.cancelled_by == admin
    assert updated.is_active is False


@pytest.mark.django_db
def test_admin_setting_cancelled_again_does_not_restore_twice():
    admin = AdminUserFactory()
    order, (product,) = _order_with_items(2, order_status=OrderStatus.CANCELLED, is_active=False)

    admin_update_status(order=order, actor=admin, order_status=OrderStatus.CANCELLED)

    product.refresh_from_db()
    assert product.stock == 0


@pytest.mark.django_db
def test_admin_update_validates_enums():
    admin = AdminUserFactory()
    order = OrderFactory()

    with pytest.raises(ValidationError):
        admin_update_status(order=order, actor=admin, order_status="lost")
    with pytest.raises(ValidationError):
        admin_update_status(order=order, actor=admin, payment_status="maybe")
    with pytest.raises(ValidationError):
        admin_update_status(order=order, actor=admin)


@pytest.mark.django_db
def test_expire_unpaid_orders_cancels_stale_online_orders_only():
    stale, (product,) = _order_with_items(2, payment_method=PaymentMethod.ONLINE)
    fresh = OrderFactory(payment_method=PaymentMethod.ONLINE)
    cod = OrderFactory(payment_method=PaymentMethod.COD)
    paid = OrderFactory(payment_method=PaymentMethod.ONLINE, payment_status=PaymentStatus.PAID)
    old = timezone.now() - timedelta(hours=3)
    Order.objects.filter(pk__in=[stale.pk, cod.pk, paid.pk]).update(created_at=old)
    open_payment = PaymentFactory(order=stale)

    expired = expire_unpaid_orders(older_than_minutes=60)

    assert expired == [stale.order_number]
    stale.refresh_from_db()
    product.refresh_from_db()
    open_payment.refresh_from_db()
    assert stale.order_status == OrderStatus.CANCELLED
    assert stale.payment_status == PaymentStatus.FAILED
    assert product.stock == 2
    assert open_payment.status == PaymentRecordStatus.FAILED
    for other in (fresh, cod, paid):
        other.refresh_from_db()
        assert other.order_status == OrderStatus.PLACED
    assert Payment.objects.filter(status=PaymentRecordStatus.CREATED).count() == 0
