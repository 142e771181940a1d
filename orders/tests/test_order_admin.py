import pytest
from catalog.tests.factories import ProductFactory
from common.choices import OrderStatus
from django.urls import reverse
from inventory.services import reserve
from orders.services import cancel_order
from orders.tests.factories import OrderFactory, OrderItemFactory


@pytest.mark.django_db
def test_order_item_admin_cannot_rewrite_a_placed_order(admin_client, admin_user):
    product = ProductFactory(stock=2)
    item = OrderItemFactory(product=product, quantity=2, order__total_items=2)
    reserve(product_id=product.id, quantity=2, reference=item.order.order_number)

    r = admin_client.post(
        reverse("admin:orders_orderitem_change", args=[item.pk]),
        {"quantity": 50, "unit_price": "1.00", "subtotal": "50.00"},
    )

    assert r.status_code == 403
    item.refresh_from_db()
    assert item.quantity == 2

    cancel_order(order=item.order, actor=admin_user)
    product.refresh_from_db()
    assert product.stock == 2


@pytest.mark.django_db
def test_order_item_admin_blocks_add_and_delete(admin_client):
    item = OrderItemFactory()

    assert admin_client.get(reverse("admin:orders_orderitem_add")).status_code == 403
    r = admin_client.post(reverse("admin:orders_orderitem_delete", args=[item.pk]), {"post": "yes"})

    assert r.status_code == 403
    assert type(item).objects.filter(pk=item.pk).exists()


@pytest.mark.django_db
def test_order_item_admin_change_page_is_viewable(admin_client):
    item = OrderItemFactory()

    r = admin_client.get(reverse("admin:orders_orderitem_change", args=[item.pk]))

    assert r.status_code == 200


@pytest.mark.django_db
def test_order_admin_shows_stock_movements_for_the_order(admin_client):
    product = ProductFactory(stock=5)
    order = OrderFactory()
    OrderItemFactory(order=order, product=product, quantity=3)
    reserve(product_id=product.id, quantity=3, reference=order.order_number, reason="order_placed")

    r = admin_client.get(reverse("admin:orders_order_change", args=[order.pk]))

    assert r.status_code == 200
    assert f"out -3 product={product.id} (order_placed)" in r.content.decode()


@pytest.mark.django_db
def test_cancel_action_skips_terminal_orders(admin_client):
    open_order = OrderFactory()
    OrderItemFactory(order=open_order, product=ProductFactory(stock=0), quantity=1)
    delivered = OrderFactory(order_status=OrderStatus.DELIVERED)

    r = admin_client.post(
        reverse("admin:orders_order_changelist"),
        {"action": "action_cancel_orders", "_selected_action": [open_order.pk, delivered.pk]},
    )

    assert r.status_code == 302
    open_order.refresh_from_db()
    delivered.refresh_from_db()
    assert open_order.order_status == OrderStatus.CANCELLED
    assert delivered.order_status == OrderStatus.DELIVERED
