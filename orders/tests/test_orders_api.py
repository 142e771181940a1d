from decimal import Decimal

import pytest
from cart.services import add_item
from catalog.tests.factories import ProductFactory
from common.choices import OrderStatus, PaymentStatus
from orders.models import Order
from orders.tests.factories import OrderFactory, OrderItemFactory, shipping_address
from rest_framework.test import APIClient
from users.tests.factories import AdminUserFactory, UserFactory


def _client(user=None):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
def test_create_cod_order_returns_placed_message():
    user = UserFactory()
    product = ProductFactory(price=Decimal("100.00"), stock=5)
    add_item(user=user, product_id=product.id, quantity=2)

    resp = _client(user).post(
        "/api/v1/orders/create/",
        {"shipping_address": shipping_address(), "payment_method": "COD"},
        format="json",
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Order placed successfully"
    assert body["order"]["total_amount"] == "200.00"
    assert body["order"]["order_status"] == "placed"
    assert body["order"]["order_number"].startswith("ORD-")
    assert len(body["order"]["items"]) == 1


@pytest.mark.django_db
def test_create_online_order_returns_pending_payment_message():
    user = UserFactory()
    product = ProductFactory()
    add_item(user=user, product_id=product.id, quantity=1)

    resp = _client(user).post(
        "/api/v1/orders/create/",
        {"shipping_address": shipping_address(), "payment_method": "ONLINE"},
        format="json",
    )

    assert resp.status_code == 201
    assert resp.json()["message"] == "Order created, pending payment"
    assert resp.json()["order"]["payment_status"] == "pending"


@pytest.mark.django_db
def test_create_order_with_empty_cart_is_400():
    resp = _client(UserFactory()).post(
        "/api/v1/orders/create/", {"shipping_address": shipping_address()}, format="json"
    )

    assert resp.status_code == 400
    assert resp.json() == {"status": "error", "message": "Cart is empty", "code": "empty_cart"}


@pytest.mark.django_db
def test_create_order_with_incomplete_address_is_400():
    address = shipping_address()
    del address["postal_code"]

    resp = _client(UserFactory()).post("/api/v1/orders/create/", {"shipping_address": address}, format="json")

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "validation_error"
    assert "shipping_address" in body["errors"]


@pytest.mark.django_db
def test_create_order_with_vanished_product_is_404():
    user = UserFactory()
    product = ProductFactory()
    add_item(user=user, product_id=product.id, quantity=1)
    product.is_active = False
    product.save(update_fields=["is_active"])

    resp = _client(user).post("/api/v1/orders/create/", {"shipping_address": shipping_address()}, format="json")

    assert resp.status_code == 404
    assert resp.json()["code"] == "product_unavailable"


@pytest.mark.django_db
def test_my_orders_lists_only_own_active_orders():
    user = UserFactory()
    mine = OrderFactory(user=user)
    OrderFactory(user=user, is_active=False, order_status=OrderStatus.CANCELLED)
    OrderFactory()

    resp = _client(user).get("/api/v1/orders/my/")

    assert resp.status_code == 200
    assert resp.json()["count"] == 1
    assert resp.json()["results"][0]["id"] == mine.id


@pytest.mark.django_db
def test_order_detail_is_scoped_to_owner():
    owner = UserFactory()
    order = OrderFactory(user=owner)
    OrderItemFactory(order=order)

    assert _client(owner).get(f"/api/v1/orders/{order.id}/").status_code == 200
    resp = _client(UserFactory()).get(f"/api/v1/orders/{order.id}/")
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


@pytest.mark.django_db
def test_cancel_endpoint_then_double_cancel_is_conflict():
    user = UserFactory()
    order = OrderFactory(user=user)
    item = OrderItemFactory(order=order, quantity=3, product=ProductFactory(stock=1))
    client = _client(user)

    resp = client.patch(f"/api/v1/orders/{order.id}/cancel/")
    assert resp.status_code == 200
    assert resp.json() == {"order_id": order.id, "order_status": "cancelled"}
    item.product.refresh_from_db()
    assert item.product.stock == 4

    resp = client.patch(f"/api/v1/orders/{order.id}/cancel/")
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


@pytest.mark.django_db
def test_cancel_delivered_order_is_conflict():
    user = UserFactory()
    order = OrderFactory(user=user, order_status=OrderStatus.DELIVERED)

    resp = _client(user).patch(f"/api/v1/orders/{order.id}/cancel/")

    assert resp.status_code == 409
    order.refresh_from_db()
    assert order.order_status == OrderStatus.DELIVERED
    assert order.is_active is True


@pytest.mark.django_db
def test_cancel_someone_elses_order_is_404():
    order = OrderFactory()

    resp = _client(UserFactory()).patch(f"/api/v1/orders/{order.id}/cancel/")

    assert resp.status_code == 404


@pytest.mark.django_db
def test_admin_list_filters_by_status_and_user():
    admin = AdminUserFactory()
    buyer = UserFactory()
    shipped = OrderFactory(user=buyer, order_status=OrderStatus.SHIPPED)
    OrderFactory(user=buyer)
    OrderFactory(order_status=OrderStatus.SHIPPED)
    client = _client(admin)

    resp = client.get(f"/api/v1/orders/?order_status=shipped&user={buyer.id}")

    assert resp.status_code == 200
    assert [row["id"] for row in resp.json()["results"]] == [shipped.id]
    assert client.get("/api/v1/orders/?payment_status=paid").json()["count"] == 0


@pytest.mark.django_db
def test_admin_endpoints_require_staff():
    order = OrderFactory()
    client = _client(UserFactory())

    assert client.get("/api/v1/orders/").status_code == 403
    assert client.get(f"/api/v1/orders/admin/{order.id}/").status_code == 403
    resp = client.patch(f"/api/v1/orders/admin/{order.id}/", {"order_status": "shipped"}, format="json")
    assert resp.status_code == 403
    assert resp.json()["status"] == "error"


@pytest.mark.django_db
def test_admin_patch_updates_statuses():
    admin = AdminUserFactory()
    order = OrderFactory()

    resp = _client(admin).patch(
        f"/api/v1/orders/admin/{order.id}/",
        {"order_status": "shipped", "payment_status": "paid"},
        format="json",
    )

    assert resp.status_code == 200
    assert resp.json()["order_status"] == "shipped"
    assert resp.json()["payment_status"] == "paid"
    order.refresh_from_db()
    assert (order.order_status, order.payment_status) == (OrderStatus.SHIPPED, PaymentStatus.PAID)


@pytest.mark.django_db
def test_admin_patch_rejects_unknown_status():
    admin = AdminUserFactory()
    order = OrderFactory()

    resp = _client(admin).patch(f"/api/v1/orders/admin/{order.id}/", {"order_status": "lost"}, format="json")

    assert resp.status_code == 400
    assert Order.objects.get(pk=order.pk).order_status == OrderStatus.PLACED


@pytest.mark.django_db
def test_admin_detail_missing_order_is_404():
    resp = _client(AdminUserFactory()).get("/api/v1/orders/admin/999999/")

    assert resp.status_code == 404
