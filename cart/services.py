"""Cart services: row-locked mutations that keep persisted totals in step.

Stock checks here are advisory. Nothing is reserved until the cart is turned
into an order by `orders.services.create_order_from_cart`.
"""

import logging

from catalog.models import Product
from common.exceptions import InsufficientStock, InvalidQuantity, NotFound, ProductUnavailable
from django.db import transaction

from .models import Cart, CartItem
from .pricing import EMPTY_TOTALS, line_subtotal, recompute_totals

logger = logging.getLogger("shopfront.cart")


def _validate_quantity(quantity) -> int:
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise InvalidQuantity()
    if quantity < 1:
        raise InvalidQuantity()
    return quantity


def _get_purchasable_product(product_id) -> Product:
    product = Product.objects.filter(pk=product_id).first()
    if product is None or not product.is_active:
        raise ProductUnavailable()
    return product


def _check_stock(product: Product, quantity: int) -> None:
    if quantity > product.stock:
        raise InsufficientStock(f"Only {product.stock} unit(s) of {product.name} available")


def _lock_active_cart(user) -> Cart:
    cart = Cart.objects.select_for_update().filter(user=user, is_active=True).first()
    if cart is None:
        raise NotFound("Cart not found")
    return cart


def apply_totals(cart: Cart, totals) -> None:
    cart.total_items = totals.total_items
    cart.subtotal = totals.subtotal
    cart.discount_amount = totals.discount_amount
    cart.total_price = totals.total_price


def refresh_totals(cart: Cart) -> Cart:
    """Recompute and persist the cart's derived totals from its current lines."""

    lines = cart.items.values_list("unit_price", "quantity")
    apply_totals(cart, recompute_totals(lines, cart.discount))
    cart.save(update_fields=["total_items", "subtotal", "discount_amount", "total_price", "updated_at"])
    return cart


def empty_cart(cart: Cart) -> int:
    """Delete every line, zero the totals and deactivate. Returns the number of lines removed."""

    removed, _ = cart.items.all().delete()
    apply_totals(cart, EMPTY_TOTALS)
    cart.is_active = False
    cart.save(
        update_fields=["total_items", "subtotal", "discount_amount", "total_price", "is_active", "updated_at"]
    )
    return removed


@transaction.atomic
def add_item(*, user, product_id, quantity) -> Cart:
    """Add `quantity` of a product, merging into an existing line.

    Creates the user's cart on first use and reactivates a previously
    emptied one. The merged quantity is checked against current stock.
    """

    quantity = _validate_quantity(quantity)
    product = _get_purchasable_product(product_id)
    _check_stock(product, quantity)

    cart, created = Cart.objects.get_or_create(user=user)
    cart = Cart.objects.select_for_update().get(pk=cart.pk)
    if not cart.is_active:
        # Lines of an inactive cart were already consumed or cleared.
        cart.items.all().delete()
        cart.is_active = True

    item = cart.items.filter(product=product).first()
    if item is not None:
        new_quantity = item.quantity + quantity
        _check_stock(product, new_quantity)
        item.quantity = new_quantity
        item.subtotal = line_subtotal(item.unit_price, new_quantity)
        item.save(update_fields=["quantity", "subtotal", "updated_at"])
        event = "cart.item_updated"
    else:
        unit_price = product.effective_price
        item = CartItem.objects.create(
            cart=cart,
            product=product,
            product_name=product.name,
            product_image=product.image,
            unit_price=unit_price,
            quantity=quantity,
            subtotal=line_subtotal(unit_price, quantity),
        )
        event = "cart.item_added"

    cart.save(update_fields=["is_active", "updated_at"])
    refresh_totals(cart)
    logger.info(
        event,
        extra={
            "cart_id": cart.id,
            "user_id": getattr(user, "id", None),
            "product_id": product.id,
            "quantity": item.quantity,
            "cart_created": created,
        },
    )
    return cart


@transaction.atomic
def update_item(*, user, product_id, quantity) -> Cart:
    """Replace the quantity of an existing line."""

    quantity = _validate_quantity(quantity)
    cart = _lock_active_cart(user)
    item = cart.items.filter(product_id=product_id).select_related("product").first()
    if item is None:
        raise NotFound("Item not found in cart")
    product = item.product
    if not product.is_active:
        raise ProductUnavailable()
    _check_stock(product, quantity)

    item.quantity = quantity
    item.subtotal = line_subtotal(item.unit_price, quantity)
    item.save(update_fields=["quantity", "subtotal", "updated_at"])
    refresh_totals(cart)
    logger.info(
        "cart.item_updated",
        extra={"cart_id": cart.id, "user_id": getattr(user, "id", None), "product_id": product.id, "quantity": quantity},
    )
    return cart


@transaction.atomic
def remove_item(*, user, product_id) -> Cart:
    """Remove a line; a cart left without lines is deactivated."""

    cart = _lock_active_cart(user)
    deleted, _ = cart.items.filter(product_id=product_id).delete()
    if not deleted:
        raise NotFound("Item not found in cart")

    if cart.items.exists():
        refresh_totals(cart)
    else:
        empty_cart(cart)
    logger.info(
        "cart.item_removed",
        extra={
            "cart_id": cart.id,
            "user_id": getattr(user, "id", None),
            "product_id": product_id,
            "cart_active": cart.is_active,
        },
    )
    return cart


@transaction.atomic
def clear_cart(*, user) -> Cart:
    """Drop every line, zero the totals and deactivate the cart."""

    cart = _lock_active_cart(user)
    removed = empty_cart(cart)
    logger.info("cart.cleared", extra={"cart_id": cart.id, "user_id": getattr(user, "id", None), "removed": removed})
    return cart
