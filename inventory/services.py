"""Inventory ledger: transactional stock reservation and release.

These are the only functions allowed to write `Product.stock`. Both run in a
savepoint nested in the caller's transaction, so a reservation made during
order placement is rolled back together with the order when placement fails.
"""

import logging

from catalog.models import Product
from common.exceptions import InsufficientStock, InvalidQuantity, ProductUnavailable
from django.db import transaction
from django.db.models import F

from .models import StockMovement

logger = logging.getLogger("shopfront.inventory")


def _lock_product(product_id) -> Product:
    try:
        return Product.objects.select_for_update().get(pk=product_id)
    except Product.DoesNotExist:
        raise ProductUnavailable("Product not found")


@transaction.atomic
def reserve(*, product_id, quantity: int, reference: str = "", reason: str = "") -> StockMovement:
    """Decrement stock by `quantity`, failing without side effects if stock would go negative."""

    if int(quantity) < 1:
        raise InvalidQuantity()
    product = _lock_product(product_id)
    if product.stock < quantity:
        raise InsufficientStock(f"Insufficient stock for {product.name}")

    # Conditional update keeps the non-negative guard in the database as well as here.
    updated = Product.objects.filter(pk=product.pk, stock__gte=quantity).update(stock=F("stock") - quantity)
    if not updated:
        raise InsufficientStock(f"Insufficient stock for {product.name}")

    movement = StockMovement.objects.create(
        product=product,
        movement_type=StockMovement.TYPE_OUTBOUND,
        quantity=-int(quantity),
        reason=reason,
        reference=reference,
    )
    logger.info(
        "inventory.reserved",
        extra={"product_id": product.pk, "quantity": int(quantity), "reference": reference},
    )
    return movement


@transaction.atomic
def release(*, product_id, quantity: int, reference: str = "", reason: str = "") -> StockMovement:
    """Return `quantity` units to stock. Restoring is always allowed."""

    if int(quantity) < 1:
        raise InvalidQuantity()
    product = _lock_product(product_id)
    Product.objects.filter(pk=product.pk).update(stock=F("stock") + quantity)
    movement = StockMovement.objects.create(
        product=product,
        movement_type=StockMovement.TYPE_INBOUND,
        quantity=int(quantity),
        reason=reason,
        reference=reference,
    )
    logger.info(
        "inventory.released",
        extra={"product_id": product.pk, "quantity": int(quantity), "reference": reference},
    )
    return movement
