"""Selectors for the inventory ledger."""

from .models import StockMovement


def movements_for_reference(reference: str):
    """Movements recorded under a business reference (an order number), oldest first."""
    return list(
        StockMovement.objects.filter(reference=reference)
        .order_by("id")
        .values("product_id", "movement_type", "quantity", "reason")
    )
