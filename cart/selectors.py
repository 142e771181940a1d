"""Selectors for read-only cart queries."""

from .models import Cart


def get_active_cart_for_user(*, user) -> Cart | None:
    """Return the user's active cart, or None. Never creates a row."""

    return Cart.objects.filter(user=user, is_active=True).prefetch_related("items").first()
