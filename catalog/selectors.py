"""Read-only product queries shared by cart and order services."""

from .models import Product


def get_active_product(product_id) -> Product | None:
    """Return the product if it exists and is purchasable, else None."""
    return Product.objects.filter(pk=product_id, is_active=True).first()


def list_active_products():
    return Product.objects.filter(is_active=True).order_by("name")
