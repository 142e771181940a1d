"""Catalog app models.

`Product` is consumed by the cart and order workflows. Its `stock` column is
the inventory ledger balance and is only written through
`inventory.services.reserve` / `release`.
"""

from decimal import Decimal

from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Sellable product with price, optional sale price and stock on hand."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    sku = models.CharField(max_length=64, unique=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    stock = models.IntegerField(default=0)
    image = models.URLField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(name="product_stock_non_negative", condition=models.Q(stock__gte=0)),
            models.CheckConstraint(name="product_price_non_negative", condition=models.Q(price__gte=0)),
            models.CheckConstraint(
                name="product_discount_price_non_negative",
                condition=models.Q(discount_price__gte=0) | models.Q(discount_price__isnull=True),
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "price"], name="product_active_price_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} [{self.sku}]"

    @property
    def effective_price(self) -> Decimal:
        """Price a customer pays now: the sale price when set, else the list price."""
        if self.discount_price is not None:
            return self.discount_price
        return self.price
