"""Payment attempts against the external gateway.

At most one ``created`` attempt exists per order at a time, enforced by a
partial unique constraint. A ``paid`` attempt is never modified again.
"""

from decimal import Decimal

from common.choices import PaymentRecordStatus
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Payment(TimeStampedModel):
    order = models.ForeignKey("orders.Order", related_name="payments", on_delete=models.PROTECT)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="payments", on_delete=models.CASCADE)
    gateway_order_id = models.CharField(max_length=64, db_index=True)
    gateway_payment_id = models.CharField(max_length=64, blank=True)
    gateway_signature = models.CharField(max_length=128, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="INR")
    status = models.CharField(
        max_length=16, choices=PaymentRecordStatus.choices, default=PaymentRecordStatus.CREATED, db_index=True
    )
    notes = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["order", "user"], name="payment_order_user_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status=PaymentRecordStatus.CREATED),
                name="unique_open_payment_per_order",
            ),
            models.CheckConstraint(name="payment_amount_non_negative", condition=models.Q(amount__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Payment#{self.id} order={self.order_id} status={self.status}"
