"""Shared enumerations and choices used across apps."""

from django.db import models


class MovementType(models.TextChoices):
    INBOUND = "in", "Inbound"
    OUTBOUND = "out", "Outbound"


class PaymentMethod(models.TextChoices):
    """How the customer settles an order."""

    COD = "COD", "Cash on delivery"
    ONLINE = "ONLINE", "Online"


class PaymentStatus(models.TextChoices):
    """Payment state of an order as seen by the customer."""

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class OrderStatus(models.TextChoices):
    """Fulfilment lifecycle statuses for orders."""

    PLACED = "placed", "Placed"
    CONFIRMED = "confirmed", "Confirmed"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentRecordStatus(models.TextChoices):
    """Status of a single gateway payment attempt."""

    CREATED = "created", "Created"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
