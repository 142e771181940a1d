from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("gateway_order_id", models.CharField(db_index=True, max_length=64)),
                ("gateway_payment_id", models.CharField(blank=True, max_length=64)),
                ("gateway_signature", models.CharField(blank=True, max_length=128)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="INR", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[("created", "Created"), ("paid", "Paid"), ("failed", "Failed")],
                        db_index=True,
                        default="created",
                        max_length=16,
                    ),
                ),
                ("notes", models.JSONField(blank=True, default=dict)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="orders.order"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["order", "user"], name="payment_order_user_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(status="created"),
                        fields=("order",),
                        name="unique_open_payment_per_order",
                    ),
                    models.CheckConstraint(condition=models.Q(amount__gte=0), name="payment_amount_non_negative"),
                ],
            },
        ),
    ]
