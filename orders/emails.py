"""Email utilities for the orders app.

Uses Django's email backend, with links composed from FRONTEND_URL.
"""

from django.conf import settings
from django.core.mail import send_mail


def send_order_confirmation_email(order) -> None:
    """Tell the customer their order is confirmed (COD placement or verified payment).

    No-ops when the user has no email address.
    """
    to_email = getattr(order.user, "email", None)
    if not to_email:
        return

    frontend = getattr(settings, "FRONTEND_URL", "")
    order_url = f"{frontend.rstrip('/')}/orders/{order.id}" if frontend else ""

    body = (
        "Thank you for your purchase!\n\n"
        f"Order: {order.order_number}\n"
        f"Total: {order.total_amount} {order.currency}\n"
        f"Payment: {order.get_payment_method_display()} ({order.payment_status})\n"
    )
    if order_url:
        body += f"\nYou can view your order here: {order_url}\n"

    send_mail(
        f"Your order {order.order_number} is confirmed",
        body,
        getattr(settings, "DEFAULT_FROM_EMAIL", None),
        [to_email],
        fail_silently=True,
    )
