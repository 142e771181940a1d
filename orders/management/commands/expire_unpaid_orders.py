from django.core.management.base import BaseCommand
from orders.services import expire_unpaid_orders


class Command(BaseCommand):
    help = "Cancel ONLINE orders still awaiting payment after ORDER_PAYMENT_TTL_MINUTES and release their stock."

    def add_arguments(self, parser):
        parser.add_argument(
            "--minutes",
            type=int,
            default=None,
            help="Override the payment TTL in minutes.",
        )

    def handle(self, *args, **options):
        expired = expire_unpaid_orders(older_than_minutes=options["minutes"])
        for order_number in expired:
            self.stdout.write(f"Expired {order_number}")
        self.stdout.write(self.style.SUCCESS(f"Unpaid orders expired: {len(expired)}"))
