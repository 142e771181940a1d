"""Client for the hosted payment gateway (Razorpay orders API).

Intents are created over HTTP with basic auth. Callback signatures are
HMAC-SHA256 hex digests of ``"<gateway order id>|<gateway payment id>"``
keyed with the account secret. There are no retries here: a failed call
surfaces as `GatewayError` and the client may try again.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass

import requests
from common.exceptions import GatewayError
from common.money import to_minor_units
from django.conf import settings

logger = logging.getLogger("shopfront.payments")


@dataclass(frozen=True)
class GatewayIntent:
    intent_id: str
    amount: int  # minor units
    currency: str


def sign_payload(secret: str, order_ref: str, payment_ref: str) -> str:
    message = f"{order_ref}|{payment_ref}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(secret: str, order_ref: str, payment_ref: str, signature: str) -> bool:
    """Constant-time check of a callback signature."""
    expected = sign_payload(secret, order_ref, payment_ref)
    return hmac.compare_digest(expected, str(signature or ""))


class RazorpayGateway:
    def __init__(self, *, key_id: str, key_secret: str, base_url: str, timeout: int = 10):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def create_intent(self, *, amount, currency: str, receipt: str) -> GatewayIntent:
        """Create a gateway order for `amount` (major units) and return its id."""

        url = f"{self.base_url}/orders"
        payload = {"amount": to_minor_units(amount), "currency": currency, "receipt": receipt}
        try:
            resp = requests.post(url, json=payload, auth=(self.key_id, self.key_secret), timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("payment.gateway_error", extra={"receipt": receipt, "error": str(exc)})
            raise GatewayError() from exc

        intent_id = data.get("id") if isinstance(data, dict) else None
        if not intent_id:
            logger.warning("payment.gateway_malformed_response", extra={"receipt": receipt})
            raise GatewayError("Payment provider returned an invalid response")

        logger.info("payment.intent_created", extra={"receipt": receipt, "gateway_order_id": intent_id})
        return GatewayIntent(
            intent_id=str(intent_id),
            amount=int(data.get("amount", payload["amount"])),
            currency=str(data.get("currency", currency)),
        )

    def sign_payload(self, order_ref: str, payment_ref: str) -> str:
        return sign_payload(self.key_secret, order_ref, payment_ref)

    def verify_signature(self, order_ref: str, payment_ref: str, signature: str) -> bool:
        return verify_signature(self.key_secret, order_ref, payment_ref, signature)


def get_gateway() -> RazorpayGateway:
    return RazorpayGateway(
        key_id=settings.PAYMENT_GATEWAY_KEY_ID,
        key_secret=settings.PAYMENT_GATEWAY_KEY_SECRET,
        base_url=settings.PAYMENT_GATEWAY_BASE_URL,
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
    )
