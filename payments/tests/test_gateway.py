import hashlib
import hmac
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests
from common.exceptions import GatewayError
from payments.gateway import RazorpayGateway, get_gateway, sign_payload, verify_signature


def _gateway():
    return RazorpayGateway(key_id="key", key_secret="secret", base_url="https://gateway.test/v1/", timeout=3)


def test_sign_payload_is_hmac_sha256_hex_of_joined_refs():
    expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()

    assert sign_payload("secret", "order_1", "pay_1") == expected


def test_verify_signature_rejects_tampering():
    good = sign_payload("secret", "order_1", "pay_1")

    assert verify_signature("secret", "order_1", "pay_1", good)
    assert not verify_signature("secret", "order_1", "pay_2", good)
    assert not verify_signature("other", "order_1", "pay_1", good)
    assert not verify_signature("secret", "order_1", "pay_1", "")


def test_create_intent_posts_minor_units_with_basic_auth():
    response = Mock()
    response.json.return_value = {"id": "order_ABC", "amount": 22550, "currency": "INR"}
    with patch("payments.gateway.requests.post", return_value=response) as post:
        intent = _gateway().create_intent(amount=Decimal("225.50"), currency="INR", receipt="ORD-1-12345")

    post.assert_called_once_with(
        "https://gateway.test/v1/orders",
        json={"amount": 22550, "currency": "INR", "receipt": "ORD-1-12345"},
        auth=("key", "secret"),
        timeout=3,
    )
    assert (intent.intent_id, intent.amount, intent.currency) == ("order_ABC", 22550, "INR")


@pytest.mark.parametrize(
    "failure",
    [requests.ConnectionError("down"), requests.Timeout("slow")],
)
def test_transport_failures_become_gateway_error(failure):
    with patch("payments.gateway.requests.post", side_effect=failure):
        with pytest.raises(GatewayError):
            _gateway().create_intent(amount=Decimal("10.00"), currency="INR", receipt="r")


def test_http_error_and_malformed_body_become_gateway_error():
    bad_status = Mock()
    bad_status.raise_for_status.side_effect = requests.HTTPError("401")
    no_id = Mock()
    no_id.json.return_value = {"error": {"code": "BAD_REQUEST_ERROR"}}

    for response in (bad_status, no_id):
        with patch("payments.gateway.requests.post", return_value=response):
            with pytest.raises(GatewayError):
                _gateway().create_intent(amount=Decimal("10.00"), currency="INR", receipt="r")


def test_get_gateway_reads_settings(settings):
    settings.PAYMENT_GATEWAY_KEY_ID = "rzp_live"
    settings.PAYMENT_GATEWAY_KEY_SECRET = "s3cret"

    gateway = get_gateway()

    assert gateway.key_id == "rzp_live"
    assert gateway.sign_payload("a", "b") == sign_payload("s3cret", "a", "b")
