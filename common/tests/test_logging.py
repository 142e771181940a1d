import json
import logging
from decimal import Decimal

from config.logging import JsonFormatter, SamplingFilter


def _record(msg, level=logging.INFO, **extra):
    record = logging.LogRecord("shopfront.orders", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_extra_context():
    payload = json.loads(JsonFormatter().format(_record("order.created", order_number="ORD-1", amount=Decimal("5"))))

    assert payload["event"] == "order.created"
    assert payload["level"] == "INFO"
    assert payload["order_number"] == "ORD-1"
    assert payload["amount"] == "5"


def test_sampling_filter_never_drops_allowed_events():
    sampler = SamplingFilter(rate=0.0, levels=["INFO"], allow_events=["order.cancelled"])

    assert sampler.filter(_record("order.cancelled")) is True
    assert sampler.filter(_record("order.created")) is False
    assert sampler.filter(_record("order.created", level=logging.WARNING)) is True
