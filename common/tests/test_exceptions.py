from common.exceptions import Conflict, InsufficientStock, api_exception_handler
from django.db import OperationalError
from rest_framework import exceptions as drf_exceptions


class _View:
    pass


def _handle(exc):
    return api_exception_handler(exc, {"view": _View()})


def test_domain_error_renders_envelope_with_its_status():
    r = _handle(InsufficientStock("Only 2 unit(s) of Mug available"))

    assert r.status_code == 400
    assert r.data == {"status": "error", "message": "Only 2 unit(s) of Mug available", "code": "insufficient_stock"}


def test_domain_error_falls_back_to_default_message():
    r = _handle(Conflict())

    assert r.status_code == 409
    assert r.data["message"] == "Conflicting state"


def test_drf_validation_error_keeps_field_errors():
    r = _handle(drf_exceptions.ValidationError({"quantity": ["This field is required."]}))

    assert r.status_code == 400
    assert r.data["code"] == "validation_error"
    assert r.data["errors"] == {"quantity": ["This field is required."]}


def test_drf_auth_error_uses_detail_code():
    r = _handle(drf_exceptions.NotAuthenticated())

    assert r.status_code == 401
    assert r.data["status"] == "error"
    assert r.data["code"] == "not_authenticated"


def test_operational_error_is_reported_as_retryable():
    r = _handle(OperationalError("database is locked"))

    assert r.status_code == 503
    assert r.data["code"] == "transaction_failed"
    assert r.data["retryable"] is True


def test_unexpected_error_hides_details():
    r = _handle(RuntimeError("secret stack detail"))

    assert r.status_code == 500
    assert r.data == {"status": "error", "message": "Internal server error", "code": "internal_error"}
