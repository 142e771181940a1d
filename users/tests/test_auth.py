import pytest
from common.exceptions import Unauthorized
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken
from users.auth import verify_access_token
from users.tests.factories import UserFactory


@pytest.mark.django_db
def test_signin_returns_token_pair_for_valid_credentials():
    user = UserFactory(email="Buyer@Example.com")
    client = APIClient()

    r = client.post("/api/v1/auth/signin/", {"email": "buyer@example.com", "password": "pass1234"}, format="json")

    assert r.status_code == 200
    body = r.json()
    assert "access" in body and "refresh" in body
    assert verify_access_token(body["access"]).id == user.id


@pytest.mark.django_db
def test_signin_rejects_wrong_password_with_error_envelope():
    UserFactory(email="buyer@example.com")
    client = APIClient()

    r = client.post("/api/v1/auth/signin/", {"email": "buyer@example.com", "password": "nope"}, format="json")

    assert r.status_code == 400
    assert r.json()["status"] == "error"


@pytest.mark.django_db
def test_verify_access_token_resolves_user():
    user = UserFactory()
    token = str(AccessToken.for_user(user))

    assert verify_access_token(token) == user


@pytest.mark.django_db
@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_verify_access_token_rejects_missing_or_malformed(token):
    with pytest.raises(Unauthorized):
        verify_access_token(token)


@pytest.mark.django_db
def test_verify_access_token_rejects_refresh_token():
    user = UserFactory()
    refresh = str(RefreshToken.for_user(user))

    with pytest.raises(Unauthorized):
        verify_access_token(refresh)


@pytest.mark.django_db
def test_verify_access_token_rejects_inactive_user():
    user = UserFactory(is_active=False)
    token = str(AccessToken.for_user(user))

    with pytest.raises(Unauthorized):
        verify_access_token(token)
