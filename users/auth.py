"""Access-token verification for flows that cannot send an Authorization header.

The hosted checkout page is opened in a browser tab, so the JWT travels as a
query parameter and is validated here instead of by DRF authentication.
"""

from common.exceptions import Unauthorized
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken


def verify_access_token(token: str | None):
    """Return the active user a JWT access token belongs to.

    Raises `Unauthorized` for a missing, malformed or expired token, or when
    the user no longer exists or is inactive.
    """
    if not token:
        raise Unauthorized("Access token required")
    try:
        access = AccessToken(token)
    except TokenError:
        raise Unauthorized("Invalid or expired token")

    user_id = access.get(api_settings.USER_ID_CLAIM)
    User = get_user_model()
    try:
        user = User.objects.get(**{api_settings.USER_ID_FIELD: user_id})
    except User.DoesNotExist:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Unauthorized("User not found")
    return user
