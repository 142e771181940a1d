"""Authentication routes under /api/v1/auth/.

JWT sign-in (obtain pair), refresh and verify, provided by simplejwt.
"""

from django.urls import path

from .views import RefreshView, SignInView, VerifyView

urlpatterns = [
    path("auth/signin/", SignInView.as_view(), name="signin"),
    path("auth/refresh/", RefreshView.as_view(), name="token_refresh"),
    path("auth/verify/", VerifyView.as_view(), name="token_verify"),
]
