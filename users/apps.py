"""Django app configuration for the users app."""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Custom user model and JWT authentication endpoints."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
