"""Django app configuration for catalog."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Products consumed by the cart and order workflows."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
