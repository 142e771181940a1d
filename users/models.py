"""User model for authentication and ownership of carts, orders and payments."""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user with a unique, normalized email.

    Staff users (`is_staff`) act as administrators for order management.
    """

    email = models.EmailField(unique=True)

    def save(self, *args, **kwargs):
        """Store the email lowercase without surrounding whitespace so uniqueness checks are reliable."""
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username
