"""App configuration for authentication components."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Holds the custom User model, JWT issuance, and the token blocklist."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
