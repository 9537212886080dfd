"""App configuration for teams, memberships, and the activity log."""

from django.apps import AppConfig


class TeamsConfig(AppConfig):
    """Teams group users; articles may optionally be scoped to one."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "teams"
