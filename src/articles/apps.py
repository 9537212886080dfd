"""App configuration for articles."""

from django.apps import AppConfig


class ArticlesConfig(AppConfig):
    """Articles with categories, tags, and comments."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "articles"
