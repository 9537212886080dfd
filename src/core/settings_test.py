"""Settings for the test-suite: in-memory SQLite and cheap bcrypt."""

from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

BCRYPT_ROUNDS = 4
ARTICLES_TEAM_ACCESS = False
LOGGING["loggers"]["django"]["level"] = "ERROR"  # noqa: F405
