"""Test settings for Storefront project.

Uses PostgreSQL when POSTGRES_HOST is set, otherwise an in-memory SQLite
database. Row-locking tests are skipped on SQLite.
"""

import os

from .base import *  # noqa: F401,F403
from .base import STORE

DEBUG = False

SECRET_KEY = "test-secret-key-not-for-production"

if not os.environ.get("POSTGRES_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STORE = {**STORE, "CHECKOUT_RETRY_BACKOFF": 0}
