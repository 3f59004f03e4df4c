# backend/settings/dev.py
"""
LOCAL DEVELOPMENT + TEST SETTINGS

SQLite unless DATABASE_URL is set. SQLite ignores select_for_update, so
concurrency behaviour of the stock ledger is only exercised on Postgres.
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import env  # explicit for Ruff (F405)

DEBUG = True

# "testserver" is the host Django's test client sends.
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1", "testserver"])
