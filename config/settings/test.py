"""Test settings.

Release-style key derivation with a cheap iteration count and the
in-memory remote store.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

ENCRYPTION_KEY = 'test-encryption-key'
ENCRYPTION_KDF_ITERATIONS = 1_000

REMOTE_STORE_URL = ''

# plain stdlib logging so records propagate to pytest caplog
LOGGING = {"version": 1, "disable_existing_loggers": False}
