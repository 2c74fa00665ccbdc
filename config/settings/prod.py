"""Production settings.

Secrets must come from the environment: the storage passphrase and the
remote store credentials are required here.
"""

from .base import *  # noqa: F401,F403

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)  # noqa: F405
ENCRYPTION_KEY = get_env('ENCRYPTION_KEY', required=True)  # noqa: F405
REMOTE_STORE_URL = get_env('REMOTE_STORE_URL', required=True)  # noqa: F405
REMOTE_STORE_API_KEY = get_env('REMOTE_STORE_API_KEY', required=True)  # noqa: F405
