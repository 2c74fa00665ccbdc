"""Base settings for all environments.

Common configuration for the booking core: encryption of persisted client
state, the key/value namespace it is written to, submission throttling,
the remote store endpoint and structured logging. Environment specific
overrides live in `dev.py`, `prod.py` and `test.py`.
"""

from pathlib import Path

import structlog
from dotenv import load_dotenv

from config.env import get_bool_env, get_env, get_int_env

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(BASE_DIR / '.env')

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = get_env('DJANGO_SECRET_KEY', 'replace-me-in-production')

DEBUG = get_bool_env('DJANGO_DEBUG', False)

INSTALLED_APPS = [
    'apps.core',
    'apps.bookings',
    'apps.payments',
    'apps.properties',
]

TIME_ZONE = 'UTC'

USE_TZ = True

# Passphrase the storage key is derived from (release configuration).
# Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
ENCRYPTION_KEY = get_env('ENCRYPTION_KEY', 'dev-encryption-key-replace-in-production')
ENCRYPTION_SALT = get_env('ENCRYPTION_SALT', 'booking-draft-storage')
ENCRYPTION_KDF_ITERATIONS = get_int_env('ENCRYPTION_KDF_ITERATIONS', 100_000)

# Browser-local key/value namespace for persisted client state
SECURE_STORAGE_CACHE_ALIAS = 'client_state'
SECURE_STORAGE_EXPIRATION_HOURS = get_int_env('SECURE_STORAGE_EXPIRATION_HOURS', 24)

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    },
    SECURE_STORAGE_CACHE_ALIAS: {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'client-state',
        'TIMEOUT': None,
    },
}

# Booking draft & submission
BOOKING_DRAFT_STORAGE_KEY = 'booking_state'
BOOKING_SUBMIT_MAX_ATTEMPTS = get_int_env('BOOKING_SUBMIT_MAX_ATTEMPTS', 3)
BOOKING_SUBMIT_WINDOW_MS = get_int_env('BOOKING_SUBMIT_WINDOW_MS', 10 * 60 * 1000)

# Hosted backend (auth + tables). Empty URL -> in-memory emulation.
REMOTE_STORE_URL = get_env('REMOTE_STORE_URL', '')
REMOTE_STORE_API_KEY = get_env('REMOTE_STORE_API_KEY', '')
REMOTE_STORE_TIMEOUT = get_int_env('REMOTE_STORE_TIMEOUT', 30)

# Logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "structlog.stdlib.ProcessorFormatter",
            "processor": structlog.processors.JSONRenderer(),
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "level": "INFO",
        }
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "apps": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "shared": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}
