"""Development settings.

Debug mode generates an ephemeral storage key so persisted drafts stay
readable only within one process. Do not use these settings in production!
"""

from .base import *  # noqa: F401,F403

DEBUG = True

LOGGING["loggers"]["apps"]["level"] = "DEBUG"  # noqa: F405
LOGGING["loggers"]["shared"]["level"] = "DEBUG"  # noqa: F405
