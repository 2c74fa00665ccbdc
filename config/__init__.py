"""Top-level package for Django configuration.

Settings modules for each environment live in ``config.settings``; the
composition root that wires the booking services together is
``config.container``.
"""
