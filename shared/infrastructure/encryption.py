"""
Encryption utilities

Provides the symmetric cipher used by SecureStorage to encrypt persisted
client state. Uses Fernet (AES-128-CBC + HMAC-SHA256) with a key that is
derived once per KeyProvider.

Release configuration (DEBUG = False):
    the key is derived from ENCRYPTION_KEY with PBKDF2-HMAC-SHA256, so the
    same passphrase always yields the same key and persisted drafts survive
    process restarts.
Debug configuration (DEBUG = True):
    a fresh random key is generated and never leaves the process.
"""

import asyncio
import base64
import logging

from asgiref.sync import sync_to_async
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_SALT = 'booking-draft-storage'
DEFAULT_ITERATIONS = 100_000

__all__ = [
    'EncryptionUnavailable',
    'InvalidToken',
    'KeyProvider',
    'StorageCipher',
    'derive_key',
]


class EncryptionUnavailable(Exception):
    """Raised when no encryption key can be produced."""


def derive_key(passphrase: str, salt: str, iterations: int = DEFAULT_ITERATIONS) -> bytes:
    """
    Derive a Fernet key from a passphrase

    Returns a 32-byte URL-safe base64-encoded key.
    """
    if not passphrase:
        raise EncryptionUnavailable(
            "ENCRYPTION_KEY not configured in settings. "
            "Generate one with: python -c 'from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())'"
        )

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt.encode(),
        iterations=iterations,
    )
    return base64.urlsafe_b64encode(kdf.derive(passphrase.encode()))


class KeyProvider:
    """
    Lazily derives the storage key, at most once

    The in-flight derivation is memoized as a future rather than as a
    value, so callers racing during startup all await the same derivation.
    """

    def __init__(self, passphrase=None, salt=None, iterations=None, debug=None):
        self.passphrase = passphrase if passphrase is not None else getattr(settings, 'ENCRYPTION_KEY', '')
        self.salt = salt or getattr(settings, 'ENCRYPTION_SALT', DEFAULT_SALT)
        self.iterations = iterations or getattr(settings, 'ENCRYPTION_KDF_ITERATIONS', DEFAULT_ITERATIONS)
        self.debug = debug if debug is not None else getattr(settings, 'DEBUG', False)
        self.derivations = 0
        self._key: bytes | None = None
        self._pending: asyncio.Future | None = None

    def _derive(self) -> bytes:
        self.derivations += 1
        if self.debug:
            logger.debug("Generating ephemeral storage key (debug configuration)")
            return Fernet.generate_key()
        return derive_key(self.passphrase, self.salt, self.iterations)

    async def get_key(self) -> bytes:
        if self._key is not None:
            return self._key

        loop = asyncio.get_running_loop()
        if self._pending is None or (not self._pending.done() and self._pending.get_loop() is not loop):
            self._pending = loop.create_task(sync_to_async(self._derive, thread_sensitive=False)())

        pending = self._pending
        try:
            key = await pending
        except EncryptionUnavailable:
            if self._pending is pending:
                self._pending = None
            raise

        self._key = key
        return key

    async def get_cipher(self) -> 'StorageCipher':
        return StorageCipher(await self.get_key())


class StorageCipher:
    """Encrypt/decrypt text with a Fernet key"""

    def __init__(self, key: bytes):
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string

        Returns a URL-safe base64 Fernet token.
        """
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, token: str) -> str:
        """
        Decrypt a Fernet token

        Raises InvalidToken when the token was tampered with or was
        produced with another key.
        """
        return self._fernet.decrypt(token.encode()).decode()
