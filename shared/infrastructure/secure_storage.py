"""
Secure storage

Encrypted, integrity-checked, expiring persistence for client state such
as the in-progress booking draft.

Every logical key is written as three entries:
    <key>            ciphertext (Fernet token, or plain:<base64> fallback)
    <key>_expiry     expiry as epoch milliseconds, decimal string
    <key>_integrity  hex SHA-256 of the plaintext JSON

An entry is only returned when it has not expired and the digest of the
decrypted plaintext matches the stored digest. Anything else purges all
three entries and reads as a miss.
"""

import base64
import hashlib
import hmac
import json
import logging
import time

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from shared.infrastructure.encryption import EncryptionUnavailable, InvalidToken, KeyProvider
from shared.infrastructure.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

EXPIRY_SUFFIX = '_expiry'
INTEGRITY_SUFFIX = '_integrity'
PLAIN_PREFIX = 'plain:'
DEFAULT_EXPIRATION_HOURS = 24


class StoragePersistenceFailed(Exception):
    """Raised when a value cannot be written to secure storage."""


def integrity_digest(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode()).hexdigest()


def _now_ms() -> int:
    return int(time.time() * 1000)


class SecureStorage:
    """
    Async facade over a synchronous key/value store

    Args:
        backend: KeyValueStore (defaults to the configured cache alias)
        key_provider: KeyProvider owning the derived encryption key
        clock: callable returning the current time in epoch milliseconds
    """

    def __init__(self, backend=None, key_provider=None, clock=None, default_expiration_hours=None):
        self.backend = backend or KeyValueStore()
        self.key_provider = key_provider or KeyProvider()
        self.clock = clock or _now_ms
        self.default_expiration_hours = default_expiration_hours or getattr(
            settings, 'SECURE_STORAGE_EXPIRATION_HOURS', DEFAULT_EXPIRATION_HOURS
        )
        self.fallback_writes = 0

    @staticmethod
    def entry_keys(key: str) -> tuple[str, str, str]:
        return key, f"{key}{EXPIRY_SUFFIX}", f"{key}{INTEGRITY_SUFFIX}"

    # ---------- public API ----------

    async def set_item(self, key: str, value, expiration_hours: float | None = None) -> None:
        """
        Serialize, encrypt and store ``value`` under ``key``

        Raises StoragePersistenceFailed if the value is not JSON-serializable.
        """
        try:
            plaintext = json.dumps(value, cls=DjangoJSONEncoder)
        except (TypeError, ValueError) as e:
            raise StoragePersistenceFailed(f"Cannot serialize value for {key}: {e}") from e

        hours = self.default_expiration_hours if expiration_hours is None else expiration_hours
        ciphertext = await self._encrypt(plaintext)
        expiry = self.clock() + int(hours * 3600 * 1000)

        await sync_to_async(self._write)(key, ciphertext, str(expiry), integrity_digest(plaintext))
        logger.debug("Stored %s (expires at %s)", key, expiry)

    async def get_item(self, key: str):
        """Return the stored value, or None on miss, expiry or tampering"""
        ciphertext, expiry, integrity = await sync_to_async(self._read)(key)

        if expiry is not None and self._is_expired(expiry):
            logger.info("Stored entry %s expired, purging", key)
            await self.remove_item(key)
            return None

        if ciphertext is None:
            return None

        try:
            plaintext = await self._decrypt(ciphertext)
            value = json.loads(plaintext)
        except (InvalidToken, EncryptionUnavailable, ValueError, TypeError, AttributeError) as e:
            logger.warning("Cannot decode stored entry %s, purging: %s", key, e)
            await self.remove_item(key)
            return None

        if integrity is None or not hmac.compare_digest(integrity_digest(plaintext), integrity):
            logger.warning("Integrity check failed for stored entry %s, purging", key)
            await self.remove_item(key)
            return None

        return value

    async def remove_item(self, key: str) -> None:
        await sync_to_async(self.backend.delete)(*self.entry_keys(key))

    # ---------- internals ----------

    def _write(self, key: str, ciphertext: str, expiry: str, integrity: str) -> None:
        data_key, expiry_key, integrity_key = self.entry_keys(key)
        self.backend.set(data_key, ciphertext)
        self.backend.set(expiry_key, expiry)
        self.backend.set(integrity_key, integrity)

    def _read(self, key: str):
        return tuple(self.backend.get(k) for k in self.entry_keys(key))

    def _is_expired(self, expiry: str) -> bool:
        try:
            return self.clock() > int(expiry)
        except (TypeError, ValueError):
            # unreadable expiry is treated like an expired entry
            return True

    async def _encrypt(self, plaintext: str) -> str:
        try:
            cipher = await self.key_provider.get_cipher()
            return cipher.encrypt(plaintext)
        except (EncryptionUnavailable, TypeError, ValueError) as e:
            self.fallback_writes += 1
            logger.warning("Encryption unavailable, storing plain encoding: %s", e)
            return PLAIN_PREFIX + base64.b64encode(plaintext.encode()).decode()

    async def _decrypt(self, ciphertext: str) -> str:
        if ciphertext.startswith(PLAIN_PREFIX):
            return base64.b64decode(ciphertext[len(PLAIN_PREFIX):], validate=True).decode()
        cipher = await self.key_provider.get_cipher()
        return cipher.decrypt(ciphertext)
