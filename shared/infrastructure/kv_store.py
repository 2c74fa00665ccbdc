"""Synchronous key/value namespace for persisted client state."""

from __future__ import annotations

from django.conf import settings
from django.core.cache import caches

DEFAULT_CACHE_ALIAS = "client_state"


class KeyValueStore:
    """
    String key/value store backed by a Django cache alias

    Entries never time out at the cache level; freshness is managed by
    SecureStorage through its ``_expiry`` entries.
    """

    def __init__(self, alias: str | None = None):
        self.alias = alias or getattr(settings, "SECURE_STORAGE_CACHE_ALIAS", DEFAULT_CACHE_ALIAS)

    @property
    def _cache(self):
        return caches[self.alias]

    def get(self, key: str) -> str | None:
        return self._cache.get(key)

    def set(self, key: str, value: str) -> None:
        self._cache.set(key, value, None)

    def delete(self, *keys: str) -> None:
        self._cache.delete_many(list(keys))

    def __contains__(self, key: str) -> bool:
        return self._cache.has_key(key)
