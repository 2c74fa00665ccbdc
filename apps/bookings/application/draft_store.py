"""
Booking draft store

Holds the in-progress booking in memory and mirrors it to SecureStorage.
The in-memory draft is always the source of truth; the persisted copy is a
best-effort mirror used to resume after a reload.

Usage:
    store = await BookingDraftStore.open(storage)
    store.update(property=snapshot, check_in=date(2024, 6, 1), check_out=date(2024, 6, 4))
    store.draft.total_amount      # recomputed from dates and property
    await store.flush()           # wait for the background write, if needed
"""

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Any, Mapping, Optional

from asgiref.sync import async_to_sync
from django.conf import settings

from apps.bookings.domain.entities import BookingDraft, DraftState, PropertySnapshot

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = 'booking_state'

_UNSET: Any = object()


class BookingDraftStore:
    """
    Draft state machine: EMPTY -> PARTIAL -> COMPLETE, back to EMPTY on clear()

    Persistence runs as background tasks on the running event loop (inline
    when there is none). Writes are chained so the last update wins, and
    failures are logged without touching the in-memory draft.
    """

    def __init__(self, storage, storage_key: Optional[str] = None):
        self.storage = storage
        self.storage_key = storage_key or getattr(settings, 'BOOKING_DRAFT_STORAGE_KEY', DEFAULT_STORAGE_KEY)
        self._draft = BookingDraft()
        self._revision = 0
        self._pending: set = set()
        self._last_write: Optional[asyncio.Task] = None

    @classmethod
    async def open(cls, storage, storage_key: Optional[str] = None) -> 'BookingDraftStore':
        store = cls(storage, storage_key=storage_key)
        await store.load()
        return store

    @property
    def draft(self) -> BookingDraft:
        return self._draft

    @property
    def state(self) -> DraftState:
        return self._draft.state

    async def load(self) -> BookingDraft:
        """Restore the persisted draft, if a valid one exists"""
        payload = await self.storage.get_item(self.storage_key)
        if payload is None:
            return self._draft

        try:
            restored = BookingDraft.from_dict(payload)
        except ValueError as e:
            logger.warning("Discarding malformed booking draft: %s", e)
            await self.storage.remove_item(self.storage_key)
            return self._draft

        # edits made while the load was in flight take precedence
        if self._revision == 0:
            self._draft = restored
            logger.info("Restored booking draft for property %s", restored.property.id if restored.property else None)
        return self._draft

    def update(
        self,
        *,
        check_in: Optional[date] = _UNSET,
        check_out: Optional[date] = _UNSET,
        guests: int = _UNSET,
        property: PropertySnapshot | Mapping[str, Any] | None = None,
    ) -> BookingDraft:
        """
        Merge the given fields into the draft and persist it

        Dates may be set to None to clear them. The property is replaced
        only when one is given. Guests are kept within [1, max_guests].
        """
        changes = {}
        if check_in is not _UNSET:
            changes['check_in'] = check_in
        if check_out is not _UNSET:
            changes['check_out'] = check_out
        if property is not None:
            if not isinstance(property, PropertySnapshot):
                property = PropertySnapshot.from_record(property)
            changes['property'] = property

        snapshot = changes.get('property', self._draft.property)
        requested_guests = self._draft.guests if guests is _UNSET else guests
        changes['guests'] = self._clamp_guests(requested_guests, snapshot)

        self._draft = replace(self._draft, **changes)
        self._revision += 1
        self._schedule(self.storage.set_item(self.storage_key, self._draft.to_dict()), 'persist')
        return self._draft

    def reserve(self, snapshot: PropertySnapshot, check_in: date, check_out: date, guests: int) -> BookingDraft:
        """Apply a "Reserve" navigation payload in a single update"""
        return self.update(property=snapshot, check_in=check_in, check_out=check_out, guests=guests)

    def clear(self) -> BookingDraft:
        """Reset to an empty draft and delete the persisted copy"""
        self._draft = BookingDraft()
        self._revision += 1
        self._schedule(self.storage.remove_item(self.storage_key), 'remove')
        return self._draft

    async def flush(self) -> None:
        """Wait for outstanding background writes"""
        loop = asyncio.get_running_loop()
        pending = [task for task in self._pending if task.get_loop() is loop]
        if pending:
            await asyncio.gather(*pending)

    # ---------- internals ----------

    @staticmethod
    def _clamp_guests(guests: int, snapshot: Optional[PropertySnapshot]) -> int:
        guests = max(int(guests), 1)
        if snapshot is not None and snapshot.max_guests:
            guests = min(guests, snapshot.max_guests)
        return guests

    def _schedule(self, operation, description: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            async_to_sync(self._run)(None, operation, description)
            return

        previous = self._last_write
        if previous is not None and previous.get_loop() is not loop:
            previous = None

        task = loop.create_task(self._run(previous, operation, description))
        self._last_write = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(self, previous, operation, description: str) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        try:
            await operation
        except Exception as e:
            # the in-memory draft stays authoritative
            logger.error("Failed to %s booking draft %s: %s", description, self.storage_key, e, exc_info=True)
