"""Read access to listings in the remote store."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from apps.bookings.domain.entities import BookingDraft, PropertySnapshot

logger = logging.getLogger(__name__)


class PropertyUnavailable(Exception):
    """Raised when a listing cannot be reserved."""


class PropertyCatalog:
    """Loads property snapshots used to price booking drafts."""

    def __init__(self, remote_store):
        self.remote_store = remote_store

    async def fetch_snapshot(self, property_id: str) -> Optional[PropertySnapshot]:
        rows = await self.remote_store.table("properties").select({"id": property_id}, limit=1)
        if not rows:
            logger.info("Property %s not found", property_id)
            return None
        return PropertySnapshot.from_record(rows[0])

    async def reserve_property(
        self,
        draft_store,
        property_id: str,
        check_in: date | None = None,
        check_out: date | None = None,
        guests: int = 2,
    ) -> BookingDraft:
        """Capture a fresh snapshot of the listing into the draft."""
        snapshot = await self.fetch_snapshot(property_id)
        if snapshot is None:
            raise PropertyUnavailable(f"Property {property_id} not found")
        if not snapshot.is_active:
            raise PropertyUnavailable(f"Property {property_id} is not active")
        draft = draft_store.reserve(snapshot, check_in, check_out, guests)
        await draft_store.flush()
        return draft
