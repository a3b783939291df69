"""
In-memory booking store with a conflict check at commit time.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from pendulum import DateTime

from ..domain.exceptions import BookingConflict
from ..domain.models import Booking

logger = logging.getLogger(__name__)


class InMemoryBookingStore:
    """
    Booking store kept in process memory.

    ``insert_booking`` performs the overlap check and the append under one
    lock, so two concurrent requests for the same slot cannot both commit.
    Optionally seeded from a JSON file holding a list of
    ``{"resourceId": ..., "startAt": ..., "endAt": ...}`` rows.
    """

    def __init__(self, seed_file: Optional[Path] = None):
        self._bookings: Dict[str, List[Booking]] = {}
        self._lock = threading.Lock()
        if seed_file is not None:
            self._load_seed(seed_file)

    def _load_seed(self, seed_file: Path) -> None:
        """Load committed bookings from a JSON file."""
        if not seed_file.exists():
            raise FileNotFoundError(f"Bookings file not found: {seed_file}")

        with open(seed_file, "r", encoding="utf-8") as f:
            rows = json.load(f)

        if not isinstance(rows, list):
            raise ValueError("Bookings file must contain a list of booking rows.")

        for row in rows:
            try:
                booking = Booking.from_mapping(row)
            except (KeyError, ValueError, TypeError) as exc:
                logger.warning("Skipping invalid booking row %r: %s", row, exc)
                continue
            resource_id = str(row.get("resourceId", row.get("resource_id", "")))
            self._bookings.setdefault(resource_id, []).append(booking)

    async def list_bookings(
        self,
        resource_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[Booking]:
        """Return bookings for ``resource_id`` overlapping [start, end)."""
        with self._lock:
            stored = list(self._bookings.get(resource_id, []))
        return [booking for booking in stored if booking.start < end and booking.end > start]

    async def insert_booking(self, resource_id: str, booking: Booking) -> Booking:
        """
        Commit ``booking`` unless it overlaps an existing one.

        Raises:
            BookingConflict: If an overlapping booking is already stored
        """
        with self._lock:
            existing = self._bookings.setdefault(resource_id, [])
            for other in existing:
                if other.overlaps(booking):
                    raise BookingConflict(resource_id, booking, other)
            existing.append(booking)
        return booking

    def all_bookings(self, resource_id: str) -> List[Booking]:
        with self._lock:
            return sorted(self._bookings.get(resource_id, []), key=lambda b: b.start)
