"""
Application services for finding and booking appointment slots.

The service coordinates fetching committed bookings via a store adapter and
delegates the availability calculation to the domain-level
``AvailabilityResolver``. The store dependency is a simple protocol so it can
be swapped for a database-backed implementation or a stub in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from pendulum import DateTime

from ..domain.availability import AvailabilityResolver
from ..domain.exceptions import BookingConflict
from ..domain.models import AvailabilityResult, Booking, CandidateSlot
from ..domain.schedule import Resource
from ..domain.timezones import InstantLike, parse_instant

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the booking persistence needed by the service."""

    async def list_bookings(
        self,
        resource_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[Booking]:
        """Return committed bookings overlapping [start, end)."""

    async def insert_booking(self, resource_id: str, booking: Booking) -> Booking:
        """Commit a booking, raising BookingConflict if it overlaps an existing one."""


@dataclass
class BookingOutcome:
    """Result of a booking attempt."""
    booking: Optional[Booking] = None
    alternatives: Optional[AvailabilityResult] = None

    @property
    def booked(self) -> bool:
        return self.booking is not None


class AvailabilityService:
    """
    Orchestrates booking retrieval, slot resolution and booking commits.

    Bookings are fetched once for the whole search window (requested date plus
    fallback horizon) rather than per day.
    """

    def __init__(
        self,
        booking_store: BookingStoreProtocol,
        resolver: AvailabilityResolver,
    ) -> None:
        self._booking_store = booking_store
        self._resolver = resolver

    async def find_slots(
        self,
        *,
        resource_id: str,
        resource: Resource,
        requested_date: Optional[str],
        now: InstantLike,
    ) -> AvailabilityResult:
        """Fetch bookings for the search window and resolve candidate slots."""
        window = self._resolver.search_window(resource, requested_date, now)
        bookings = await self._booking_store.list_bookings(
            resource_id, window.start, window.end
        )
        return self._resolver.resolve(resource, requested_date, bookings, now)

    async def find_earlier_slots(
        self,
        *,
        resource_id: str,
        resource: Resource,
        before_date: Optional[str],
        now: InstantLike,
    ) -> List[CandidateSlot]:
        """Fetch bookings for the earlier-date window and list starts before ``before_date``."""
        window = self._resolver.earlier_window(resource, now)
        bookings = await self._booking_store.list_bookings(
            resource_id, window.start, window.end
        )
        return self._resolver.earlier_slots(resource, before_date, bookings, now)

    async def book(
        self,
        *,
        resource_id: str,
        resource: Resource,
        start_at: InstantLike,
        now: InstantLike,
    ) -> BookingOutcome:
        """
        Commit a booking starting at ``start_at``.

        The store performs the overlap check at write time. On a conflict the
        availability for the same date is recomputed and returned as
        alternatives instead of raising.
        """
        start = parse_instant(start_at, resource.timezone)
        booking = Booking(start=start, end=start.add(minutes=resource.session_duration_minutes))

        try:
            committed = await self._booking_store.insert_booking(resource_id, booking)
        except BookingConflict as exc:
            logger.warning(
                "Booking conflict for resource %s at %s: %s", resource_id, booking, exc
            )
            alternatives = await self.find_slots(
                resource_id=resource_id,
                resource=resource,
                requested_date=start.to_date_string(),
                now=now,
            )
            return BookingOutcome(booking=None, alternatives=alternatives)

        logger.info("Booked resource %s at %s", resource_id, committed)
        return BookingOutcome(booking=committed)
