"""
Tests for the AvailabilityService orchestration layer and the in-memory store.
"""

import asyncio
import json
from typing import Dict, List

import pytest

from slotplanner.adapters.memory_store import InMemoryBookingStore
from slotplanner.domain.availability import AvailabilityResolver
from slotplanner.domain.exceptions import BookingConflict
from slotplanner.domain.models import Booking
from slotplanner.services.booking_service import AvailabilityService

from conftest import at

NOW = at("2025-03-10 10:00")


class StubBookingStore:
    """Minimal stub matching BookingStoreProtocol."""

    def __init__(self, bookings: List[Booking]):
        self._bookings = bookings
        self.calls: List[Dict[str, str]] = []

    async def list_bookings(self, resource_id, start, end):
        self.calls.append(
            {
                "resource_id": resource_id,
                "start": start.to_datetime_string(),
                "end": end.to_datetime_string(),
            }
        )
        return self._bookings

    async def insert_booking(self, resource_id, booking):
        raise BookingConflict(resource_id, booking, self._bookings[0])


def _build_service(store) -> AvailabilityService:
    return AvailabilityService(booking_store=store, resolver=AvailabilityResolver())


class TestFindSlots:
    """Tests for AvailabilityService.find_slots."""

    def test_bookings_are_fetched_once_for_the_whole_window(self, single_slot_resource):
        """A weekend request triggers the fallback search without extra fetches."""
        store = StubBookingStore([])
        service = _build_service(store)

        result = asyncio.run(
            service.find_slots(
                resource_id="dr-silva",
                resource=single_slot_resource,
                requested_date="2025-03-15",
                now=NOW,
            )
        )

        assert store.calls == [
            {
                "resource_id": "dr-silva",
                "start": "2025-03-15 00:00:00",
                "end": "2025-05-15 01:00:00",
            }
        ]
        assert result.slot_strings() == [
            "2025-03-17T09:00:00-03:00",
            "2025-03-18T09:00:00-03:00",
        ]

    def test_fetched_bookings_are_applied(self, hourly_resource):
        store = StubBookingStore([Booking(start=at("2025-03-12 09:00"), end=at("2025-03-12 12:00"))])
        service = _build_service(store)

        result = asyncio.run(
            service.find_slots(
                resource_id="dr-costa",
                resource=hourly_resource,
                requested_date="2025-03-12",
                now=NOW,
            )
        )

        assert [slot.start.hour for slot in result.slots] == [12, 13, 14, 15, 16]


class TestFindEarlierSlots:
    """Tests for AvailabilityService.find_earlier_slots."""

    def test_bookings_fetched_for_scan_window(self, single_slot_resource):
        store = StubBookingStore([Booking(start=at("2025-03-11 09:00"), end=at("2025-03-11 10:00"))])
        service = _build_service(store)

        slots = asyncio.run(
            service.find_earlier_slots(
                resource_id="dr-silva",
                resource=single_slot_resource,
                before_date="2025-03-20",
                now=NOW,
            )
        )

        assert store.calls == [
            {
                "resource_id": "dr-silva",
                "start": "2025-03-11 00:00:00",
                "end": "2025-03-25 01:00:00",
            }
        ]
        assert [slot.iso for slot in slots] == [
            "2025-03-12T09:00:00-03:00",
            "2025-03-13T09:00:00-03:00",
        ]


class TestBook:
    """Tests for AvailabilityService.book."""

    def test_successful_booking(self, hourly_resource):
        store = InMemoryBookingStore()
        service = _build_service(store)

        outcome = asyncio.run(
            service.book(
                resource_id="dr-costa",
                resource=hourly_resource,
                start_at="2025-03-12T10:00:00-03:00",
                now=NOW,
            )
        )

        assert outcome.booked
        assert outcome.booking.duration_minutes() == 60
        assert store.all_bookings("dr-costa") == [outcome.booking]

    def test_conflict_returns_recomputed_alternatives(self, hourly_resource):
        store = InMemoryBookingStore()
        service = _build_service(store)

        async def book_twice():
            first = await service.book(
                resource_id="dr-costa",
                resource=hourly_resource,
                start_at="2025-03-12T10:00:00-03:00",
                now=NOW,
            )
            second = await service.book(
                resource_id="dr-costa",
                resource=hourly_resource,
                start_at="2025-03-12T10:30:00-03:00",
                now=NOW,
            )
            return first, second

        first, second = asyncio.run(book_twice())

        assert first.booked
        assert not second.booked
        assert second.alternatives is not None
        assert "2025-03-12T10:00:00-03:00" not in second.alternatives.slot_strings()
        assert "2025-03-12T11:00:00-03:00" in second.alternatives.slot_strings()

    def test_concurrent_commits_for_one_slot_book_once(self, hourly_resource):
        store = InMemoryBookingStore()
        service = _build_service(store)

        async def race():
            return await asyncio.gather(*[
                service.book(
                    resource_id="dr-costa",
                    resource=hourly_resource,
                    start_at="2025-03-12T14:00:00-03:00",
                    now=NOW,
                )
                for _ in range(5)
            ])

        outcomes = asyncio.run(race())

        assert sum(outcome.booked for outcome in outcomes) == 1
        assert len(store.all_bookings("dr-costa")) == 1


class TestInMemoryBookingStore:
    """Tests for the in-memory store."""

    def test_insert_rejects_overlap(self):
        store = InMemoryBookingStore()
        existing = Booking(start=at("2025-03-12 10:00"), end=at("2025-03-12 11:00"))
        asyncio.run(store.insert_booking("r", existing))

        with pytest.raises(BookingConflict) as exc_info:
            asyncio.run(
                store.insert_booking("r", Booking(start=at("2025-03-12 10:30"), end=at("2025-03-12 11:30")))
            )

        assert exc_info.value.existing == existing

    def test_adjacent_bookings_and_other_resources_do_not_conflict(self):
        store = InMemoryBookingStore()
        asyncio.run(store.insert_booking("r", Booking(start=at("2025-03-12 10:00"), end=at("2025-03-12 11:00"))))
        asyncio.run(store.insert_booking("r", Booking(start=at("2025-03-12 11:00"), end=at("2025-03-12 12:00"))))
        asyncio.run(store.insert_booking("s", Booking(start=at("2025-03-12 10:00"), end=at("2025-03-12 11:00"))))

        assert len(store.all_bookings("r")) == 2
        assert len(store.all_bookings("s")) == 1

    def test_list_bookings_filters_by_overlap(self):
        store = InMemoryBookingStore()
        asyncio.run(store.insert_booking("r", Booking(start=at("2025-03-12 10:00"), end=at("2025-03-12 11:00"))))
        asyncio.run(store.insert_booking("r", Booking(start=at("2025-03-20 10:00"), end=at("2025-03-20 11:00"))))

        found = asyncio.run(store.list_bookings("r", at("2025-03-12 00:00"), at("2025-03-13 00:00")))

        assert [b.start.day for b in found] == [12]

    def test_seed_file(self, tmp_path):
        seed = tmp_path / "bookings.json"
        seed.write_text(json.dumps([
            {"resourceId": "dr-silva", "startAt": "2025-03-12T09:00:00-03:00", "endAt": "2025-03-12T10:00:00-03:00"},
            {"resourceId": "dr-silva", "startAt": "2025-03-12T11:00:00-03:00"},
        ]))

        store = InMemoryBookingStore(seed_file=seed)

        assert [str(b) for b in store.all_bookings("dr-silva")] == [
            "2025-03-12T09:00:00-03:00 - 2025-03-12T10:00:00-03:00"
        ]

    def test_missing_seed_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemoryBookingStore(seed_file=tmp_path / "missing.json")
