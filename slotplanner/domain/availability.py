"""
Core business logic for resolving bookable appointment slots.

Pure domain logic: the resolver receives the resource configuration, the
bookings already committed against it and the current instant, and never
fetches anything itself.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Union

import pendulum
from pendulum import DateTime

from .models import AvailabilityResult, Booking, CandidateSlot, TimeRange, UnavailabilityReason
from .policy import AvailabilityPolicy
from .schedule import EffectiveSchedule, Resource, ScheduleSource, WorkingSlot
from .timezones import InstantLike, Weekday, civil_datetime, normalize_date, parse_instant

logger = logging.getLogger(__name__)

BookingLike = Union[Booking, Mapping]


class AvailabilityResolver:
    """
    Computes candidate appointment start times for a resource.

    Algorithm:
    1. Pick the target civil date (never today: today moves to tomorrow)
    2. Resolve the effective schedule for that date (overrides first)
    3. Turn each slot start into an instant in the resource's timezone and
       drop it when it is inside the lead-time buffer or overlaps a booking
    4. When the target date yields nothing, scan forward day by day for the
       first few bookable starts within the search horizon
    """

    def __init__(self, policy: AvailabilityPolicy | None = None):
        self.policy = policy or AvailabilityPolicy()

    def target_date(
        self,
        resource: Resource,
        requested_date: Optional[str],
        now: InstantLike,
    ) -> str:
        """
        Civil date that availability is resolved for.

        Raises:
            InvalidDateFormat: If ``requested_date`` is given but not YYYY-MM-DD
        """
        local_now = parse_instant(now, resource.timezone)
        today = local_now.to_date_string()

        target = normalize_date(requested_date) if requested_date else today
        if target == today:
            target = local_now.add(days=1).to_date_string()
        return target

    def search_window(
        self,
        resource: Resource,
        requested_date: Optional[str],
        now: InstantLike,
    ) -> TimeRange:
        """
        Time range covering the target date and the whole fallback horizon.

        Callers fetch bookings overlapping this range once and pass them to
        ``resolve``.
        """
        target = self.target_date(resource, requested_date, now)
        start = civil_datetime(target, 0, 0, resource.timezone)
        end = start.add(days=self.policy.search_horizon_days + 1).add(
            minutes=resource.session_duration_minutes
        )
        return TimeRange(start=start, end=end)

    def resolve(
        self,
        resource: Resource,
        requested_date: Optional[str],
        bookings: Iterable[BookingLike],
        now: InstantLike,
    ) -> AvailabilityResult:
        """
        Resolve bookable start times for ``requested_date``.

        Args:
            resource: Schedule, timezone and session duration of the resource
            requested_date: YYYY-MM-DD, or None for the next bookable day
            bookings: Committed bookings covering ``search_window``
            now: Current instant

        Returns:
            AvailabilityResult; empty slot lists are a valid outcome

        Raises:
            InvalidDateFormat: If ``requested_date`` is malformed
        """
        local_now = parse_instant(now, resource.timezone)
        earliest_start = local_now.add(minutes=self.policy.minimum_buffer_minutes)
        busy = _coerce_bookings(bookings)

        target = self.target_date(resource, requested_date, local_now)
        schedule = self._schedule_for(resource, target)

        slots = self._day_candidates(resource, schedule, busy, earliest_start)
        result = AvailabilityResult(
            date=target,
            timezone=resource.timezone,
            slots=slots,
            requested_date_has_slots=bool(slots),
        )

        if slots:
            return result

        if schedule.weekday.is_weekend and schedule.source in (
            ScheduleSource.WEEKLY,
            ScheduleSource.UNAVAILABLE,
        ):
            result.reason = UnavailabilityReason.WEEKEND
        else:
            result.reason = UnavailabilityReason.NONE

        result.slots = self._fallback_candidates(resource, target, busy, earliest_start)
        logger.debug(
            "No slots on %s for %s (reason=%s); fallback found %d",
            target,
            resource.name or "resource",
            result.reason.value,
            len(result.slots),
        )
        return result

    def open_sessions(
        self,
        resource: Resource,
        start_date: str,
        end_date: str,
        bookings: Iterable[BookingLike],
        now: InstantLike,
    ) -> List[CandidateSlot]:
        """
        Enumerate every free session between two civil dates (inclusive).

        Unlike ``resolve``, sessions are laid out inside each slot window at
        ``session_step_minutes`` increments and must end within the window.
        """
        first = pendulum.parse(normalize_date(start_date)).date()
        last = pendulum.parse(normalize_date(end_date)).date()
        if first > last:
            raise ValueError(f"start_date {start_date} must not be after end_date {end_date}")

        earliest_start = parse_instant(now, resource.timezone).add(
            minutes=self.policy.minimum_buffer_minutes
        )
        busy = _coerce_bookings(bookings)
        duration = resource.session_duration_minutes
        step = self.policy.session_step_minutes

        sessions: List[CandidateSlot] = []
        current = first
        while current <= last:
            schedule = self._schedule_for(resource, current.to_date_string())
            for slot in schedule.slots:
                window = self._slot_window(resource, schedule.date, slot)
                cursor = window.start
                while cursor.add(minutes=duration) <= window.end:
                    candidate = TimeRange(start=cursor, end=cursor.add(minutes=duration))
                    if self._is_bookable(candidate, busy, earliest_start):
                        sessions.append(CandidateSlot(time_range=candidate, slot_id=slot.id))
                    cursor = cursor.add(minutes=step)
            current = current.add(days=1)

        return sessions

    def earlier_window(self, resource: Resource, now: InstantLike, max_days: int = 14) -> TimeRange:
        """Time range covering every day ``earlier_slots`` may look at."""
        local_now = parse_instant(now, resource.timezone)
        start = civil_datetime(local_now.add(days=1).to_date_string(), 0, 0, resource.timezone)
        end = start.add(days=max_days).add(minutes=resource.session_duration_minutes)
        return TimeRange(start=start, end=end)

    def earlier_slots(
        self,
        resource: Resource,
        before_date: Optional[str],
        bookings: Iterable[BookingLike],
        now: InstantLike,
        max_slots: int = 2,
        max_days: int = 14,
    ) -> List[CandidateSlot]:
        """
        Find bookable starts earlier than a date the lead already has in mind.

        The scan starts tomorrow in the resource's timezone and stops at the
        first of: ``max_slots`` candidates found, ``max_days`` days looked at,
        or reaching ``before_date`` (exclusive). Without ``before_date`` the
        cutoff is seven days from now.

        Raises:
            InvalidDateFormat: If ``before_date`` is given but malformed
            ValueError: If ``max_slots`` or ``max_days`` is below one
        """
        if max_slots < 1 or max_days < 1:
            raise ValueError(f"max_slots and max_days must be at least 1, got {max_slots} and {max_days}")

        local_now = parse_instant(now, resource.timezone)
        if before_date:
            cutoff = normalize_date(before_date)
        else:
            cutoff = local_now.add(days=7).to_date_string()

        earliest_start = local_now.add(minutes=self.policy.minimum_buffer_minutes)
        busy = _coerce_bookings(bookings)
        found: List[CandidateSlot] = []
        day = local_now.date()

        for _ in range(max_days):
            day = day.add(days=1)
            date = day.to_date_string()
            if len(found) >= max_slots or date >= cutoff:
                break

            schedule = self._schedule_for(resource, date)
            if not schedule.is_open:
                continue

            found.extend(
                self._day_candidates(
                    resource, schedule, busy, earliest_start, limit=max_slots - len(found)
                )
            )

        logger.debug(
            "Earlier search before %s for %s found %d slot(s)",
            cutoff,
            resource.name or "resource",
            len(found),
        )
        return found

    def _schedule_for(self, resource: Resource, date: str) -> EffectiveSchedule:
        weekday = Weekday.from_datetime(pendulum.parse(date).date())
        return resource.effective_schedule(date, weekday)

    def _fallback_candidates(
        self,
        resource: Resource,
        target: str,
        busy: Sequence[Booking],
        earliest_start: DateTime,
    ) -> List[CandidateSlot]:
        """Scan the days after ``target`` until enough candidates are found."""
        wanted = self.policy.fallback_slot_count
        found: List[CandidateSlot] = []
        day = pendulum.parse(target).date()

        for _ in range(self.policy.search_horizon_days):
            day = day.add(days=1)
            schedule = self._schedule_for(resource, day.to_date_string())

            if schedule.source is ScheduleSource.UNAVAILABLE:
                logger.debug("Skipping unavailable date: %s", schedule.date)
                continue
            if not schedule.is_open:
                continue

            found.extend(
                self._day_candidates(
                    resource, schedule, busy, earliest_start, limit=wanted - len(found)
                )
            )
            if len(found) >= wanted:
                break

        return found

    def _day_candidates(
        self,
        resource: Resource,
        schedule: EffectiveSchedule,
        busy: Sequence[Booking],
        earliest_start: DateTime,
        limit: Optional[int] = None,
    ) -> List[CandidateSlot]:
        """One candidate per slot start, in schedule order."""
        candidates: List[CandidateSlot] = []

        for slot in schedule.slots:
            if limit is not None and len(candidates) >= limit:
                break

            hour, minute = slot.start_hour_minute
            start = civil_datetime(schedule.date, hour, minute, resource.timezone)
            candidate = TimeRange(
                start=start, end=start.add(minutes=resource.session_duration_minutes)
            )

            if self._is_bookable(candidate, busy, earliest_start):
                candidates.append(CandidateSlot(time_range=candidate, slot_id=slot.id))

        return candidates

    @staticmethod
    def _is_bookable(
        candidate: TimeRange,
        busy: Sequence[Booking],
        earliest_start: DateTime,
    ) -> bool:
        if candidate.start <= earliest_start:
            return False
        return not any(candidate.overlaps(booking) for booking in busy)

    @staticmethod
    def _slot_window(resource: Resource, date: str, slot: WorkingSlot) -> TimeRange:
        start_hour, start_minute = slot.start_hour_minute
        end_hour, end_minute = slot.end_hour_minute
        return TimeRange(
            start=civil_datetime(date, start_hour, start_minute, resource.timezone),
            end=civil_datetime(date, end_hour, end_minute, resource.timezone),
        )


def _coerce_bookings(bookings: Iterable[BookingLike]) -> List[Booking]:
    """Accept Booking objects or stored rows with startAt/endAt keys."""
    coerced: List[Booking] = []
    for booking in bookings:
        if isinstance(booking, Booking):
            coerced.append(booking)
        else:
            coerced.append(Booking.from_mapping(booking))
    return coerced
