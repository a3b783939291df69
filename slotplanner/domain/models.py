"""
Domain models for bookings, candidate slots and availability results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pendulum import DateTime

from .timezones import InstantLike, parse_instant, render_offset_iso


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{render_offset_iso(self.start)} - {render_offset_iso(self.end)}"


class Booking(TimeRange):
    """An already-committed reservation against a resource."""

    @classmethod
    def between(cls, start_at: InstantLike, end_at: InstantLike) -> "Booking":
        return cls(start=parse_instant(start_at), end=parse_instant(end_at))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Booking":
        """Build a booking from a stored row using camelCase or snake_case keys."""
        start_at = data.get("startAt", data.get("start_at"))
        end_at = data.get("endAt", data.get("end_at"))
        if start_at is None or end_at is None:
            raise ValueError(f"Booking row needs startAt and endAt, got keys {sorted(data)}")
        return cls.between(start_at, end_at)

    def to_mapping(self) -> Dict[str, str]:
        return {
            "startAt": render_offset_iso(self.start),
            "endAt": render_offset_iso(self.end),
        }


@dataclass(frozen=True)
class CandidateSlot:
    """A bookable start instant, carried in the resource's civil time."""
    time_range: TimeRange
    slot_id: str = ""

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    @property
    def iso(self) -> str:
        """Start rendered as YYYY-MM-DDTHH:MM:SS±HH:MM."""
        return render_offset_iso(self.start)

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, DD/MM/YYYY | HH:MM - HH:MM
        """
        return (
            f"{self.start.format('dddd, DD/MM/YYYY')} | "
            f"{self.start.format('HH:mm')} - {self.end.format('HH:mm')} "
            f"({self.time_range.duration_minutes()} min)"
        )

    def __str__(self) -> str:
        return self.iso


class UnavailabilityReason(str, Enum):
    """Why the requested date offered nothing."""

    WEEKEND = "weekend"
    NONE = "none"


@dataclass
class AvailabilityResult:
    """
    Outcome of resolving availability for one requested date.

    ``slots`` holds either the requested date's candidates or, when there were
    none, the fallback candidates from later dates. ``requested_date_has_slots``
    always describes the requested date only.
    """
    date: str
    timezone: str
    slots: List[CandidateSlot] = field(default_factory=list)
    requested_date_has_slots: bool = False
    reason: Optional[UnavailabilityReason] = None

    @property
    def is_fallback(self) -> bool:
        return not self.requested_date_has_slots and bool(self.slots)

    def slot_strings(self) -> List[str]:
        return [slot.iso for slot in self.slots]

    def to_payload(self) -> Dict[str, Any]:
        """Response shape announced to the conversational agent."""
        return {
            "available": self.requested_date_has_slots,
            "availableSlots": self.slot_strings(),
            "timezone": self.timezone,
            "reason": self.reason.value if self.reason else None,
            "date": self.date,
        }
