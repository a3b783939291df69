"""
Weekly working hours and date-specific overrides for a bookable resource.

The shapes mirror what the configuration collaborator stores::

    {"monday": {"enabled": true, "timeSlots": [{"id": "1", "start": "09:00", "end": "17:00"}]}}

camelCase keys are accepted alongside the snake_case field names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .timezones import Weekday, normalize_date, resolve_timezone

_HH_MM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class WorkingSlot(BaseModel):
    """A single opening window within a day, e.g. 09:00-12:00."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    start: str
    end: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value) -> str:
        return "" if value is None else str(value)

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_clock(cls, value) -> str:
        """Accept H:MM or HH:MM and store zero-padded HH:MM."""
        text = str(value).strip()
        if len(text) == 4 and text[1] == ":":
            text = f"0{text}"
        if not _HH_MM.match(text):
            raise ValueError(f"Time must be HH:MM on a 24h clock, got {value!r}")
        return text

    @model_validator(mode="after")
    def validate_order(self) -> "WorkingSlot":
        if self.start >= self.end:
            raise ValueError(f"Slot start {self.start} must be before end {self.end}")
        return self

    @property
    def start_hour_minute(self) -> Tuple[int, int]:
        hour, minute = self.start.split(":")
        return int(hour), int(minute)

    @property
    def end_hour_minute(self) -> Tuple[int, int]:
        hour, minute = self.end.split(":")
        return int(hour), int(minute)


class DaySchedule(BaseModel):
    """Recurring hours for one weekday."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    time_slots: List[WorkingSlot] = Field(default_factory=list, alias="timeSlots")

    @property
    def open_slots(self) -> Tuple[WorkingSlot, ...]:
        """Slots that apply, empty when the day is disabled."""
        if not self.enabled:
            return ()
        return tuple(self.time_slots)


class WeeklySchedule(BaseModel):
    """Working hours keyed by day name. Days left out are closed."""

    model_config = ConfigDict(extra="forbid")

    sunday: DaySchedule = Field(default_factory=DaySchedule)
    monday: DaySchedule = Field(default_factory=DaySchedule)
    tuesday: DaySchedule = Field(default_factory=DaySchedule)
    wednesday: DaySchedule = Field(default_factory=DaySchedule)
    thursday: DaySchedule = Field(default_factory=DaySchedule)
    friday: DaySchedule = Field(default_factory=DaySchedule)
    saturday: DaySchedule = Field(default_factory=DaySchedule)

    @model_validator(mode="before")
    @classmethod
    def lowercase_day_names(cls, data):
        if isinstance(data, dict):
            return {str(key).lower(): value for key, value in data.items()}
        return data

    def for_day(self, weekday: Weekday) -> DaySchedule:
        return getattr(self, weekday.value)


class OverrideType(str, Enum):
    UNAVAILABLE = "unavailable"
    AVAILABLE = "available"
    MODIFIED_HOURS = "modified_hours"


class DateOverride(BaseModel):
    """An exception to the weekly schedule for a single civil date."""

    model_config = ConfigDict(populate_by_name=True)

    date: str
    type: OverrideType
    time_slots: List[WorkingSlot] = Field(default_factory=list, alias="timeSlots")
    reason: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def expand_start_end(cls, data):
        """Older modified_hours entries carry a single start/end pair instead of timeSlots."""
        if not isinstance(data, dict):
            return data
        has_slots = data.get("timeSlots") or data.get("time_slots")
        if not has_slots and data.get("start") and data.get("end"):
            data = dict(data)
            data["timeSlots"] = [{"id": "override", "start": data.pop("start"), "end": data.pop("end")}]
        return data

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, value) -> str:
        return normalize_date(str(value))

    @model_validator(mode="after")
    def require_slots(self) -> "DateOverride":
        if self.type is not OverrideType.UNAVAILABLE and not self.time_slots:
            raise ValueError(f"Override of type '{self.type.value}' on {self.date} needs timeSlots")
        return self


class ScheduleSource(str, Enum):
    """Where the effective schedule for a date came from."""

    AVAILABLE_OVERRIDE = "available_override"
    MODIFIED_HOURS = "modified_hours"
    UNAVAILABLE = "unavailable"
    WEEKLY = "weekly"


@dataclass(frozen=True)
class EffectiveSchedule:
    """The slots that apply on one date after overrides are taken into account."""

    date: str
    weekday: Weekday
    slots: Tuple[WorkingSlot, ...]
    source: ScheduleSource

    @property
    def is_open(self) -> bool:
        return bool(self.slots)


class Resource(BaseModel):
    """
    A bookable entity: a practitioner or an owner-level treatment calendar.

    Invariant: session_duration_minutes > 0 and timezone is a valid IANA name.
    Both are checked at construction, so a bad zone surfaces as a pydantic
    ValidationError wrapping the UnknownTimezone message.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    timezone: str
    session_duration_minutes: int = Field(alias="sessionDurationMinutes", gt=0)
    weekly_schedule: WeeklySchedule = Field(default_factory=WeeklySchedule, alias="weeklySchedule")
    overrides: List[DateOverride] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        resolve_timezone(value)
        return value

    def find_override(self, date: str, override_type: OverrideType) -> Optional[DateOverride]:
        """First override of the given type for ``date``, in stored order."""
        for override in self.overrides:
            if override.type is override_type and override.date == date:
                return override
        return None

    def is_unavailable_on(self, date: str) -> bool:
        return self.find_override(date, OverrideType.UNAVAILABLE) is not None

    def effective_schedule(self, date: str, weekday: Weekday) -> EffectiveSchedule:
        """
        Resolve the slots for ``date``.

        Precedence: available override, then unavailable override, then
        modified_hours override, then the weekday entry.
        """
        available = self.find_override(date, OverrideType.AVAILABLE)
        if available is not None:
            return EffectiveSchedule(date, weekday, tuple(available.time_slots), ScheduleSource.AVAILABLE_OVERRIDE)

        if self.is_unavailable_on(date):
            return EffectiveSchedule(date, weekday, (), ScheduleSource.UNAVAILABLE)

        modified = self.find_override(date, OverrideType.MODIFIED_HOURS)
        if modified is not None:
            return EffectiveSchedule(date, weekday, tuple(modified.time_slots), ScheduleSource.MODIFIED_HOURS)

        day = self.weekly_schedule.for_day(weekday)
        return EffectiveSchedule(date, weekday, day.open_slots, ScheduleSource.WEEKLY)
