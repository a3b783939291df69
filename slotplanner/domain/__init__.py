"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityResolver
from .exceptions import BookingConflict, InvalidDateFormat, SchedulingError, UnknownTimezone
from .models import AvailabilityResult, Booking, CandidateSlot, TimeRange, UnavailabilityReason
from .policy import AvailabilityPolicy, RetryPolicy
from .retry import OutcomeClass, RetryDecision, RetryScheduler
from .schedule import DateOverride, DaySchedule, OverrideType, Resource, WeeklySchedule, WorkingSlot

__all__ = [
    "AvailabilityPolicy",
    "AvailabilityResolver",
    "AvailabilityResult",
    "Booking",
    "BookingConflict",
    "CandidateSlot",
    "DateOverride",
    "DaySchedule",
    "InvalidDateFormat",
    "OutcomeClass",
    "OverrideType",
    "Resource",
    "RetryDecision",
    "RetryPolicy",
    "RetryScheduler",
    "SchedulingError",
    "TimeRange",
    "UnavailabilityReason",
    "UnknownTimezone",
    "WeeklySchedule",
    "WorkingSlot",
]
