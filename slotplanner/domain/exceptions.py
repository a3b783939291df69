"""
Domain-specific exception hierarchy for slot planning.
"""


class SchedulingError(Exception):
    """Base class for all scheduling errors."""


class InvalidDateFormat(SchedulingError, ValueError):
    """Raised when a date string cannot be normalized to YYYY-MM-DD."""

    def __init__(self, value: object, reason: str = "unrecognized format"):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid date {value!r}: {reason}. Expected YYYY-MM-DD.")


class UnknownTimezone(SchedulingError, ValueError):
    """Raised when a timezone identifier cannot be resolved."""

    def __init__(self, name: object):
        self.name = name
        super().__init__(f"Unknown timezone: {name!r}")


class BookingConflict(SchedulingError):
    """Raised by a booking store when a commit overlaps an existing booking."""

    def __init__(self, resource_id: str, requested, existing):
        self.resource_id = resource_id
        self.requested = requested
        self.existing = existing
        super().__init__(
            f"Booking {requested} for resource '{resource_id}' overlaps {existing}"
        )
