"""
Shared fixtures for slotplanner tests.
"""

import pendulum
import pytest

from slotplanner.domain.schedule import Resource

SAO_PAULO = "America/Sao_Paulo"


def at(text: str, tz: str = SAO_PAULO):
    """Parse a civil date/time in the given timezone."""
    return pendulum.parse(text, tz=tz)


def weekdays(slots):
    """Weekly schedule dict open Monday to Friday with the given slots."""
    day = {"enabled": True, "timeSlots": slots}
    return {name: day for name in ("monday", "tuesday", "wednesday", "thursday", "friday")}


@pytest.fixture
def single_slot_resource() -> Resource:
    """Open Mon-Fri with one big 09:00-17:00 slot, 60-minute sessions."""
    return Resource(
        name="dr-silva",
        timezone=SAO_PAULO,
        sessionDurationMinutes=60,
        weeklySchedule=weekdays([{"id": "1", "start": "09:00", "end": "17:00"}]),
    )


@pytest.fixture
def hourly_resource() -> Resource:
    """Open Mon-Fri with hourly slots from 09:00 to 17:00, 60-minute sessions."""
    slots = [
        {"id": str(hour), "start": f"{hour:02d}:00", "end": f"{hour + 1:02d}:00"}
        for hour in range(9, 17)
    ]
    return Resource(
        name="dr-costa",
        timezone=SAO_PAULO,
        sessionDurationMinutes=60,
        weeklySchedule=weekdays(slots),
    )
