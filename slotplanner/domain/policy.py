"""
Policy value objects for availability resolution and retry scheduling.

These replace constants that would otherwise be scattered across call sites;
both domain components receive one at construction.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator


class AvailabilityPolicy(BaseModel):
    """Fixed policy for slot resolution."""
    minimum_buffer_minutes: int = 60
    search_horizon_days: int = 60
    fallback_slot_count: int = 2
    session_step_minutes: int = 30

    @field_validator("minimum_buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError("minimum_buffer_minutes cannot be negative")
        return value

    @field_validator("search_horizon_days", "fallback_slot_count", "session_step_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value


class RetryPolicy(BaseModel):
    """Policy for scheduling the next contact attempt."""
    max_attempts: int = 3
    retry_delay_minutes: int = 120
    voicemail_min_minutes: int = 15
    voicemail_max_minutes: int = 25
    business_start_hour: int = 8
    business_end_hour: int = 20
    closed_weekdays: List[int] = Field(default_factory=lambda: [6])  # Sunday
    appointment_proximity_minutes: int = 120

    @field_validator("business_start_hour", "business_end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("closed_weekdays")
    @classmethod
    def validate_closed_weekdays(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range, deduplicated, and leave a day open."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"closed_weekdays must be between 0 and 6, got {invalid_days}")
        deduped = sorted(set(value))
        if len(deduped) == 7:
            raise ValueError("closed_weekdays cannot close every day of the week")
        return deduped

    @model_validator(mode="after")
    def validate_windows(self) -> "RetryPolicy":
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.business_end_hour <= self.business_start_hour:
            raise ValueError("business_end_hour must be later than business_start_hour")
        if not 0 <= self.voicemail_min_minutes <= self.voicemail_max_minutes:
            raise ValueError("voicemail window must satisfy 0 <= min <= max")
        if self.retry_delay_minutes < 0 or self.appointment_proximity_minutes < 0:
            raise ValueError("retry_delay_minutes and appointment_proximity_minutes cannot be negative")
        return self
