"""
Scheduling of follow-up contact attempts after a failed call.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pendulum import DateTime

from .policy import RetryPolicy
from .timezones import InstantLike, parse_instant, render_offset_iso, resolve_timezone

logger = logging.getLogger(__name__)

_NO_HUMAN_CONTACT_REASONS = frozenset(
    {"dial_no_answer", "dial_busy", "dial_failed", "user_declined"}
)


class OutcomeClass(str, Enum):
    """Classification of a finished contact attempt."""

    VOICEMAIL = "voicemail"
    NO_HUMAN_CONTACT = "no-human-contact"
    HUMAN_REQUESTED_RETRY = "human-contact-requesting-retry"
    OTHER = "other"

    @classmethod
    def from_call_result(
        cls,
        disconnection_reason: Optional[str],
        call_again_requested: bool = False,
    ) -> "OutcomeClass":
        """Map a voice platform disconnection reason onto an outcome class."""
        reason = (disconnection_reason or "").strip().lower()
        if reason == "voicemail_reached":
            return cls.VOICEMAIL
        if reason in _NO_HUMAN_CONTACT_REASONS:
            return cls.NO_HUMAN_CONTACT
        if call_again_requested:
            return cls.HUMAN_REQUESTED_RETRY
        return cls.OTHER


@dataclass(frozen=True)
class RetryDecision:
    """Either the instant of the next attempt or a signal to stop retrying."""

    next_retry_at: Optional[str] = None
    terminal: bool = False

    @classmethod
    def stop(cls) -> "RetryDecision":
        return cls(next_retry_at=None, terminal=True)

    @classmethod
    def at(cls, moment: DateTime) -> "RetryDecision":
        return cls(next_retry_at=render_offset_iso(moment), terminal=False)

    @property
    def instant(self) -> Optional[DateTime]:
        if self.next_retry_at is None:
            return None
        return parse_instant(self.next_retry_at)


class RetryScheduler:
    """
    Computes when a lead should be contacted again.

    Voicemail outcomes retry quickly without business-hours clamping. Every
    other outcome retries after ``retry_delay_minutes``, clamped into business
    hours on business days, and is moved a business day later when it would
    land close to the lead's own appointment.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        timezone: str = "America/Sao_Paulo",
        rng: random.Random | None = None,
    ):
        resolve_timezone(timezone)
        self.policy = policy or RetryPolicy()
        self.timezone = timezone
        self._rng = rng or random.Random()

    def next_attempt(
        self,
        attempt_number: int,
        outcome: OutcomeClass | str,
        now: InstantLike,
        lead_nearest_appointment: Optional[InstantLike] = None,
        timezone: Optional[str] = None,
    ) -> RetryDecision:
        """
        Decide when the attempt numbered ``attempt_number`` should happen.

        Args:
            attempt_number: Ordinal of the next attempt (1-based)
            outcome: Classification of the attempt that just ended
            now: Current instant
            lead_nearest_appointment: The lead's nearest future appointment, if any
            timezone: Civil timezone for clamping; defaults to the scheduler's

        Returns:
            RetryDecision with ``terminal`` set once the ceiling is exceeded
        """
        if attempt_number < 1:
            raise ValueError(f"attempt_number must be at least 1, got {attempt_number}")

        outcome = OutcomeClass(outcome)
        if attempt_number > self.policy.max_attempts:
            logger.info(
                "Attempt %d exceeds ceiling of %d; stop retrying",
                attempt_number,
                self.policy.max_attempts,
            )
            return RetryDecision.stop()

        local_now = parse_instant(now, timezone or self.timezone)

        if outcome is OutcomeClass.VOICEMAIL:
            minutes = self._rng.randint(
                self.policy.voicemail_min_minutes, self.policy.voicemail_max_minutes
            )
            return RetryDecision.at(local_now.add(minutes=minutes))

        target = self.clamp_to_business_hours(
            local_now.add(minutes=self.policy.retry_delay_minutes)
        )

        if lead_nearest_appointment is not None:
            appointment = parse_instant(lead_nearest_appointment, timezone or self.timezone)
            gap_seconds = abs((appointment - target).total_seconds())
            if gap_seconds < self.policy.appointment_proximity_minutes * 60:
                logger.debug(
                    "Retry at %s is within %d minutes of appointment %s; moving a business day",
                    target,
                    self.policy.appointment_proximity_minutes,
                    appointment,
                )
                target = self._skip_closed_days(target.add(days=1))

        return RetryDecision.at(target)

    def next_same_time_next_business_day(
        self,
        now: InstantLike,
        timezone: Optional[str] = None,
    ) -> str:
        """
        Same time of day on the next business day, clamped into business hours.

        Used when a lead asks to be offered an earlier date during a conversation.
        """
        local_now = parse_instant(now, timezone or self.timezone)
        target = self._skip_closed_days(local_now.add(days=1).set(second=0, microsecond=0))
        return render_offset_iso(self.clamp_to_business_hours(target))

    def is_business_day(self, moment: DateTime) -> bool:
        return moment.weekday() not in self.policy.closed_weekdays

    def clamp_to_business_hours(self, moment: DateTime) -> DateTime:
        """
        Move ``moment`` into [start, end) on a business day.

        Before opening clamps up to opening time the same day; at or after
        closing moves to opening time the next day; closed days roll forward
        to the next business day's opening time.
        """
        opening = {"hour": self.policy.business_start_hour, "minute": 0, "second": 0, "microsecond": 0}

        if moment.hour >= self.policy.business_end_hour:
            moment = moment.add(days=1).set(**opening)
        elif moment.hour < self.policy.business_start_hour:
            moment = moment.set(**opening)

        while not self.is_business_day(moment):
            moment = moment.add(days=1).set(**opening)

        return moment

    def _skip_closed_days(self, moment: DateTime) -> DateTime:
        """Roll forward whole days, keeping the time of day."""
        while not self.is_business_day(moment):
            moment = moment.add(days=1)
        return moment
