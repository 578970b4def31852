"""Spaced repetition scheduling for learned words.

The scheduler is pure: it reads the prior progress record, the answer and
the caller's ``now`` and returns a new record. It never reads a clock and
never touches storage, so it is safe to share between threads.
"""
import logging
import math
import numbers
from datetime import UTC, date, datetime, timedelta
from typing import Any, Optional, Union

from wordreview.config import SchedulerSettings, settings
from wordreview.models.progress_models import (
    ProgressStatus,
    ScheduleResult,
    WordProgressUpdate,
)

logger = logging.getLogger(__name__)

LEARNED_STATUSES = {ProgressStatus.LEARNED, ProgressStatus.MASTERED}


class InvalidArgument(ValueError):
    """Raised when the scheduler is given input it cannot schedule."""


def _whole_number(value: Any, name: str) -> int:
    """Return value as a non-negative whole number; 7 and 7.0 both pass."""
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    if isinstance(value, numbers.Integral):
        number = int(value)
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidArgument(f"{name} must be a whole number, got {value!r}")
        number = int(value)
    else:
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    if number < 0:
        raise InvalidArgument(f"{name} cannot be negative, got {number}")
    return number


def _as_interval(value: Any, name: str = "interval") -> int:
    """Return value as a non-negative whole number of days."""
    return _whole_number(value, name)


def _as_count(value: Any, name: str) -> int:
    return 0 if value is None else _whole_number(value, name)


def _as_status(value: Any) -> Optional[ProgressStatus]:
    if value is None or value == "":
        return None
    if isinstance(value, ProgressStatus):
        return value
    try:
        return ProgressStatus(value)
    except ValueError:
        raise InvalidArgument(f"Unknown progress status {value!r}") from None


def _check_outcome(correct: Any) -> None:
    if not isinstance(correct, bool):
        raise InvalidArgument(f"correct must be True or False, got {correct!r}")


def _check_now(now: Any) -> None:
    if not isinstance(now, datetime):
        raise InvalidArgument(f"now must be a datetime, got {now!r}")


def _calendar_date(now: datetime) -> date:
    """Date stamped into date_learned: the UTC day for aware datetimes."""
    if now.utcoffset() is not None:
        return now.astimezone(UTC).date()
    return now.date()


class ReviewScheduler:
    """Computes the next review time and mastery status of a word."""

    def __init__(self, scheduler_settings: Optional[SchedulerSettings] = None):
        self.settings = scheduler_settings or settings.scheduler

    def next_interval(self, prior_interval: int, correct: bool) -> int:
        """Step a prior interval forward after an answer.

        Failure always resets to 0. Success follows the fixed table for the
        exact values it lists and doubles anything else, capped at the maximum.
        A prior of 2 or 10 therefore doubles rather than joining the table.
        """
        if not correct:
            return 0
        if prior_interval in self.settings.review_steps:
            return self.settings.review_steps[prior_interval]
        return min(prior_interval * 2, self.settings.max_interval_days)

    def compute_next_schedule(
        self,
        prior_interval: Optional[Union[int, float]],
        correct: bool,
        now: datetime,
    ) -> ScheduleResult:
        """Compute the next interval and review time.

        Args:
            prior_interval: Interval of the existing record, or None when the
                word has never been answered.
            correct: Whether the learner knew the word.
            now: Instant the answer was given.

        Returns:
            ScheduleResult with the new interval in days and the next review
            time. A reset interval brings the word back after the retry delay;
            any other interval is added as calendar days, keeping the
            time of day and tzinfo of ``now``.
        """
        _check_outcome(correct)
        _check_now(now)
        interval = 0 if prior_interval is None else _as_interval(prior_interval, "prior interval")

        new_interval = self.next_interval(interval, correct)
        if new_interval == 0:
            next_review = now + timedelta(minutes=self.settings.retry_delay_minutes)
        else:
            next_review = now + timedelta(days=new_interval)

        logger.debug(f"Interval {interval} -> {new_interval} (correct={correct}), next review {next_review.isoformat()}")
        return ScheduleResult(next_review=next_review, interval=new_interval)

    def compute_new_status(
        self,
        prior_status: Optional[Union[ProgressStatus, str]],
        new_interval_days: int,
        correct: bool,
        has_prior: Optional[bool] = None,
    ) -> ProgressStatus:
        """Derive the mastery status after an answer.

        ``has_prior`` defaults to whether a prior status was given; pass it
        explicitly when a stored record exists but carries no status.
        """
        _check_outcome(correct)
        new_interval_days = _as_interval(new_interval_days, "new interval")
        status = _as_status(prior_status)
        if has_prior is None:
            has_prior = status is not None

        if correct:
            if new_interval_days >= self.settings.mastered_threshold_days:
                return ProgressStatus.MASTERED
            if new_interval_days >= self.settings.learned_threshold_days:
                return ProgressStatus.LEARNED
            if has_prior or new_interval_days >= 1:
                return ProgressStatus.LEARNING
            return ProgressStatus.NEW

        if has_prior and status in LEARNED_STATUSES:
            return ProgressStatus.LEARNING
        return ProgressStatus.NEW

    def apply_outcome(self, prior: Optional[Any], correct: bool, now: datetime) -> WordProgressUpdate:
        """Apply one answer to a progress record.

        ``prior`` is any object with the progress attributes (a
        WordProgressData snapshot or an ORM row), or None for the first answer.
        The result is a complete record; whether to create or update it is
        up to the caller.
        """
        _check_outcome(correct)
        _check_now(now)

        has_prior = prior is not None
        if has_prior:
            interval = getattr(prior, "interval", None)
            prior_interval = 0 if interval is None else interval
            prior_status = _as_status(getattr(prior, "status", None))
            review_count = _as_count(getattr(prior, "review_count", None), "review_count")
            correct_count = _as_count(getattr(prior, "correct_count", None), "correct_count")
            if correct_count > review_count:
                raise InvalidArgument(f"correct_count {correct_count} exceeds review_count {review_count}")
            date_learned = getattr(prior, "date_learned", None)
        else:
            prior_interval = None
            prior_status = None
            review_count = correct_count = 0
            date_learned = None

        schedule = self.compute_next_schedule(prior_interval, correct, now)
        status = self.compute_new_status(prior_status, schedule.interval, correct, has_prior=has_prior)

        date_learned_changed = correct and status in LEARNED_STATUSES
        if date_learned_changed:
            date_learned = _calendar_date(now)

        update = WordProgressUpdate(
            status=status,
            interval=schedule.interval,
            next_review=schedule.next_review,
            review_count=review_count + 1,
            correct_count=correct_count + (1 if correct else 0),
            date_learned=date_learned,
            date_learned_changed=date_learned_changed,
        )
        logger.debug(
            f"Status {prior_status.value if prior_status else None} -> {status.value}, "
            f"reviews {update.review_count}, correct {update.correct_count}"
        )
        return update


default_scheduler = ReviewScheduler()


def compute_next_schedule(prior_interval, correct: bool, now: datetime) -> ScheduleResult:
    """Compute the next schedule with the default settings."""
    return default_scheduler.compute_next_schedule(prior_interval, correct, now)


def compute_new_status(prior_status, new_interval_days: int, correct: bool, has_prior: Optional[bool] = None) -> ProgressStatus:
    """Compute the new status with the default settings."""
    return default_scheduler.compute_new_status(prior_status, new_interval_days, correct, has_prior)


def apply_outcome(prior, correct: bool, now: datetime) -> WordProgressUpdate:
    """Apply an answer with the default settings."""
    return default_scheduler.apply_outcome(prior, correct, now)
