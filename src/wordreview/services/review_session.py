"""Review session: one answer at a time, scheduled and written back."""
import logging
from datetime import UTC, date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from wordreview.config import CEFR_LEVELS, MIN_MONTHS_BEFORE_REPEAT, settings
from wordreview.models.progress_models import ProgressStatus, WordProgressData
from wordreview.monitoring import answers_recorded, new_interval_days, status_transitions
from wordreview.services.progress_store import ProgressStore
from wordreview.services.review_scheduler import ReviewScheduler

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _today(now: datetime) -> date:
    if now.utcoffset() is not None:
        return now.astimezone(UTC).date()
    return now.date()


def months_before(day: date, months: int) -> date:
    """Same day of the month, `months` earlier.

    A day missing from the target month rolls over into the next one, so
    one month before March 31 is March 2 (or March 3 outside leap years).
    """
    year, month = divmod(day.year * 12 + day.month - 1 - months, 12)
    return date(year, month + 1, 1) + timedelta(days=day.day - 1)


def months_to_skip(user_level: Optional[str], word_level: Optional[str]) -> int:
    """How many months a learned word stays out of daily review.

    Words below the learner's level rest one month per level of difference;
    everything else, including unknown levels, rests the minimum.
    """
    if user_level in CEFR_LEVELS and word_level in CEFR_LEVELS:
        gap = CEFR_LEVELS.index(user_level) - CEFR_LEVELS.index(word_level)
        if gap > 0:
            return gap
    return MIN_MONTHS_BEFORE_REPEAT


def _check_id(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Invalid {name}: {value!r}")


class ReviewSessionController:
    """Reads progress, runs the scheduler and persists the result."""

    def __init__(
        self,
        store: ProgressStore,
        scheduler: Optional[ReviewScheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the controller with a progress store."""
        self.store = store
        self.scheduler = scheduler or ReviewScheduler()
        self.clock = clock or _utc_now

    def record_answer(
        self,
        word_id: int,
        language_id: int,
        correct: bool,
        now: Optional[datetime] = None,
    ) -> WordProgressData:
        """Record whether the learner knew a word and reschedule it.

        The scheduler runs before anything is written, so invalid input
        leaves the store untouched. Store failures propagate as
        ProgressStoreError and can be retried.
        """
        _check_id(word_id, "word id")
        _check_id(language_id, "language id")
        if now is None:
            now = self.clock()

        prior = self.store.get_by_word(word_id, language_id)
        update = self.scheduler.apply_outcome(prior, correct, now)

        if prior is not None:
            if prior.id is None:
                raise ValueError(f"Progress for word {word_id} has no id")
            saved = self.store.update(prior.id, update.as_fields())
        else:
            fields = update.as_fields()
            saved = self.store.create(
                word_id,
                language_id,
                fields.pop("status"),
                fields.pop("interval"),
                fields.pop("next_review"),
                **fields,
            )

        outcome = "correct" if correct else "incorrect"
        answers_recorded.labels(outcome=outcome).inc()
        new_interval_days.observe(update.interval)
        prior_status = getattr(prior, "status", None)
        from_status = getattr(prior_status, "value", prior_status) or "none"
        if from_status != update.status.value:
            status_transitions.labels(from_status=from_status, to_status=update.status.value).inc()

        logger.info(
            f"Word {word_id} answered {outcome}: {from_status} -> {update.status.value}, "
            f"interval {update.interval}d, next review {update.next_review.isoformat()}"
        )
        return saved

    def select_words_for_review(
        self,
        words: List[Any],
        language_id: int,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Choose which of the candidate words to show.

        Words never answered, or whose next review has passed, are due.
        When nothing is due the whole batch is used instead, unless the
        fallback is disabled in settings.
        """
        if now is None:
            now = self.clock()
        if limit is None:
            limit = settings.review.words_per_session

        due = []
        for word in words:
            progress = self.store.get_by_word(word.id, language_id)
            if progress is None or progress.next_review is None or _as_aware(progress.next_review) <= _as_aware(now):
                due.append(word)

        logger.debug(f"{len(due)} of {len(words)} words due for review")
        if not due and settings.review.fallback_to_all_words:
            logger.info("No words due for review, using all words")
            due = list(words)
        return due[:limit]

    def select_daily_words(
        self,
        words: List[Any],
        language_id: int,
        user_level: Optional[str],
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Choose the words for the daily review.

        Learned and mastered words rest for some months after the day they
        were learned, one month per level below the learner's level and at
        least one month. Other words are always kept.
        """
        if now is None:
            now = self.clock()
        if limit is None:
            limit = settings.review.words_per_session
        today = _today(now)

        selected = []
        for word in words:
            progress = self.store.get_by_word(word.id, language_id)
            status = getattr(progress, "status", None)
            status = getattr(status, "value", status)
            word_level = getattr(word, "level", None)
            if (
                status in (ProgressStatus.LEARNED.value, ProgressStatus.MASTERED.value)
                and progress.date_learned is not None
                and word_level
            ):
                cutoff = months_before(today, months_to_skip(user_level, word_level))
                if progress.date_learned > cutoff:
                    continue
            selected.append(word)

        logger.debug(f"{len(selected)} of {len(words)} words selected for daily review at level {user_level}")
        if not selected and settings.review.fallback_to_all_words:
            logger.info("All words are resting, using all words")
            selected = list(words)
        return selected[:limit]

    def status_breakdown(self, language_id: int) -> Dict[str, int]:
        """Number of words in each mastery status."""
        return self.store.count_by_status(language_id)
