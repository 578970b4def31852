"""Storage of word progress records."""
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordreview.models.models import WordProgress
from wordreview.models.progress_models import ProgressStatus, WordProgressData
from wordreview.monitoring import progress_writes, store_errors

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = {
    "status",
    "interval",
    "next_review",
    "review_count",
    "correct_count",
    "date_learned",
}


class ProgressStoreError(RuntimeError):
    """Raised when progress could not be read or written. Safe to retry."""


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Stored as UTC wall time; SQLite hands back naive datetimes
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_data(progress: WordProgress) -> WordProgressData:
    return WordProgressData(
        id=progress.id,
        word_id=progress.word_id,
        language_id=progress.language_id,
        status=progress.status,
        interval=progress.interval,
        next_review=_as_utc(progress.next_review),
        review_count=progress.review_count,
        correct_count=progress.correct_count,
        date_learned=progress.date_learned,
    )


class ProgressStore(ABC):
    """Where the review session reads and writes word progress."""

    @abstractmethod
    def get_by_word(self, word_id: int, language_id: int) -> Optional[WordProgressData]:
        """Get the progress for a word, or None if it was never answered."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def create(
        self,
        word_id: int,
        language_id: int,
        status: str,
        interval: int,
        next_review: datetime,
        **fields: Any,
    ) -> WordProgressData:
        """Create the progress record for a word."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def update(self, progress_id: int, fields: Dict[str, Any]) -> WordProgressData:
        """Overwrite fields of an existing progress record."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def count_by_status(self, language_id: int) -> Dict[str, int]:
        """Count words in each mastery status, plus the total."""
        raise NotImplementedError("Subclasses must implement this method")


class SqlProgressStore(ProgressStore):
    """Progress store backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db

    def _fail(self, operation: str, error: Exception) -> ProgressStoreError:
        self.db.rollback()
        store_errors.labels(operation=operation).inc()
        logger.error(f"Progress store {operation} failed: {error}")
        return ProgressStoreError(f"Could not {operation} word progress: {error}")

    def get_by_word(self, word_id: int, language_id: int) -> Optional[WordProgressData]:
        try:
            progress = (
                self.db.query(WordProgress)
                .filter(
                    and_(
                        WordProgress.word_id == word_id,
                        WordProgress.language_id == language_id,
                    )
                )
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("read", e) from e
        return _to_data(progress) if progress else None

    def create(
        self,
        word_id: int,
        language_id: int,
        status: str,
        interval: int,
        next_review: datetime,
        **fields: Any,
    ) -> WordProgressData:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown progress fields: {sorted(unknown)}")

        progress = WordProgress(
            word_id=word_id,
            language_id=language_id,
            status=status,
            interval=interval,
            next_review=_as_utc(next_review),
            **fields,
        )
        try:
            self.db.add(progress)
            self.db.commit()
            self.db.refresh(progress)
        except SQLAlchemyError as e:
            raise self._fail("create", e) from e

        progress_writes.labels(operation="create").inc()
        logger.info(f"Created progress {progress.id} for word {word_id} in language {language_id}")
        return _to_data(progress)

    def update(self, progress_id: int, fields: Dict[str, Any]) -> WordProgressData:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown progress fields: {sorted(unknown)}")

        try:
            progress = self.db.query(WordProgress).filter(WordProgress.id == progress_id).first()
            if not progress:
                raise ProgressStoreError(f"Progress {progress_id} not found")

            for key, value in fields.items():
                if key == "next_review":
                    value = _as_utc(value)
                setattr(progress, key, value)

            self.db.commit()
            self.db.refresh(progress)
        except SQLAlchemyError as e:
            raise self._fail("update", e) from e

        progress_writes.labels(operation="update").inc()
        logger.info(f"Updated progress {progress_id}")
        return _to_data(progress)

    def list_progress(self, language_id: int) -> List[WordProgressData]:
        """Get all progress records in a language."""
        try:
            rows = (
                self.db.query(WordProgress)
                .filter(WordProgress.language_id == language_id)
                .order_by(WordProgress.id)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("read", e) from e
        return [_to_data(row) for row in rows]

    def list_due(self, language_id: int, now: datetime, limit: Optional[int] = None) -> List[WordProgressData]:
        """Get progress records that are due for review, soonest first."""
        try:
            query = (
                self.db.query(WordProgress)
                .filter(
                    and_(
                        WordProgress.language_id == language_id,
                        or_(
                            WordProgress.next_review.is_(None),
                            WordProgress.next_review <= _as_utc(now),
                        ),
                    )
                )
                .order_by(WordProgress.next_review)
            )
            if limit is not None:
                query = query.limit(limit)
            rows = query.all()
        except SQLAlchemyError as e:
            raise self._fail("read", e) from e
        return [_to_data(row) for row in rows]

    def count_by_status(self, language_id: int) -> Dict[str, int]:
        """Count words in each mastery status, plus the total."""
        try:
            rows = (
                self.db.query(WordProgress.status, func.count(WordProgress.id))
                .filter(WordProgress.language_id == language_id)
                .group_by(WordProgress.status)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("read", e) from e

        counts = {status.value: 0 for status in ProgressStatus}
        for status, count in rows:
            counts[status] = counts.get(status, 0) + count
        counts["total"] = sum(count for _, count in rows)
        return counts
