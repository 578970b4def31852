"""Plain data structures exchanged with the review scheduler."""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional


class ProgressStatus(Enum):
    """Mastery tier of a word."""
    NEW = "new"
    LEARNING = "learning"
    LEARNED = "learned"
    MASTERED = "mastered"


@dataclass
class WordProgressData:
    """Detached snapshot of a stored progress record."""
    id: Optional[int]
    word_id: int
    language_id: int
    status: Optional[str] = ProgressStatus.NEW.value
    interval: int = 0
    next_review: Optional[datetime] = None
    review_count: int = 0
    correct_count: int = 0
    date_learned: Optional[date] = None


@dataclass
class ScheduleResult:
    """When a word comes back and the interval that got it there."""
    next_review: datetime
    interval: int


@dataclass
class WordProgressUpdate:
    """Full replacement record produced by one answer."""
    status: ProgressStatus
    interval: int
    next_review: datetime
    review_count: int
    correct_count: int
    date_learned: Optional[date] = None
    date_learned_changed: bool = False

    def as_fields(self) -> Dict[str, Any]:
        """Fields to write back; date_learned only when this answer set it."""
        fields = {
            "status": self.status.value,
            "interval": self.interval,
            "next_review": self.next_review,
            "review_count": self.review_count,
            "correct_count": self.correct_count,
        }
        if self.date_learned_changed:
            fields["date_learned"] = self.date_learned
        return fields
