"""Database models for vocabulary and review progress."""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from wordreview.models.base import Base, TimestampMixin


class Language(Base, TimestampMixin):
    """Language model."""

    __tablename__ = "languages"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)  # e.g., "en"
    name_english = Column(String, nullable=False)
    name_native = Column(String, nullable=False)
    enabled = Column(Boolean, default=True)

    # Relationships
    words = relationship("Word", back_populates="language")
    progress = relationship("WordProgress", back_populates="language")


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    text = Column(String, nullable=False)
    translation = Column(String, nullable=False)
    language_id = Column(Integer, ForeignKey("languages.id"), nullable=False)
    level = Column(String)  # CEFR level, e.g., "A1"

    # Relationships
    language = relationship("Language", back_populates="words")
    progress = relationship("WordProgress", back_populates="word")


class WordProgress(Base, TimestampMixin):
    """Learner progress on a single word in a target language."""

    __tablename__ = "word_progress"
    __table_args__ = (UniqueConstraint("word_id", "language_id", name="uq_word_progress_word_language"),)

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False)
    language_id = Column(Integer, ForeignKey("languages.id"), nullable=False)
    status = Column(String, nullable=False, default="new")  # new, learning, learned, mastered
    interval = Column(Integer, nullable=False, default=0)  # in days
    next_review = Column(DateTime(timezone=True))
    review_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    date_learned = Column(Date)

    # Relationships
    word = relationship("Word", back_populates="progress")
    language = relationship("Language", back_populates="progress")
