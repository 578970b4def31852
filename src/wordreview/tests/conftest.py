"""Test configuration."""
import os
from pathlib import Path
from typing import Generator

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from faker import Faker
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wordreview.models.base import init_db
from wordreview.models.models import Language, Word

fake = Faker()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory database shared by every connection of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def language(db: Session) -> Language:
    """Create a test language."""
    language = Language(
        code="es",
        name_english="Spanish",
        name_native="Español",
    )
    db.add(language)
    db.commit()
    db.refresh(language)
    return language


@pytest.fixture
def make_word(db: Session, language: Language):
    """Factory for words in the test language."""
    def _make_word(**kwargs) -> Word:
        word = Word(
            text=kwargs.pop("text", fake.unique.word()),
            translation=kwargs.pop("translation", fake.word()),
            language_id=kwargs.pop("language_id", language.id),
            level=kwargs.pop("level", "A1"),
        )
        db.add(word)
        db.commit()
        db.refresh(word)
        return word
    return _make_word


@pytest.fixture
def word(make_word) -> Word:
    """Create a test word."""
    return make_word(text="hola", translation="hello")
