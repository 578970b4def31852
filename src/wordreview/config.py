"""Configuration settings for the review engine."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Scheduling settings
REVIEW_STEPS = {0: 1, 1: 3, 3: 7, 7: 14}  # exact prior interval -> next interval, days
MAX_INTERVAL_DAYS = 90
RETRY_DELAY_MINUTES = 10  # delay before a failed word comes back
LEARNED_THRESHOLD_DAYS = 7
MASTERED_THRESHOLD_DAYS = 30

# Review session settings
CEFR_LEVELS = ["A1", "A2", "B1", "B2", "C1", "C2"]
MIN_MONTHS_BEFORE_REPEAT = 1  # learned words rest at least this long in daily review


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///wordreview.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class SchedulerSettings:
    """Spaced repetition settings. Not read from the environment."""
    review_steps: dict[int, int] = field(default_factory=lambda: dict(REVIEW_STEPS))
    max_interval_days: int = MAX_INTERVAL_DAYS
    retry_delay_minutes: int = RETRY_DELAY_MINUTES
    learned_threshold_days: int = LEARNED_THRESHOLD_DAYS
    mastered_threshold_days: int = MASTERED_THRESHOLD_DAYS


@dataclass
class ReviewSettings:
    """Review session settings."""
    words_per_session: int = int(os.getenv("WORDS_PER_SESSION", "20"))
    fallback_to_all_words: bool = os.getenv("FALLBACK_TO_ALL_WORDS", "true").lower() == "true"


@dataclass
class MonitoringSettings:
    """Metrics exporter settings."""
    metrics_port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_scheduler_settings() -> SchedulerSettings:
    """Get scheduler settings."""
    return SchedulerSettings()


def get_review_settings() -> ReviewSettings:
    """Get review session settings."""
    return ReviewSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    scheduler: SchedulerSettings = field(default_factory=get_scheduler_settings)
    review: ReviewSettings = field(default_factory=get_review_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.review.words_per_session < 1:
            raise ValueError("WORDS_PER_SESSION must be positive")

        scheduler = self.scheduler
        if not 0 < scheduler.learned_threshold_days < scheduler.mastered_threshold_days:
            raise ValueError("Learned threshold must be positive and below the mastered threshold")

        if scheduler.mastered_threshold_days > scheduler.max_interval_days:
            raise ValueError("Mastered threshold cannot exceed the maximum interval")

        if scheduler.retry_delay_minutes <= 0:
            raise ValueError("Retry delay must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
