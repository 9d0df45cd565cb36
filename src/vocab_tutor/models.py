"""Data classes for the vocabulary review domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Rating(str, Enum):
    """Recall quality, ordered worst to best."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def rank(self) -> int:
        return list(Rating).index(self)

    @property
    def is_success(self) -> bool:
        return self in (Rating.GOOD, Rating.EASY)


class Direction(str, Enum):
    FRONT_TO_BACK = "front-back"
    BACK_TO_FRONT = "back-front"


class PromptMode(str, Enum):
    """Which part of the front side is used as the prompt."""

    TEXT = "text"
    PHONETIC = "phonetic"


class SessionState(str, Enum):
    SETUP = "setup"
    REVIEWING = "reviewing"
    SUMMARY = "summary"
    ABANDONED = "abandoned"


class CardState(str, Enum):
    PROMPTED = "prompted"
    REVEALED = "revealed"


@dataclass(frozen=True)
class Item:
    id: int
    front: str
    back: str
    phonetic: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class SchedulingRecord:
    item_id: int
    due_at: datetime
    interval_days: float = 0
    ease_factor: float = 2.5
    repetitions: int = 0
    lapses: int = 0
    last_reviewed_at: Optional[datetime] = None

    @property
    def is_new(self) -> bool:
        return self.last_reviewed_at is None

    def is_due(self, now: datetime) -> bool:
        return self.due_at <= now


@dataclass(frozen=True)
class ReviewOutcome:
    item_id: int
    rating: Rating
    prompt_shown: str
    answer_shown: str
    order: int
    scheduled_interval_after: float
    persisted: bool = True


@dataclass(frozen=True)
class SessionSummary:
    reviewed: int
    accuracy: float
    by_rating: dict = field(default_factory=dict)
    outcomes: tuple[ReviewOutcome, ...] = ()

    @property
    def accuracy_percent(self) -> int:
        return round(self.accuracy * 100)

    @property
    def unpersisted(self) -> int:
        return sum(1 for o in self.outcomes if not o.persisted)
