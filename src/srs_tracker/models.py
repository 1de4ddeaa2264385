"""Data classes for the review scheduling domain model."""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, IntEnum
from typing import Optional


def utc_now() -> datetime:
    """Default clock: the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return `value` in UTC; naive datetimes are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ItemKind(str, Enum):
    KANJI = "Kanji"
    VOCABULARY = "Vocabulary"
    GRAMMAR = "Grammar"
    KANA = "Kana"


class Priority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3


class ReviewDifficulty(IntEnum):
    EASY = 0
    NORMAL = 1
    HARD = 2


class MasteryLabel(str, Enum):
    MASTER = "Master"
    ADVANCED = "Advanced"
    INTERMEDIATE = "Intermediate"
    BEGINNER = "Beginner"
    LEARNING = "Learning"


@dataclass
class StudyItemProgress:
    """Mastery record for one learner and one study item."""
    learner_id: int
    kind: ItemKind
    item_id: int
    next_review_at: datetime
    mastery_level: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    last_reviewed_at: Optional[datetime] = None

    @property
    def total_reviews(self) -> int:
        return self.correct_count + self.incorrect_count

    @property
    def retention_rate(self) -> float:
        if not self.total_reviews:
            return 0.0
        return self.correct_count / self.total_reviews * 100


@dataclass
class ReviewQueueEntry:
    """Scheduling record for one pending (or finished) review of an item."""
    learner_id: int
    kind: ItemKind
    item_id: int
    scheduled_at: datetime
    priority: Priority = Priority.LOW
    mastery_level: int = 0
    completed_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def is_overdue(self, now: datetime) -> bool:
        return now > self.scheduled_at and not self.is_completed

    def days_overdue(self, now: datetime) -> int:
        return (now - self.scheduled_at).days if self.is_overdue(now) else 0


@dataclass
class ReviewResult:
    session_id: int
    entry_id: int
    is_correct: bool
    response_time_ms: int = 0
    user_answer: str = ""
    correct_answer: str = ""
    difficulty: ReviewDifficulty = ReviewDifficulty.NORMAL
    reviewed_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass
class ReviewSession:
    learner_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    items_reviewed: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    results: list[ReviewResult] = field(default_factory=list)
    id: Optional[int] = None

    @property
    def is_ended(self) -> bool:
        return self.ended_at is not None

    @property
    def accuracy_rate(self) -> float:
        if not self.items_reviewed:
            return 0.0
        return self.correct_answers / self.items_reviewed * 100

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        end = self.ended_at or now or utc_now()
        return end - self.started_at


@dataclass
class SRSStats:
    total_reviews: int
    correct_reviews: int
    incorrect_reviews: int
    retention_rate: float
    current_level: int
    next_review_days: int
    mastery_label: MasteryLabel
