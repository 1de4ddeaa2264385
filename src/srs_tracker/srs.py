"""Level-ladder spaced repetition calculator."""
from datetime import datetime, timedelta
from typing import Sequence

from srs_tracker.config import DEFAULT_INTERVALS, Settings
from srs_tracker.errors import InvalidConfigurationError
from srs_tracker.models import MasteryLabel, Priority, ReviewDifficulty, SRSStats

ADVANCEMENT = {
    ReviewDifficulty.EASY: 2,
    ReviewDifficulty.NORMAL: 1,
    ReviewDifficulty.HARD: 0,
}

MASTERED_LEVEL = 6
MASTERED_RETENTION = 85

# (min level, min retention, label), checked top to bottom
MASTERY_BANDS = [
    (7, 90, MasteryLabel.MASTER),
    (5, 80, MasteryLabel.ADVANCED),
    (3, 70, MasteryLabel.INTERMEDIATE),
    (1, 60, MasteryLabel.BEGINNER),
]


class SRSCalculator:
    """Maps (level, correctness, difficulty) to the next level, due date and priority.

    Each mastery level indexes a retention interval in days. Correct answers
    climb the ladder, incorrect answers drop two rungs. The calculator holds
    only its immutable configuration and can be shared freely.
    """

    def __init__(
        self,
        intervals: Sequence[int] = DEFAULT_INTERVALS,
        initial_interval: int = 1,
        easy_bonus: float = 1.3,
        hard_penalty: float = 0.6,
    ):
        if not intervals:
            raise InvalidConfigurationError("interval table must not be empty")
        if any(days < 0 for days in intervals):
            raise InvalidConfigurationError(f"intervals must be non-negative: {list(intervals)}")
        if initial_interval <= 0:
            raise InvalidConfigurationError(f"initial interval must be positive: {initial_interval}")
        self._intervals = tuple(intervals)
        self._initial_interval = initial_interval
        # Not used by the level transition.
        self._easy_bonus = easy_bonus
        self._hard_penalty = hard_penalty

    @classmethod
    def from_settings(cls, settings: Settings) -> "SRSCalculator":
        return cls(
            intervals=settings.intervals,
            initial_interval=settings.initial_interval,
            easy_bonus=settings.easy_bonus,
            hard_penalty=settings.hard_penalty,
        )

    @property
    def intervals(self) -> tuple[int, ...]:
        return self._intervals

    @property
    def initial_interval(self) -> int:
        return self._initial_interval

    @property
    def max_level(self) -> int:
        return len(self._intervals) - 1

    def interval_for_level(self, level: int) -> int:
        """Return the retention interval in days for `level`.

        Negative levels get the initial interval; levels past the end of the
        table get the last interval.
        """
        if level < 0:
            return self._initial_interval
        if level > self.max_level:
            return self._intervals[-1]
        return self._intervals[level]

    def next_level(
        self,
        current_level: int,
        was_correct: bool,
        difficulty: ReviewDifficulty = ReviewDifficulty.NORMAL,
    ) -> int:
        """Calculate the mastery level after a review.

        Args:
            current_level: Level before the review
            was_correct: Whether the learner answered correctly
            difficulty: Self-rated difficulty; only affects correct answers

        Returns:
            The new level. Incorrect answers drop two levels (never below 0);
            correct answers advance by 2 (Easy), 1 (Normal) or 0 (Hard),
            capped at the top of the interval table.
        """
        if not was_correct:
            return max(0, current_level - 2)
        advanced = current_level + ADVANCEMENT[ReviewDifficulty(difficulty)]
        return max(0, min(advanced, self.max_level))

    def next_review_at(
        self,
        current_level: int,
        was_correct: bool,
        difficulty: ReviewDifficulty,
        now: datetime,
    ) -> datetime:
        new_level = self.next_level(current_level, was_correct, difficulty)
        return now + timedelta(days=self.interval_for_level(new_level))

    def is_mastered(self, level: int, retention_rate: float) -> bool:
        """True once an item no longer needs to be queued for review."""
        return level >= MASTERED_LEVEL and retention_rate >= MASTERED_RETENTION

    def mastery_label(self, level: int, retention_rate: float) -> MasteryLabel:
        for min_level, min_retention, label in MASTERY_BANDS:
            if level >= min_level and retention_rate >= min_retention:
                return label
        return MasteryLabel.LEARNING

    def priority(
        self,
        next_review_at: datetime,
        now: datetime,
        level: int,
        retention_rate: float,
    ) -> Priority:
        """Urgency of a review: overdue days first, retention rate second."""
        days_overdue = (now - next_review_at).days
        if days_overdue > 7:
            return Priority.CRITICAL
        if days_overdue > 3:
            return Priority.HIGH
        if days_overdue > 0:
            return Priority.MEDIUM
        if retention_rate < 60:
            return Priority.HIGH
        if retention_rate < 80:
            return Priority.MEDIUM
        return Priority.LOW

    def successor_priority(self, level: int, was_correct: bool) -> Priority:
        """Priority for the entry that follows a completed review."""
        if not was_correct:
            return Priority.CRITICAL
        if level < 2:
            return Priority.HIGH
        if level < 4:
            return Priority.MEDIUM
        return Priority.LOW

    @staticmethod
    def retention_rate(correct_count: int, total_count: int) -> float:
        return correct_count / total_count * 100 if total_count > 0 else 0.0

    def stats(self, correct_count: int, incorrect_count: int, level: int) -> SRSStats:
        total = correct_count + incorrect_count
        retention = self.retention_rate(correct_count, total)
        return SRSStats(
            total_reviews=total,
            correct_reviews=correct_count,
            incorrect_reviews=incorrect_count,
            retention_rate=retention,
            current_level=level,
            next_review_days=self.interval_for_level(level),
            mastery_label=self.mastery_label(level, retention),
        )

    def upcoming_review_dates(
        self, level: int, now: datetime, count: int = 5
    ) -> list[datetime]:
        """Projected review dates if each of the next `count` reviews is passed."""
        dates = []
        current = now
        for step in range(count):
            current = current + timedelta(days=self.interval_for_level(level + step))
            dates.append(current)
        return dates
