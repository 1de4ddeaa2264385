"""Review queue: due selection, enqueueing and completion of scheduled reviews."""
import threading
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Optional

from loguru import logger

from srs_tracker.models import (
    ItemKind, Priority, ReviewDifficulty, ReviewQueueEntry, SRSStats,
    StudyItemProgress, as_utc, utc_now,
)
from srs_tracker.srs import SRSCalculator
from srs_tracker.store import SQLiteStore

Clock = Callable[[], datetime]


def _due_order(entry: ReviewQueueEntry):
    # Critical first, then oldest schedule first
    return (-int(entry.priority), entry.scheduled_at, entry.id)


class ReviewQueue:
    """Per-learner queue of scheduled reviews backed by a store.

    `enqueue` and `complete` hold a per-learner lock around their
    read-then-write sequence so at most one open entry exists per item.
    """

    def __init__(self, store: SQLiteStore, calculator: SRSCalculator, clock: Clock = utc_now):
        self.store = store
        self.calculator = calculator
        self.clock = clock
        self._locks: defaultdict[int, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _learner_lock(self, learner_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks[learner_id]

    def due_entries(self, learner_id: int, limit: int = 20) -> list[ReviewQueueEntry]:
        now = as_utc(self.clock())
        due = [e for e in self.store.load_entries(learner_id) if e.scheduled_at <= now]
        due.sort(key=_due_order)
        logger.debug("Found {} due reviews for learner {}", len(due), learner_id)
        return due[:limit]

    def upcoming_entries(self, learner_id: int, within_days: int = 7) -> list[ReviewQueueEntry]:
        now = as_utc(self.clock())
        end = now + timedelta(days=within_days)
        upcoming = [
            e for e in self.store.load_entries(learner_id)
            if now < e.scheduled_at <= end
        ]
        upcoming.sort(key=lambda e: (e.scheduled_at, e.id))
        return upcoming

    def entries_by_priority(self, learner_id: int, priority: Priority) -> list[ReviewQueueEntry]:
        entries = [e for e in self.store.load_entries(learner_id) if e.priority == priority]
        entries.sort(key=lambda e: (e.scheduled_at, e.id))
        return entries

    def enqueue(
        self,
        learner_id: int,
        kind: ItemKind,
        item_id: int,
        scheduled_at: Optional[datetime] = None,
    ) -> ReviewQueueEntry:
        """Schedule a review of an item, or reschedule its open entry.

        An item has at most one open entry per learner. If one exists, its
        `scheduled_at` is replaced when a new time is given and the entry is
        returned; otherwise a level 0, low priority entry is created, due in
        one day unless `scheduled_at` says otherwise.
        """
        kind = ItemKind(kind)
        if scheduled_at is not None:
            scheduled_at = as_utc(scheduled_at)
        with self._learner_lock(learner_id):
            now = as_utc(self.clock())
            existing = self.store.find_open_entry(learner_id, kind, item_id)
            if existing is not None:
                if scheduled_at is not None:
                    existing.scheduled_at = scheduled_at
                    progress = self.store.load_progress(learner_id, kind, item_id) or StudyItemProgress(
                        learner_id=learner_id,
                        kind=kind,
                        item_id=item_id,
                        next_review_at=scheduled_at,
                        mastery_level=existing.mastery_level,
                    )
                    progress.next_review_at = scheduled_at
                    self.store.save_reschedule(existing, progress)
                    logger.debug("Rescheduled {} {} for learner {} to {}", kind.value, item_id, learner_id, scheduled_at)
                return existing

            entry = ReviewQueueEntry(
                learner_id=learner_id,
                kind=kind,
                item_id=item_id,
                scheduled_at=scheduled_at or now + timedelta(days=1),
                priority=Priority.LOW,
                mastery_level=0,
            )
            self.store.save_entry(entry)
            if self.store.load_progress(learner_id, kind, item_id) is None:
                self.store.save_progress(StudyItemProgress(
                    learner_id=learner_id,
                    kind=kind,
                    item_id=item_id,
                    next_review_at=entry.scheduled_at,
                ))
            logger.debug("Added {} {} to review queue for learner {}", kind.value, item_id, learner_id)
            return entry

    def complete(
        self,
        entry_id: int,
        was_correct: bool,
        difficulty: ReviewDifficulty = ReviewDifficulty.NORMAL,
    ) -> bool:
        """Finish a scheduled review and queue the next one unless the item is mastered.

        Returns False, changing nothing, when the entry does not exist or was
        already completed.
        """
        entry = self.store.get_entry(entry_id)
        if entry is None:
            logger.warning("Queue entry {} not found", entry_id)
            return False

        with self._learner_lock(entry.learner_id):
            # Re-read under the lock; another caller may have completed it.
            entry = self.store.get_entry(entry_id)
            if entry.is_completed:
                logger.warning("Queue entry {} is already completed", entry_id)
                return False

            now = as_utc(self.clock())
            difficulty = ReviewDifficulty(difficulty)
            new_level = self.calculator.next_level(entry.mastery_level, was_correct, difficulty)
            next_review = self.calculator.next_review_at(entry.mastery_level, was_correct, difficulty, now)
            entry.completed_at = now

            progress = self.store.load_progress(entry.learner_id, entry.kind, entry.item_id)
            if progress is None:
                progress = StudyItemProgress(
                    learner_id=entry.learner_id,
                    kind=entry.kind,
                    item_id=entry.item_id,
                    next_review_at=next_review,
                )
            progress.mastery_level = new_level
            progress.next_review_at = next_review
            progress.last_reviewed_at = now
            if was_correct:
                progress.correct_count += 1
            else:
                progress.incorrect_count += 1

            successor = None
            if not self.calculator.is_mastered(new_level, 100 if was_correct else 0):
                successor = ReviewQueueEntry(
                    learner_id=entry.learner_id,
                    kind=entry.kind,
                    item_id=entry.item_id,
                    scheduled_at=next_review,
                    priority=self.calculator.successor_priority(new_level, was_correct),
                    mastery_level=new_level,
                )
            self.store.save_completion(entry, progress, successor)

        if successor is None:
            logger.info("{} {} mastered by learner {}", entry.kind.value, entry.item_id, entry.learner_id)
        else:
            logger.debug("Completed queue entry {}, next review: {}", entry_id, next_review)
        return True

    def due_count(self, learner_id: int) -> int:
        now = as_utc(self.clock())
        return sum(1 for e in self.store.load_entries(learner_id) if e.scheduled_at <= now)

    def stats_by_category(self, learner_id: int) -> dict[str, int]:
        """Counts for the learner's dashboard badges.

        `due_today` counts everything scheduled on or before today's date,
        `overdue` everything scheduled before today, `upcoming` the next
        seven days, and `due_<kind>` the due entries of each item kind.
        """
        now = as_utc(self.clock())
        start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        next_week = now + timedelta(days=7)
        entries = self.store.load_entries(learner_id)

        stats = {
            "due_today": sum(1 for e in entries if as_utc(e.scheduled_at).date() <= now.date()),
            "overdue": sum(1 for e in entries if e.scheduled_at < start_of_today),
            "upcoming": sum(1 for e in entries if now < e.scheduled_at <= next_week),
        }
        for kind in ItemKind:
            stats[f"due_{kind.name.lower()}"] = sum(
                1 for e in entries if e.kind == kind and e.scheduled_at <= now
            )
        return stats

    def progress_for(self, learner_id: int, kind: ItemKind, item_id: int) -> Optional[StudyItemProgress]:
        return self.store.load_progress(learner_id, ItemKind(kind), item_id)

    def item_stats(self, learner_id: int, kind: ItemKind, item_id: int) -> Optional[SRSStats]:
        progress = self.progress_for(learner_id, kind, item_id)
        if progress is None:
            return None
        return self.calculator.stats(
            progress.correct_count, progress.incorrect_count, progress.mastery_level
        )
