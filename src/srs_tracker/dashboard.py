"""Learner progress summary and display helpers."""
from collections import Counter

from srs_tracker.models import ItemKind, MasteryLabel, Priority
from srs_tracker.review_queue import ReviewQueue

MASTERY_COLORS = {
    MasteryLabel.MASTER: "green",
    MasteryLabel.ADVANCED: "cyan",
    MasteryLabel.INTERMEDIATE: "yellow",
    MasteryLabel.BEGINNER: "dark_orange",
    MasteryLabel.LEARNING: "red",
}

PRIORITY_COLORS = {
    Priority.CRITICAL: "bold red",
    Priority.HIGH: "dark_orange",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "dim",
}


def get_mastery_color(label: MasteryLabel) -> str:
    return MASTERY_COLORS[label]


def get_priority_color(priority: Priority) -> str:
    return PRIORITY_COLORS[priority]


def get_learner_summary(queue: ReviewQueue, learner_id: int) -> dict:
    """Aggregate queue and mastery numbers for one learner.

    Unknown learners get an all-zero summary.
    """
    calculator = queue.calculator
    progress = queue.store.load_all_progress(learner_id)
    correct = sum(p.correct_count for p in progress)
    total = sum(p.total_reviews for p in progress)

    by_kind = {}
    for kind in ItemKind:
        items = [p for p in progress if p.kind == kind]
        labels = Counter(
            calculator.mastery_label(p.mastery_level, p.retention_rate) for p in items
        )
        by_kind[kind.value] = {
            "items": len(items),
            "mastered": sum(
                1 for p in items if calculator.is_mastered(p.mastery_level, p.retention_rate)
            ),
            "labels": {label.value: labels.get(label, 0) for label in MasteryLabel},
        }

    return {
        "due_count": queue.due_count(learner_id),
        "queue": queue.stats_by_category(learner_id),
        "items_tracked": len(progress),
        "items_reviewed": sum(1 for p in progress if p.total_reviews),
        "items_mastered": sum(k["mastered"] for k in by_kind.values()),
        "retention_rate": round(calculator.retention_rate(correct, total), 1),
        "by_kind": by_kind,
    }
