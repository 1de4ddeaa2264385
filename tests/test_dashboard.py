# tests/test_dashboard.py
from srs_tracker.dashboard import get_learner_summary, get_mastery_color, get_priority_color
from srs_tracker.models import ItemKind, MasteryLabel, Priority, ReviewDifficulty, ReviewQueueEntry

LEARNER = 1


def test_summary_empty_learner(queue):
    summary = get_learner_summary(queue, 999)
    assert summary["due_count"] == 0
    assert summary["items_tracked"] == 0
    assert summary["items_reviewed"] == 0
    assert summary["items_mastered"] == 0
    assert summary["retention_rate"] == 0.0
    assert set(summary["by_kind"]) == {"Kanji", "Vocabulary", "Grammar", "Kana"}
    assert all(v == 0 for v in summary["queue"].values())


def test_summary_with_reviews(queue, clock):
    a = queue.enqueue(LEARNER, ItemKind.KANJI, 1, scheduled_at=clock.now)
    b = queue.enqueue(LEARNER, ItemKind.KANJI, 2, scheduled_at=clock.now)
    queue.enqueue(LEARNER, ItemKind.GRAMMAR, 3, scheduled_at=clock.now)
    queue.complete(a.id, True, ReviewDifficulty.EASY)
    queue.complete(b.id, False)

    summary = get_learner_summary(queue, LEARNER)
    assert summary["due_count"] == 1
    assert summary["items_tracked"] == 3
    assert summary["items_reviewed"] == 2
    assert summary["retention_rate"] == 50.0
    kanji = summary["by_kind"]["Kanji"]
    assert kanji["items"] == 2
    assert kanji["mastered"] == 0
    assert kanji["labels"]["Learning"] == 1
    assert kanji["labels"]["Beginner"] == 1
    assert summary["by_kind"]["Grammar"]["items"] == 1


def test_mastered_items_are_counted(queue, store, clock):
    entry = store.save_entry(ReviewQueueEntry(
        learner_id=LEARNER, kind=ItemKind.KANA, item_id=9, scheduled_at=clock.now, mastery_level=6,
    ))
    queue.complete(entry.id, True)
    summary = get_learner_summary(queue, LEARNER)
    assert summary["items_mastered"] == 1
    assert summary["by_kind"]["Kana"]["mastered"] == 1
    assert summary["by_kind"]["Kana"]["labels"]["Master"] == 1


def test_colors_cover_every_value():
    for label in MasteryLabel:
        assert get_mastery_color(label)
    for priority in Priority:
        assert get_priority_color(priority)
