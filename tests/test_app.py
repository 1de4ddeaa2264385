import pytest
from unittest.mock import patch

from srs_tracker.app import (
    SessionExitRequested, build_services, cmd_add, cmd_dashboard, cmd_review,
    cmd_upcoming, run_review_session, session_prompt,
)
from srs_tracker.config import Settings
from srs_tracker.models import ItemKind


@pytest.fixture
def settings(tmp_db):
    return Settings(db_path=tmp_db, learner_id=1)


@pytest.fixture
def services(settings):
    return build_services(settings)


def _queue_due(queue, count):
    return [
        queue.enqueue(1, ItemKind.KANJI, i, scheduled_at=queue.clock())
        for i in range(1, count + 1)
    ]


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("srs_tracker.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("srs_tracker.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("srs_tracker.app.Prompt.ask", return_value="y"):
        assert session_prompt("test prompt") == "y"


def test_run_review_session_records_results(services):
    queue, sessions = services
    entries = _queue_due(queue, 2)
    # Item 1: recalled, easy. Item 2: forgotten.
    with patch("srs_tracker.app.Prompt.ask", side_effect=["y", "e", "n"]):
        session_id = run_review_session(sessions, 1, entries)
    session = sessions.get(session_id)
    assert session.items_reviewed == 2
    assert session.correct_answers == 1
    assert session.is_ended
    assert queue.due_count(1) == 0


def test_run_review_session_exits_on_q(services):
    queue, sessions = services
    entries = _queue_due(queue, 2)
    with patch("srs_tracker.app.Prompt.ask", side_effect=["n", "q"]):
        with pytest.raises(SessionExitRequested):
            run_review_session(sessions, 1, entries)
    # First item graded, second still due
    assert queue.due_count(1) == 1
    assert queue.store.get_entry(entries[0].id).is_completed
    assert not queue.store.get_entry(entries[1].id).is_completed


def test_run_review_session_with_nothing_due(services):
    queue, sessions = services
    session_id = run_review_session(sessions, 1, [])
    assert sessions.get(session_id).is_ended


def test_cmd_review_swallows_exit(services, settings):
    queue, sessions = services
    _queue_due(queue, 1)
    with patch("srs_tracker.app.Prompt.ask", return_value="q"):
        cmd_review(queue, sessions, settings)
    assert queue.due_count(1) == 1


def test_cmd_add_enqueues(services, settings):
    queue, _ = services
    with patch("srs_tracker.app.Prompt.ask", side_effect=["Vocabulary", "12"]):
        cmd_add(queue, settings)
    assert queue.progress_for(1, ItemKind.VOCABULARY, 12) is not None
    assert len(queue.upcoming_entries(1, within_days=2)) == 1


def test_cmd_add_rejects_bad_id(services, settings):
    queue, _ = services
    with patch("srs_tracker.app.Prompt.ask", side_effect=["Kana", "abc"]):
        cmd_add(queue, settings)
    assert queue.store.load_all_progress(1) == []


def test_cmd_dashboard_and_upcoming_render(services, settings):
    queue, _ = services
    _queue_due(queue, 1)
    queue.enqueue(1, ItemKind.GRAMMAR, 3)
    cmd_dashboard(queue, settings)
    cmd_upcoming(queue, settings)
