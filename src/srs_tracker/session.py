"""Review session lifecycle: start, record graded results, end."""
import threading
from collections import defaultdict
from typing import Optional

from loguru import logger

from srs_tracker.models import ReviewDifficulty, ReviewResult, ReviewSession, utc_now
from srs_tracker.review_queue import Clock, ReviewQueue
from srs_tracker.store import SQLiteStore


class ReviewSessionService:
    def __init__(self, store: SQLiteStore, queue: ReviewQueue, clock: Clock = utc_now):
        self.store = store
        self.queue = queue
        self.clock = clock
        self._locks: defaultdict[int, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _session_lock(self, session_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks[session_id]

    def start(self, learner_id: int) -> ReviewSession:
        session = self.store.save_session(ReviewSession(learner_id=learner_id, started_at=self.clock()))
        logger.debug("Started review session {} for learner {}", session.id, learner_id)
        return session

    def get(self, session_id: int) -> Optional[ReviewSession]:
        session = self.store.get_session(session_id)
        if session is not None:
            session.results = self.store.load_results(session_id)
        return session

    def record_result(
        self,
        session_id: int,
        entry_id: int,
        is_correct: bool,
        response_time_ms: int = 0,
        difficulty: ReviewDifficulty = ReviewDifficulty.NORMAL,
        user_answer: str = "",
        correct_answer: str = "",
    ) -> bool:
        """Grade one queue entry inside a session.

        The entry must belong to the session's learner. It is completed
        through the review queue first; the result is only recorded when that
        succeeds. Returns False for a missing or ended session, for a missing
        or foreign entry, and for an entry the queue refuses to complete.
        """
        with self._session_lock(session_id):
            session = self.store.get_session(session_id)
            if session is None:
                logger.warning("Review session {} not found", session_id)
                return False
            if session.is_ended:
                logger.warning("Review session {} has already ended", session_id)
                return False
            entry = self.store.get_entry(entry_id)
            if entry is None or entry.learner_id != session.learner_id:
                logger.warning(
                    "Queue entry {} does not belong to learner {} of session {}",
                    entry_id, session.learner_id, session_id,
                )
                return False
            if not self.queue.complete(entry_id, is_correct, difficulty):
                return False

            # Counters are incremented in the same transaction as the insert.
            self.store.save_result(ReviewResult(
                session_id=session_id,
                entry_id=entry_id,
                is_correct=is_correct,
                response_time_ms=response_time_ms,
                user_answer=user_answer,
                correct_answer=correct_answer,
                difficulty=ReviewDifficulty(difficulty),
                reviewed_at=self.clock(),
            ))
        return True

    def end(self, session_id: int) -> bool:
        """Close a session. Ending a missing or already-ended session returns False."""
        with self._session_lock(session_id):
            session = self.store.get_session(session_id)
            if session is None:
                logger.warning("Review session {} not found", session_id)
                return False
            if session.is_ended:
                return False
            session.ended_at = self.clock()
            self.store.save_session(session)
        logger.debug(
            "Ended review session {}: {}/{} correct",
            session_id, session.correct_answers, session.items_reviewed,
        )
        return True
