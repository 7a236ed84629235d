"""
Session management for elaborative interrogation.

SessionManager owns the persisted session list. It creates sessions,
records and scores responses, completes and deletes sessions, and tells
registered listeners after every write.

Lifecycle:
    created (0 answered) -> in progress -> all answered -> completed

Responses are last-write-wins per question and are accepted in any state.
Completion does not require every question to be answered.

Everything runs synchronously. Listeners are called in registration order
against a snapshot of the listener list; a listener that calls back into
the manager re-enters the same call stack.
"""

from __future__ import annotations

import itertools
import json
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from loguru import logger

from .errors import QuestionNotFound, SessionNotFound
from .evaluator import calculate_session_score, evaluate_response
from .models import (
    Evaluation,
    Question,
    Session,
    Statistics,
    format_timestamp,
    round_half_up,
    utc_now,
)
from .questions import generate_questions
from .statistics import compute_statistics
from .storage import PersistenceCapability

# Storage key shared with previously stored data
INTERROGATION_STORAGE_KEY = "elaborativeInterrogationSessions"

Listener = Callable[[], None]
Clock = Callable[[], datetime]


class SessionManager:
    """
    Creates, updates and queries interrogation sessions.

    The whole session list is read and written as one JSON array under a
    single storage key. A payload that fails to parse reads as empty; a
    single record that fails to decode is skipped on read and written back
    untouched.
    """

    def __init__(
        self,
        storage: PersistenceCapability,
        clock: Optional[Clock] = None,
        storage_key: Optional[str] = None,
    ):
        """
        Args:
            storage: Key-value store for the serialized session list
            clock: Returns the current time; defaults to UTC now
            storage_key: Key the session list is stored under (default
                INTERROGATION_STORAGE_KEY)
        """
        self.storage = storage
        self.clock = clock or utc_now
        self.storage_key = storage_key or INTERROGATION_STORAGE_KEY
        self._listeners: list[Listener] = []
        self._session_counter = itertools.count()

    # ==========================================================================
    # Listeners
    # ==========================================================================

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners = [registered for registered in self._listeners if registered != listener]

    def _notify_listeners(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ==========================================================================
    # Mutations
    # ==========================================================================

    def start_session(self, word: str, explanation: str) -> Session:
        """Generate the questions for a term and store a new session."""
        now = self.clock()
        stamp = int(now.timestamp() * 1000)

        session = Session(
            id=f"session-{stamp}-{next(self._session_counter)}",
            word=word,
            explanation=explanation,
            start_time=format_timestamp(now),
            questions=generate_questions(word, explanation, stamp=stamp),
        )

        self._save_session(session)
        logger.info(f"Started interrogation session {session.id} for '{word}'")
        self._notify_listeners()
        return session

    def submit_response(self, session_id: str, question_id: str, response: str) -> Evaluation:
        """
        Record and score a response, replacing any earlier one for that question.

        Raises:
            SessionNotFound: Unknown session id
            QuestionNotFound: The session has no question with this id
        """
        session = self.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)

        question = session.get_question(question_id)
        if question is None:
            raise QuestionNotFound(session_id, question_id)

        evaluation = evaluate_response(response, question)
        session.responses[question_id] = response
        session.evaluations[question_id] = evaluation

        self._save_session(session)
        logger.info(
            f"Session {session_id}: {question.type.value} answered, score {evaluation.score}"
        )
        self._notify_listeners()
        return evaluation

    def complete_session(self, session_id: str) -> Session:
        """
        Finalize a session and compute its overall score.

        Unanswered questions are allowed; a session without evaluations
        scores 0.

        Raises:
            SessionNotFound: Unknown session id
        """
        session = self.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)

        session.end_time = format_timestamp(self.clock())
        session.completed = True
        session.overall_score = calculate_session_score(session.evaluations.values())

        self._save_session(session)
        logger.info(f"Completed session {session_id} with score {session.overall_score}")
        self._notify_listeners()
        return session

    def delete_session(self, session_id: str) -> None:
        """Remove a session. Unknown ids are ignored."""
        entries = self._load_entries()
        remaining = [
            entry for entry in entries
            if not (isinstance(entry, Session) and entry.id == session_id)
        ]
        self._write_entries(remaining)

        if len(remaining) < len(entries):
            logger.info(f"Deleted session {session_id}")
        self._notify_listeners()

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_session(self, session_id: str) -> Session | None:
        for session in self.get_all_sessions():
            if session.id == session_id:
                return session
        return None

    def get_all_sessions(self) -> list[Session]:
        """Load every stored session that decodes; unreadable records are skipped."""
        return [entry for entry in self._load_entries() if isinstance(entry, Session)]

    def get_sessions_for_word(self, word: str) -> list[Session]:
        """Sessions whose word matches ``word``, ignoring case."""
        target = word.lower()
        return [s for s in self.get_all_sessions() if s.word.lower() == target]

    def get_statistics(self) -> Statistics:
        return compute_statistics(self.get_all_sessions())

    def get_next_unanswered_question(self, session_id: str) -> Question | None:
        """First question, in session order, without a recorded response."""
        session = self.get_session(session_id)
        if session is None:
            return None

        for question in session.questions:
            if question.id not in session.responses:
                return question
        return None

    def get_session_progress(self, session_id: str) -> int:
        """Percentage of questions answered, 0 for unknown or empty sessions."""
        session = self.get_session(session_id)
        if session is None or not session.questions:
            return 0

        return round_half_up(session.answered_count / len(session.questions) * 100)

    # ==========================================================================
    # Persistence
    # ==========================================================================

    def _load_entries(self) -> list[Any]:
        """
        Decode the stored list record by record.

        Records that fail to decode stay in the list as their raw JSON
        value, so writes carry them along instead of dropping them.
        """
        data = self.storage.get(self.storage_key)
        if not data:
            return []

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to load interrogation sessions: {e}")
            return []

        if not isinstance(payload, list):
            logger.warning(
                f"Failed to load interrogation sessions: expected a list, got {type(payload).__name__}"
            )
            return []

        entries: list[Any] = []
        for index, record in enumerate(payload):
            try:
                entries.append(Session.from_dict(record))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable interrogation session at index {index}: {e!r}")
                entries.append(record)
        return entries

    def _save_session(self, session: Session) -> None:
        entries = self._load_entries()
        for index, existing in enumerate(entries):
            if isinstance(existing, Session) and existing.id == session.id:
                entries[index] = session
                break
        else:
            entries.append(session)

        self._write_entries(entries)

    def _write_entries(self, entries: list[Any]) -> None:
        payload = json.dumps(
            [entry.to_dict() if isinstance(entry, Session) else entry for entry in entries],
            ensure_ascii=False,
        )
        self.storage.set(self.storage_key, payload)
