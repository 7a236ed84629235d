"""
Unit tests for SessionManager.

Tests:
- Session creation, lookup and per-word filtering
- Response submission (overwrite semantics, error cases)
- Completion and overall score
- Progress and next-question queries
- Deletion
- Listener notification
- Persistence format and corrupted payload recovery
"""

import json
from datetime import datetime, timezone

import pytest
from loguru import logger

from src.interrogation import (
    INTERROGATION_STORAGE_KEY,
    InMemoryStorage,
    QuestionNotFound,
    QuestionType,
    SessionManager,
    SessionNotFound,
)
from src.interrogation.models import CriterionKind


def stored_payload(storage: InMemoryStorage) -> list[dict]:
    return json.loads(storage.get(INTERROGATION_STORAGE_KEY))


class TestStartSession:

    def test_start_session(self, manager):
        session = manager.start_session("Photosynthese", "Umwandlung von Lichtenergie")

        assert session.id
        assert session.word == "Photosynthese"
        assert session.explanation == "Umwandlung von Lichtenergie"
        assert len(session.questions) == 5
        assert session.responses == {}
        assert session.evaluations == {}
        assert session.completed is False
        assert session.end_time is None

    def test_start_time_from_clock(self, manager):
        session = manager.start_session("Test", "Erklärung")
        assert session.start_time == "2024-01-01T10:00:00.000Z"

    def test_session_is_persisted(self, manager):
        session = manager.start_session("Test", "Test explanation")
        sessions = manager.get_all_sessions()

        assert len(sessions) == 1
        assert sessions[0].id == session.id

    def test_ids_unique_within_same_millisecond(self, storage):
        frozen = datetime(2024, 1, 1, tzinfo=timezone.utc)
        manager = SessionManager(storage, clock=lambda: frozen)

        first = manager.start_session("A", "a")
        second = manager.start_session("B", "b")

        assert first.id != second.id
        assert len(manager.get_all_sessions()) == 2

    def test_get_session(self, manager):
        session = manager.start_session("Test", "Test explanation")
        retrieved = manager.get_session(session.id)

        assert retrieved is not None
        assert retrieved.id == session.id
        assert retrieved.questions == session.questions

    def test_get_missing_session(self, manager):
        assert manager.get_session("non-existent") is None

    def test_sessions_for_word_ignore_case(self, manager):
        manager.start_session("Word1", "Explanation1")
        manager.start_session("Word2", "Explanation2")
        manager.start_session("word1", "Explanation3")

        assert len(manager.get_sessions_for_word("WORD1")) == 2
        assert manager.get_sessions_for_word("Word") == []


class TestSubmitResponse:

    def test_submit_and_evaluate(self, manager, detailed_answer):
        session = manager.start_session("Photosynthese", "Test")
        question = session.questions[0]

        evaluation = manager.submit_response(session.id, question.id, detailed_answer)

        assert evaluation.score == 75
        assert evaluation.feedback

    def test_response_saved(self, manager):
        session = manager.start_session("Test", "Test explanation")
        question = session.questions[0]

        manager.submit_response(session.id, question.id, "Test response")

        updated = manager.get_session(session.id)
        assert updated.responses[question.id] == "Test response"
        assert question.id in updated.evaluations

    def test_resubmission_overwrites(self, manager, detailed_answer):
        session = manager.start_session("Photosynthese", "Test")
        question = session.questions[0]

        manager.submit_response(session.id, question.id, "Kurz.")
        manager.submit_response(session.id, question.id, detailed_answer)

        updated = manager.get_session(session.id)
        assert len(updated.responses) == 1
        assert len(updated.evaluations) == 1
        assert updated.responses[question.id] == detailed_answer
        assert updated.evaluations[question.id].score == 75

    def test_unknown_session(self, manager):
        with pytest.raises(SessionNotFound, match="Session not found"):
            manager.submit_response("non-existent", "q1", "response")

    def test_unknown_question(self, manager):
        session = manager.start_session("Test", "Test explanation")

        with pytest.raises(QuestionNotFound, match="Question not found") as exc_info:
            manager.submit_response(session.id, "non-existent", "response")

        assert exc_info.value.question_id == "non-existent"
        assert manager.get_session(session.id).responses == {}

    def test_allowed_after_completion(self, manager):
        session = manager.start_session("Test", "Erklärung")
        manager.complete_session(session.id)

        manager.submit_response(session.id, session.questions[0].id, "Antwort")

        updated = manager.get_session(session.id)
        assert updated.completed is True
        assert session.questions[0].id in updated.responses


class TestCompleteSession:

    def test_complete_session(self, manager):
        session = manager.start_session("Test", "Test explanation")
        for question in session.questions:
            manager.submit_response(
                session.id,
                question.id,
                "Dies ist eine ausführliche Testantwort mit genügend Wörtern.",
            )

        completed = manager.complete_session(session.id)

        assert completed.completed is True
        assert completed.end_time
        assert completed.overall_score > 0
        assert manager.get_session(session.id).completed is True

    def test_overall_score_is_rounded_mean(self, storage, manager):
        session = manager.start_session("Test", "Erklärung")
        payload = stored_payload(storage)
        for question, score in zip(payload[0]["questions"], (80, 60, 90)):
            payload[0]["evaluations"][question["id"]] = {
                "score": score,
                "feedback": "",
                "strengths": [],
                "improvements": [],
                "criteriaMatched": [],
            }
        storage.set(INTERROGATION_STORAGE_KEY, json.dumps(payload))

        completed = manager.complete_session(session.id)

        assert completed.overall_score == 77

    def test_complete_without_answers(self, manager):
        session = manager.start_session("Test", "Erklärung")

        completed = manager.complete_session(session.id)

        assert completed.completed is True
        assert completed.overall_score == 0

    def test_unknown_session(self, manager):
        with pytest.raises(SessionNotFound, match="Session not found"):
            manager.complete_session("non-existent")


class TestProgress:

    def test_two_of_five_is_forty_percent(self, manager):
        session = manager.start_session("Test", "Test explanation")

        manager.submit_response(session.id, session.questions[0].id, "Answer 1")
        manager.submit_response(session.id, session.questions[1].id, "Answer 2")

        assert manager.get_session_progress(session.id) == 40

    def test_no_responses(self, manager):
        session = manager.start_session("Test", "Test explanation")
        assert manager.get_session_progress(session.id) == 0

    def test_missing_session(self, manager):
        assert manager.get_session_progress("non-existent") == 0

    def test_session_without_questions(self, storage, manager):
        session = manager.start_session("Test", "Erklärung")
        payload = stored_payload(storage)
        payload[0]["questions"] = []
        storage.set(INTERROGATION_STORAGE_KEY, json.dumps(payload))

        assert manager.get_session_progress(session.id) == 0

    def test_next_unanswered_question(self, manager):
        session = manager.start_session("Test", "Test explanation")
        manager.submit_response(session.id, session.questions[0].id, "Answer 1")

        next_question = manager.get_next_unanswered_question(session.id)

        assert next_question is not None
        assert next_question.id == session.questions[1].id

    def test_next_question_keeps_fixed_order(self, manager):
        session = manager.start_session("Test", "Test explanation")
        manager.submit_response(session.id, session.questions[3].id, "Answer")

        assert manager.get_next_unanswered_question(session.id).type is QuestionType.WHY

    def test_all_answered(self, manager):
        session = manager.start_session("Test", "Test explanation")
        for question in session.questions:
            manager.submit_response(session.id, question.id, "Answer")

        assert manager.get_next_unanswered_question(session.id) is None
        assert manager.get_session_progress(session.id) == 100
        assert manager.get_session(session.id).completed is False

    def test_next_question_missing_session(self, manager):
        assert manager.get_next_unanswered_question("non-existent") is None


class TestDeleteSession:

    def test_delete(self, manager):
        session = manager.start_session("Test", "Test explanation")
        other = manager.start_session("Other", "Explanation")

        manager.delete_session(session.id)

        assert manager.get_session(session.id) is None
        assert [s.id for s in manager.get_all_sessions()] == [other.id]

    def test_delete_missing_is_noop(self, manager):
        manager.start_session("Test", "Test explanation")

        manager.delete_session("non-existent")

        assert len(manager.get_all_sessions()) == 1


class TestListeners:

    def test_notified_on_every_mutation(self, manager):
        calls = []
        manager.add_listener(lambda: calls.append(1))

        session = manager.start_session("Test", "Test explanation")
        assert len(calls) == 1

        manager.submit_response(session.id, session.questions[0].id, "Response")
        assert len(calls) == 2

        manager.complete_session(session.id)
        assert len(calls) == 3

        manager.delete_session(session.id)
        assert len(calls) == 4

    def test_not_notified_on_failed_mutation(self, manager):
        calls = []
        manager.add_listener(lambda: calls.append(1))

        with pytest.raises(SessionNotFound):
            manager.complete_session("non-existent")

        assert calls == []

    def test_registration_order(self, manager):
        order = []
        manager.add_listener(lambda: order.append("first"))
        manager.add_listener(lambda: order.append("second"))

        manager.start_session("Test", "Erklärung")

        assert order == ["first", "second"]

    def test_notified_after_write(self, manager):
        seen = []
        manager.add_listener(lambda: seen.append(len(manager.get_all_sessions())))

        manager.start_session("Test", "Erklärung")

        assert seen == [1]

    def test_remove_listener(self, manager):
        calls = []

        def listener():
            calls.append(1)

        manager.add_listener(listener)
        manager.remove_listener(listener)
        manager.start_session("Test", "Test explanation")

        assert calls == []

    def test_removal_during_notification_uses_snapshot(self, manager):
        calls = []

        def second():
            calls.append("second")

        def first():
            calls.append("first")
            manager.remove_listener(second)

        manager.add_listener(first)
        manager.add_listener(second)

        manager.start_session("A", "a")
        manager.start_session("B", "b")

        assert calls == ["first", "second", "first"]


class TestPersistence:

    def test_persisted_shape(self, storage, manager):
        session = manager.start_session("Test", "Erklärung")
        manager.submit_response(session.id, session.questions[0].id, "Antwort")

        record = stored_payload(storage)[0]

        assert record["id"] == session.id
        assert record["startTime"] == session.start_time
        assert "endTime" not in record
        assert record["overallScore"] == 0
        assert record["completed"] is False
        assert record["questions"][0]["type"] == "why"
        assert "Test" in record["questions"][0]["question"]
        assert record["questions"][0]["evaluationCriteria"]
        assert set(record["evaluations"][session.questions[0].id]) == {
            "score",
            "feedback",
            "strengths",
            "improvements",
            "criteriaMatched",
        }

        manager.complete_session(session.id)
        assert "endTime" in stored_payload(storage)[0]

    def test_corrupted_payload(self, storage, manager):
        messages = []
        handler_id = logger.add(messages.append, level="WARNING")
        try:
            storage.set(INTERROGATION_STORAGE_KEY, "invalid json")
            assert manager.get_all_sessions() == []
        finally:
            logger.remove(handler_id)

        assert any("Failed to load interrogation sessions" in m for m in messages)

    def test_missing_payload(self, manager):
        assert manager.get_all_sessions() == []

    def test_non_list_payload(self, storage, manager):
        storage.set(INTERROGATION_STORAGE_KEY, json.dumps({"id": "x"}))
        assert manager.get_all_sessions() == []

    def test_undecodable_record_is_skipped(self, storage, manager):
        kept = manager.start_session("Test", "Erklärung")
        payload = stored_payload(storage)
        payload.append({"id": "session-broken", "startTime": "2024-01-01T09:00:00.000Z"})
        storage.set(INTERROGATION_STORAGE_KEY, json.dumps(payload))

        messages = []
        handler_id = logger.add(messages.append, level="WARNING")
        try:
            sessions = manager.get_all_sessions()
        finally:
            logger.remove(handler_id)

        assert [s.id for s in sessions] == [kept.id]
        assert any("Skipping unreadable interrogation session at index 1" in m for m in messages)

    @pytest.mark.parametrize(
        "broken",
        [
            {"id": "session-broken", "startTime": "2024-01-01T09:00:00.000Z"},
            {"id": "session-broken", "word": "Alt", "startTime": "garbage"},
            {
                "id": "session-broken",
                "word": "Alt",
                "startTime": "2024-01-01T09:00:00.000Z",
                "questions": [{"id": "q", "type": "because", "question": "?"}],
            },
            "not a record",
        ],
    )
    def test_mutations_keep_undecodable_records(self, storage, manager, broken):
        first = manager.start_session("Test", "Erklärung")
        payload = stored_payload(storage)
        payload.append(broken)
        storage.set(INTERROGATION_STORAGE_KEY, json.dumps(payload))

        second = manager.start_session("Zweiter", "Erklärung")
        manager.submit_response(first.id, first.questions[0].id, "Antwort")
        manager.delete_session("session-missing")

        stored = stored_payload(storage)
        assert stored[1] == broken
        assert [s.id for s in manager.get_all_sessions()] == [first.id, second.id]

    def test_delete_next_to_undecodable_record(self, storage, manager):
        session = manager.start_session("Test", "Erklärung")
        broken = {"id": "session-broken"}
        storage.set(INTERROGATION_STORAGE_KEY, json.dumps(stored_payload(storage) + [broken]))

        manager.delete_session(session.id)

        assert stored_payload(storage) == [broken]

    def test_legacy_records_keep_scoring(self, storage, manager):
        legacy = [
            {
                "id": "session-1",
                "word": "Test",
                "explanation": "Erklärung",
                "startTime": "2024-01-01T10:00:00.000Z",
                "questions": [
                    {
                        "id": "explain-1-2",
                        "type": "explain",
                        "question": 'Erkläre "Test" so, als würdest du es einem 10-Jährigen beibringen.',
                        "context": "Erklärung",
                        "evaluationCriteria": [
                            "Verwendet einfache, verständliche Sprache",
                            "Enthält mindestens ein konkretes Beispiel",
                        ],
                    }
                ],
                "responses": {},
                "evaluations": {},
                "overallScore": 0,
                "completed": False,
            }
        ]
        storage.set(INTERROGATION_STORAGE_KEY, json.dumps(legacy))

        session = manager.get_session("session-1")
        kinds = [c.kind for c in session.questions[0].criteria]
        evaluation = manager.submit_response(
            "session-1", "explain-1-2", "Eins zwei drei vier fünf sechs sieben acht neun zehn"
        )

        assert kinds == [CriterionKind.SIMPLE_LANGUAGE, CriterionKind.EXAMPLE]
        assert session.questions[0].hints == ()
        assert evaluation.score == 50
        assert stored_payload(storage)[0]["questions"][0]["criterionKinds"] == [
            "simple-language",
            "example",
        ]

    def test_custom_storage_key(self, storage, clock):
        manager = SessionManager(storage, clock=clock, storage_key="custom")
        manager.start_session("Test", "Erklärung")

        assert storage.get("custom") is not None
        assert storage.get(INTERROGATION_STORAGE_KEY) is None
