"""
Domain records for elaborative interrogation sessions.

All records serialize to the camelCase JSON shape that is persisted as a
single array under one storage key. Keep ``to_dict``/``from_dict`` in sync
with that shape: existing stored data must keep loading.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class QuestionType(str, Enum):
    """The five question archetypes, in their fixed session order."""
    WHY = "why"
    EXPLAIN = "explain"
    CONNECTION = "connection"
    WHAT_IF = "what-if"
    HOW = "how"


QUESTION_TYPE_ORDER: tuple[QuestionType, ...] = tuple(QuestionType)


class CriterionKind(str, Enum):
    """Which heuristic scores a rubric criterion."""
    MIN_LENGTH = "min-length"
    SIMPLE_LANGUAGE = "simple-language"
    EXAMPLE = "example"
    MULTIPLE_POINTS = "multiple-points"
    CONNECTIONS = "connections"
    PRACTICAL = "practical"
    MANUAL = "manual"  # no automatic check

    @classmethod
    def from_label(cls, label: str) -> "CriterionKind":
        """
        Infer the kind of a criterion stored without one.

        Older records only carry the rubric label, so the kind is
        recovered from the recognizable fragments of that label.
        """
        from .questions import CRITERION_CATALOG

        if label in CRITERION_CATALOG:
            return CRITERION_CATALOG[label]
        for fragment, kind in _LABEL_FRAGMENTS:
            if fragment in label:
                return kind
        return cls.MANUAL


_LABEL_FRAGMENTS: tuple[tuple[str, CriterionKind], ...] = (
    ("Mindestens 20 Wörter", CriterionKind.MIN_LENGTH),
    ("einfache Sprache", CriterionKind.SIMPLE_LANGUAGE),
    ("Beispiel", CriterionKind.EXAMPLE),
    ("mindestens zwei", CriterionKind.MULTIPLE_POINTS),
    ("Zusammenhänge", CriterionKind.CONNECTIONS),
    ("praktische", CriterionKind.PRACTICAL),
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def round_half_up(value: float) -> int:
    """Round halves toward positive infinity, matching previously stored scores."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Criterion:
    """A rubric check: the label shown to the learner and the heuristic kind."""
    label: str
    kind: CriterionKind


@dataclass(frozen=True)
class Question:
    """A generated probing question. Immutable once generated."""
    id: str
    type: QuestionType
    question_text: str
    context: str
    hints: tuple[str, ...] = ()
    criteria: tuple[Criterion, ...] = ()

    @property
    def evaluation_criteria(self) -> list[str]:
        return [criterion.label for criterion in self.criteria]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "question": self.question_text,
            "context": self.context,
            "hints": list(self.hints),
            "evaluationCriteria": self.evaluation_criteria,
            "criterionKinds": [criterion.kind.value for criterion in self.criteria],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        labels = list(data.get("evaluationCriteria") or [])
        kinds = data.get("criterionKinds")
        if kinds and len(kinds) == len(labels):
            criteria = tuple(
                Criterion(label=label, kind=CriterionKind(kind))
                for label, kind in zip(labels, kinds)
            )
        else:
            criteria = tuple(
                Criterion(label=label, kind=CriterionKind.from_label(label))
                for label in labels
            )

        return cls(
            id=data["id"],
            type=QuestionType(data["type"]),
            question_text=data.get("question", data.get("questionText", "")),
            context=data.get("context", ""),
            hints=tuple(data.get("hints") or ()),
            criteria=criteria,
        )


@dataclass
class Evaluation:
    """Score and feedback for one response."""
    score: int
    feedback: str
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    criteria_matched: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "feedback": self.feedback,
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "criteriaMatched": list(self.criteria_matched),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Evaluation":
        return cls(
            score=int(data["score"]),
            feedback=data.get("feedback", ""),
            strengths=list(data.get("strengths") or []),
            improvements=list(data.get("improvements") or []),
            criteria_matched=list(data.get("criteriaMatched") or []),
        )


@dataclass
class Session:
    """One interrogation attempt about a single word/explanation pair."""
    id: str
    word: str
    explanation: str
    start_time: str  # ISO format
    questions: list[Question]
    responses: dict[str, str] = field(default_factory=dict)
    evaluations: dict[str, Evaluation] = field(default_factory=dict)
    overall_score: int = 0
    completed: bool = False
    end_time: str | None = None  # ISO format

    @property
    def answered_count(self) -> int:
        return len(self.responses)

    @property
    def started_at(self) -> datetime:
        return parse_timestamp(self.start_time)

    def get_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "word": self.word,
            "explanation": self.explanation,
            "startTime": self.start_time,
            "questions": [question.to_dict() for question in self.questions],
            "responses": dict(self.responses),
            "evaluations": {
                question_id: evaluation.to_dict()
                for question_id, evaluation in self.evaluations.items()
            },
            "overallScore": self.overall_score,
            "completed": self.completed,
        }
        if self.end_time is not None:
            data["endTime"] = self.end_time
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        start_time = data["startTime"]
        # rejects records whose start time cannot be ordered
        parse_timestamp(start_time)

        return cls(
            id=data["id"],
            word=data["word"],
            explanation=data.get("explanation", ""),
            start_time=start_time,
            end_time=data.get("endTime"),
            questions=[Question.from_dict(q) for q in data.get("questions") or []],
            responses=dict(data.get("responses") or {}),
            evaluations={
                question_id: Evaluation.from_dict(evaluation)
                for question_id, evaluation in (data.get("evaluations") or {}).items()
            },
            overall_score=int(data.get("overallScore", 0)),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class QuestionTypeStats:
    """Aggregated evaluation scores for one archetype."""
    average_score: int = 0
    count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"averageScore": self.average_score, "count": self.count}


@dataclass
class Statistics:
    """Cross-session metrics over completed sessions."""
    total_sessions: int = 0
    average_score: int = 0
    questions_answered: int = 0
    strongest_question_type: str = "none"
    weakest_question_type: str = "none"
    improvement_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSessions": self.total_sessions,
            "averageScore": self.average_score,
            "questionsAnswered": self.questions_answered,
            "strongestQuestionType": self.strongest_question_type,
            "weakestQuestionType": self.weakest_question_type,
            "improvementRate": self.improvement_rate,
        }
