"""
Interrogation: elaborative interrogation engine.

Learners answer five probing questions about a term they learned; answers
are scored with text heuristics and tracked across sessions.

Components:
- questions: Question generation for the five archetypes
- evaluator: Heuristic rubric scoring of free-text responses
- service: Session lifecycle, persistence and change notification
- statistics: Cross-session metrics (type performance, improvement rate)
- storage: Key-value persistence backends
"""

from .errors import InterrogationError, QuestionNotFound, SessionNotFound
from .evaluator import calculate_session_score, evaluate_response
from .models import (
    Criterion,
    CriterionKind,
    Evaluation,
    Question,
    QuestionType,
    QuestionTypeStats,
    Session,
    Statistics,
)
from .questions import generate_questions
from .service import INTERROGATION_STORAGE_KEY, SessionManager
from .statistics import compute_statistics, improvement_rate, question_type_stats
from .storage import FileStorage, InMemoryStorage, PersistenceCapability

__all__ = [
    "INTERROGATION_STORAGE_KEY",
    "Criterion",
    "CriterionKind",
    "Evaluation",
    "FileStorage",
    "InMemoryStorage",
    "InterrogationError",
    "PersistenceCapability",
    "Question",
    "QuestionNotFound",
    "QuestionType",
    "QuestionTypeStats",
    "Session",
    "SessionManager",
    "SessionNotFound",
    "Statistics",
    "calculate_session_score",
    "compute_statistics",
    "evaluate_response",
    "generate_questions",
    "improvement_rate",
    "question_type_stats",
]
