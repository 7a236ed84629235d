"""
Cross-session statistics for elaborative interrogation.

Only completed sessions count. Besides the headline numbers this computes
per-archetype averages (to name the strongest and weakest question type)
and an improvement rate comparing the earliest and latest sessions.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from .models import (
    QUESTION_TYPE_ORDER,
    QuestionType,
    QuestionTypeStats,
    Session,
    Statistics,
    round_half_up,
)

# Upper bound on sessions per cohort for the improvement rate
MAX_COHORT_SIZE = 5

# Tie-break order when ranking archetypes by average score
RANKING_ORDER: tuple[QuestionType, ...] = (
    QuestionType.WHY,
    QuestionType.HOW,
    QuestionType.WHAT_IF,
    QuestionType.EXPLAIN,
    QuestionType.CONNECTION,
)


def question_type_stats(sessions: Sequence[Session]) -> dict[QuestionType, QuestionTypeStats]:
    """
    Average evaluation score per archetype.

    All five archetypes are present in the result, in session order;
    archetypes without evaluations report average 0 and count 0.
    """
    scores: dict[QuestionType, list[int]] = {qtype: [] for qtype in QUESTION_TYPE_ORDER}

    for session in sessions:
        for question in session.questions:
            evaluation = session.evaluations.get(question.id)
            if evaluation is not None:
                scores[question.type].append(evaluation.score)

    return {
        qtype: QuestionTypeStats(
            average_score=round_half_up(sum(values) / len(values)) if values else 0,
            count=len(values),
        )
        for qtype, values in scores.items()
    }


def improvement_rate(sessions: Sequence[Session]) -> int:
    """
    Percentage change from the earliest cohort's mean score to the latest one's.

    Cohorts hold ceil(n/2) sessions, at most five. With an odd number of
    sessions the two cohorts share the middle session.
    """
    if len(sessions) < 2:
        return 0

    ordered = sorted(sessions, key=lambda s: s.started_at)
    cohort_size = min(MAX_COHORT_SIZE, math.ceil(len(ordered) / 2))
    first_cohort = ordered[:cohort_size]
    last_cohort = ordered[len(ordered) - cohort_size:]

    first_avg = sum(s.overall_score for s in first_cohort) / len(first_cohort)
    last_avg = sum(s.overall_score for s in last_cohort) / len(last_cohort)

    if first_avg == 0:
        return 100 if last_avg > 0 else 0

    return round_half_up((last_avg - first_avg) / first_avg * 100)


def compute_statistics(sessions: Sequence[Session]) -> Statistics:
    """Aggregate statistics over the completed sessions in ``sessions``."""
    completed = [s for s in sessions if s.completed]
    if not completed:
        return Statistics()

    average_score = sum(s.overall_score for s in completed) / len(completed)
    questions_answered = sum(len(s.responses) for s in completed)

    type_stats = question_type_stats(completed)
    ranked = [
        (qtype, type_stats[qtype])
        for qtype in RANKING_ORDER
        if type_stats[qtype].count > 0
    ]
    ranked.sort(key=lambda item: item[1].average_score, reverse=True)

    strongest = ranked[0][0].value if ranked else "none"
    weakest = ranked[-1][0].value if ranked else "none"

    return Statistics(
        total_sessions=len(completed),
        average_score=round_half_up(average_score),
        questions_answered=questions_answered,
        strongest_question_type=strongest,
        weakest_question_type=weakest,
        improvement_rate=improvement_rate(completed),
    )
