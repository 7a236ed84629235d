"""
Response evaluation: heuristic rubric scoring of free-text answers.

No language understanding happens here. Each criterion kind maps to a
length threshold, a keyword pattern, or a clause count, and the score is
the share of criteria that pass.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import CriterionKind, Evaluation, Question, round_half_up


# =============================================================================
# Keyword Patterns (re.VERBOSE for readability)
# =============================================================================

EXAMPLE_PATTERN = re.compile(r"""
    \b (?: zum \s+ Beispiel
         | beispielsweise
         | z\.B\.
         | etwa
         | wie
         | ist
    ) \b
""", re.VERBOSE | re.IGNORECASE)

ENUMERATION_PATTERN = re.compile(r"""
    \b (?: erstens | zweitens | außerdem | zudem | auch | und ) \b
""", re.VERBOSE | re.IGNORECASE)

CAUSAL_PATTERN = re.compile(r"""
    \b (?: weil | da | denn | deshalb | daher | dadurch
         | führt \s+ zu
         | bewirkt
         | hängt \s+ zusammen
         | zeigt
         | erklärt
    ) \b
""", re.VERBOSE | re.IGNORECASE)

PRACTICAL_PATTERN = re.compile(r"""
    \b (?: nutzen | verwenden | anwenden | einsetzen
         | praktisch | Praxis | Alltag | Beispiel
    ) \b
""", re.VERBOSE | re.IGNORECASE)

CLAUSE_SEPARATORS = re.compile(r"[.,;]")


# =============================================================================
# Thresholds and Messages
# =============================================================================

DETAILED_WORD_COUNT = 20      # "Mindestens 20 Wörter"
SIMPLE_LANGUAGE_WORD_COUNT = 10
ELABORATE_WORD_COUNT = 15     # long answers pass the keyword criteria
MIN_CLAUSES = 3

STRENGTHS: dict[CriterionKind, str] = {
    CriterionKind.MIN_LENGTH: "Ausführliche Antwort mit ausreichender Länge",
    CriterionKind.SIMPLE_LANGUAGE: "Verwendet verständliche Sprache",
    CriterionKind.EXAMPLE: "Enthält konkrete Beispiele",
    CriterionKind.MULTIPLE_POINTS: "Nennt mehrere Punkte oder Aspekte",
    CriterionKind.CONNECTIONS: "Erklärt Zusammenhänge und Ursachen",
    CriterionKind.PRACTICAL: "Bezieht praktische Anwendung mit ein",
}

# Kinds without an entry fail silently
IMPROVEMENTS: dict[CriterionKind, str] = {
    CriterionKind.MIN_LENGTH: (
        "Versuche, deine Antwort ausführlicher zu formulieren (mindestens 20 Wörter)"
    ),
    CriterionKind.EXAMPLE: (
        "Versuche, deine Erklärung mit konkreten Beispielen zu unterstützen"
    ),
    CriterionKind.MULTIPLE_POINTS: "Versuche, mehrere Aspekte oder Punkte zu nennen",
}

GENERAL_IMPROVEMENTS = (
    "Überlege dir mehr Zeit für die Antwort zu nehmen",
    "Versuche, tiefer in das Thema einzusteigen",
    "Nutze die Hinweise, um deine Antwort zu verbessern",
)

# (minimum score, feedback), checked top-down
FEEDBACK_BANDS: tuple[tuple[int, str], ...] = (
    (80, "Ausgezeichnete Antwort! Du zeigst ein tiefes Verständnis des Konzepts."),
    (
        60,
        "Gute Antwort! Du hast die wichtigsten Punkte erfasst. "
        "Mit etwas mehr Detail wäre es perfekt.",
    ),
    (
        40,
        "Solide Basis! Versuche, deine Antwort noch ausführlicher zu gestalten "
        "und mehr Zusammenhänge zu erklären.",
    ),
    (
        0,
        "Das ist ein guter Anfang. Nimm dir mehr Zeit, über das Konzept "
        "nachzudenken und es ausführlicher zu erklären.",
    ),
)

LOW_SCORE_THRESHOLD = 60


def count_words(response: str) -> int:
    """Whitespace-delimited tokens; blank input counts as zero words."""
    return len(response.split())


def check_criterion(kind: CriterionKind, response: str, word_count: int) -> bool:
    """Apply the heuristic for one criterion kind."""
    if kind is CriterionKind.MIN_LENGTH:
        return word_count >= DETAILED_WORD_COUNT
    if kind is CriterionKind.SIMPLE_LANGUAGE:
        return word_count >= SIMPLE_LANGUAGE_WORD_COUNT
    if kind is CriterionKind.EXAMPLE:
        return bool(EXAMPLE_PATTERN.search(response)) or word_count >= ELABORATE_WORD_COUNT
    if kind is CriterionKind.MULTIPLE_POINTS:
        return (
            bool(ENUMERATION_PATTERN.search(response))
            or len(CLAUSE_SEPARATORS.split(response)) >= MIN_CLAUSES
        )
    if kind is CriterionKind.CONNECTIONS:
        return bool(CAUSAL_PATTERN.search(response)) or word_count >= ELABORATE_WORD_COUNT
    if kind is CriterionKind.PRACTICAL:
        return bool(PRACTICAL_PATTERN.search(response)) or word_count >= ELABORATE_WORD_COUNT
    return False


def feedback_for(score: int) -> str:
    for minimum, message in FEEDBACK_BANDS:
        if score >= minimum:
            return message
    return FEEDBACK_BANDS[-1][1]


def evaluate_response(response: str, question: Question) -> Evaluation:
    """
    Score a free-text response against a question's rubric.

    Args:
        response: The learner's answer
        question: The question whose criteria are applied

    Returns:
        Evaluation with score 0-100, feedback band, strengths and improvements
    """
    word_count = count_words(response)

    criteria_matched: list[str] = []
    strengths: list[str] = []
    improvements: list[str] = []

    for criterion in question.criteria:
        if check_criterion(criterion.kind, response, word_count):
            criteria_matched.append(criterion.label)
            strengths.append(STRENGTHS[criterion.kind])
        elif criterion.kind in IMPROVEMENTS:
            improvements.append(IMPROVEMENTS[criterion.kind])

    total = len(question.criteria)
    score = round_half_up(len(criteria_matched) / total * 100) if total else 0

    if score < LOW_SCORE_THRESHOLD and not improvements:
        improvements.extend(GENERAL_IMPROVEMENTS)

    return Evaluation(
        score=score,
        feedback=feedback_for(score),
        strengths=strengths,
        improvements=improvements,
        criteria_matched=criteria_matched,
    )


def calculate_session_score(evaluations: Iterable[Evaluation]) -> int:
    """Rounded mean of evaluation scores, 0 when nothing was evaluated."""
    scores = [evaluation.score for evaluation in evaluations]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))
