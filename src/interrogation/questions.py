"""
Question generation for elaborative interrogation.

Every session asks the same five archetypes in a fixed order:
- why: relevance of the term in its context
- explain: teach it to a ten-year-old
- connection: relate it to known concepts
- what-if: consequences of its absence
- how: practical application

Each question carries hints and a rubric. Rubric criteria are tagged with a
CriterionKind so the evaluator never has to parse the label text.
"""

from __future__ import annotations

import time

from .models import Criterion, CriterionKind, Question, QuestionType


# =============================================================================
# Question Templates
# =============================================================================

QUESTION_TEMPLATES: dict[QuestionType, dict] = {
    QuestionType.WHY: {
        "question": 'Warum ist "{word}" in diesem Kontext wichtig?',
        "hints": (
            "Denke an die praktische Bedeutung",
            "Welche Rolle spielt es im größeren Zusammenhang?",
            "Was wäre anders ohne dieses Konzept?",
        ),
        "criteria": (
            Criterion("Nennt praktische Bedeutung", CriterionKind.PRACTICAL),
            Criterion("Erklärt Kontext und Zusammenhänge", CriterionKind.CONNECTIONS),
            Criterion("Zeigt Verständnis für Relevanz", CriterionKind.MANUAL),
            Criterion("Mindestens 20 Wörter Länge", CriterionKind.MIN_LENGTH),
        ),
    },
    QuestionType.EXPLAIN: {
        "question": 'Erkläre "{word}" so, als würdest du es einem 10-Jährigen beibringen.',
        "hints": (
            "Verwende einfache Sprache",
            "Nutze Beispiele aus dem Alltag",
            "Vermeide Fachbegriffe oder erkläre sie",
        ),
        "criteria": (
            Criterion("Verwendet einfache, verständliche Sprache", CriterionKind.SIMPLE_LANGUAGE),
            Criterion("Enthält mindestens ein konkretes Beispiel", CriterionKind.EXAMPLE),
            Criterion("Baut logisch aufeinander auf", CriterionKind.MANUAL),
            Criterion("Vermeidet unnötige Fachbegriffe", CriterionKind.MANUAL),
        ),
    },
    QuestionType.CONNECTION: {
        "question": 'Wie hängt "{word}" mit anderen Konzepten zusammen, die du kennst?',
        "hints": (
            "Denke an ähnliche Konzepte",
            "Überlege, wo du es schon gesehen hast",
            "Finde Verbindungen zu anderen Bereichen",
        ),
        "criteria": (
            Criterion("Nennt mindestens zwei Verbindungen", CriterionKind.MULTIPLE_POINTS),
            Criterion("Erklärt die Art der Verbindung", CriterionKind.MANUAL),
            Criterion("Zeigt interdisziplinäres Denken", CriterionKind.MANUAL),
            Criterion("Erkennt Muster und Analogien", CriterionKind.MANUAL),
        ),
    },
    QuestionType.WHAT_IF: {
        "question": (
            'Was wäre, wenn "{word}" nicht existieren würde? '
            "Welche Auswirkungen hätte das?"
        ),
        "hints": (
            "Stelle dir verschiedene Szenarien vor",
            "Denke an direkte und indirekte Folgen",
            "Betrachte verschiedene Perspektiven",
        ),
        "criteria": (
            Criterion("Nennt mindestens zwei Auswirkungen", CriterionKind.MULTIPLE_POINTS),
            Criterion("Zeigt logisches Denken", CriterionKind.MANUAL),
            Criterion("Betrachtet verschiedene Perspektiven", CriterionKind.MANUAL),
            Criterion("Erkennt Zusammenhänge", CriterionKind.CONNECTIONS),
        ),
    },
    QuestionType.HOW: {
        "question": 'Wie kannst du "{word}" in der Praxis anwenden oder nutzen?',
        "hints": (
            "Denke an konkrete Situationen",
            "Überlege, wo es nützlich sein könnte",
            "Finde eigene Anwendungsbeispiele",
        ),
        "criteria": (
            Criterion("Nennt praktische Anwendungen", CriterionKind.PRACTICAL),
            Criterion("Gibt konkrete Beispiele", CriterionKind.EXAMPLE),
            Criterion("Zeigt Übertragbarkeit des Wissens", CriterionKind.MANUAL),
            Criterion("Denkt kreativ über Nutzung nach", CriterionKind.MANUAL),
        ),
    },
}

# Built-in rubric label -> kind, used to classify records stored without kinds
CRITERION_CATALOG: dict[str, CriterionKind] = {
    criterion.label: criterion.kind
    for template in QUESTION_TEMPLATES.values()
    for criterion in template["criteria"]
}


def generate_questions(
    word: str,
    explanation: str,
    stamp: int | None = None,
) -> list[Question]:
    """
    Build the five interrogation questions for a term.

    Args:
        word: The learned term; it appears in every question text
        explanation: The learner's explanation, attached as context
        stamp: Millisecond timestamp embedded in the question ids

    Returns:
        Questions ordered why, explain, connection, what-if, how
    """
    if not word or not word.strip():
        raise ValueError("word must not be empty")

    if stamp is None:
        stamp = int(time.time() * 1000)

    questions = []
    for position, (question_type, template) in enumerate(QUESTION_TEMPLATES.items(), start=1):
        questions.append(
            Question(
                id=f"{question_type.value}-{stamp}-{position}",
                type=question_type,
                question_text=template["question"].format(word=word),
                context=explanation,
                hints=template["hints"],
                criteria=template["criteria"],
            )
        )
    return questions
