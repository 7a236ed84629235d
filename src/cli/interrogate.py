"""
Interrogation CLI - Elaborative interrogation in the terminal.

After learning a term, deepen it by answering five probing questions:
why it matters, how to explain it simply, what it connects to, what would
change without it, and how to apply it.

Usage:
    interrogate start WORD EXPLANATION   # Start an interactive session
    interrogate resume SESSION_ID        # Continue an unfinished session
    interrogate sessions                 # List stored sessions
    interrogate show SESSION_ID          # Inspect answers and feedback
    interrogate complete SESSION_ID      # Finish a session early
    interrogate delete SESSION_ID        # Remove a session
    interrogate stats                    # Cross-session statistics
"""

from __future__ import annotations

import sys
from typing import Annotated

import typer
from loguru import logger
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import get_settings
from src.interrogation import (
    Evaluation,
    FileStorage,
    Question,
    QuestionType,
    Session,
    SessionManager,
    SessionNotFound,
    question_type_stats,
)

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="interrogate",
    help="🧠 Interrogation CLI - Gelerntes durch Fragen vertiefen",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

QUESTION_TYPE_LABELS = {
    QuestionType.WHY: "Warum?",
    QuestionType.EXPLAIN: "Erklären",
    QuestionType.CONNECTION: "Verbindungen",
    QuestionType.WHAT_IF: "Was-wäre-wenn?",
    QuestionType.HOW: "Wie anwenden?",
}

HINT_INPUTS = {"h", "hint"}
PAUSE_INPUTS = {"q", "quit"}


def get_manager() -> SessionManager:
    """Build a session manager on the configured file store."""
    settings = get_settings()
    return SessionManager(
        FileStorage(settings.storage_dir),
        storage_key=settings.storage_key,
    )


def score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "blue"
    if score >= 40:
        return "yellow"
    return "red"


def type_label(question_type: str) -> str:
    try:
        return QUESTION_TYPE_LABELS[QuestionType(question_type)]
    except ValueError:
        return "Keine" if question_type == "none" else question_type


# =============================================================================
# Rendering
# =============================================================================


def render_question(question: Question, position: int, total: int, progress: int) -> None:
    console.print(
        Panel(
            f"[bold]{question.question_text}[/bold]\n\n"
            f"[dim]Kontext: {question.context}[/dim]",
            title=f"[bold cyan]{type_label(question.type.value)}[/bold cyan]",
            subtitle=f"Frage {position}/{total} · {progress}%",
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        )
    )


def render_evaluation(evaluation: Evaluation) -> None:
    style = score_style(evaluation.score)
    lines = [f"[bold {style}]{evaluation.score}/100[/]", "", evaluation.feedback]

    if evaluation.strengths:
        lines.append("")
        lines.append("[green]Stärken:[/green]")
        lines.extend(f"  ✓ {strength}" for strength in evaluation.strengths)
    if evaluation.improvements:
        lines.append("")
        lines.append("[yellow]Verbesserungen:[/yellow]")
        lines.extend(f"  → {improvement}" for improvement in evaluation.improvements)

    console.print(Panel("\n".join(lines), title="Bewertung", border_style=style))


def ask_response(question: Question) -> str | None:
    """Prompt for an answer. Returns None when the learner pauses."""
    console.print("[dim]Antwort eingeben. 'h'=Hinweis, 'q'=pausieren[/dim]")

    hint_count = 0
    while True:
        user_input = Prompt.ask("[cyan]>[/cyan]").strip()

        if user_input.lower() in PAUSE_INPUTS:
            return None

        if user_input.lower() in HINT_INPUTS:
            if hint_count < len(question.hints):
                console.print(f"[yellow]Hinweis {hint_count + 1}:[/yellow] {question.hints[hint_count]}")
                hint_count += 1
            else:
                console.print("[dim]Keine weiteren Hinweise[/dim]")
            continue

        if not user_input:
            continue

        return user_input


def run_session(manager: SessionManager, session: Session) -> None:
    """Ask every unanswered question, then complete the session."""
    total = len(session.questions)

    while True:
        question = manager.get_next_unanswered_question(session.id)
        if question is None:
            break

        position = session.questions.index(question) + 1
        render_question(question, position, total, manager.get_session_progress(session.id))

        response = ask_response(question)
        if response is None:
            console.print(f"[yellow]Pausiert. Fortsetzen mit: interrogate resume {session.id}[/yellow]")
            return

        evaluation = manager.submit_response(session.id, question.id, response)
        render_evaluation(evaluation)

    completed = manager.complete_session(session.id)
    style = score_style(completed.overall_score)
    console.print(
        f"[bold green]Session abgeschlossen![/bold green] "
        f"Gesamtpunktzahl: [{style}]{completed.overall_score}/100[/]"
    )


# =============================================================================
# Session Commands
# =============================================================================


@app.command()
def start(
    word: Annotated[str, typer.Argument(help="Der zu hinterfragende Begriff")],
    explanation: Annotated[str, typer.Argument(help="Deine Erklärung des Begriffs")],
) -> None:
    """
    Neue Session starten und ihre Fragen beantworten.

    Beispiele:
        interrogate start Photosynthese "Pflanzen wandeln Licht in Energie um"
    """
    manager = get_manager()

    try:
        session = manager.start_session(word, explanation)
    except ValueError:
        console.print("[red]Der Begriff darf nicht leer sein.[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[bold cyan]ELABORATIVE INTERROGATION[/]\n"
            f"Begriff: {session.word}\n"
            f"Session: {session.id}",
            title="🧠",
            border_style="cyan",
        )
    )
    run_session(manager, session)


@app.command()
def resume(
    session_id: Annotated[str, typer.Argument(help="Fortzusetzende Session")],
) -> None:
    """Offene Session bei der nächsten unbeantworteten Frage fortsetzen."""
    manager = get_manager()
    session = manager.get_session(session_id)

    if session is None:
        console.print(f"[red]Session nicht gefunden: {session_id}[/red]")
        raise typer.Exit(1)
    if session.completed:
        console.print(f"[yellow]Session {session_id} ist bereits abgeschlossen.[/yellow]")
        raise typer.Exit(0)

    run_session(manager, session)


@app.command()
def sessions(
    word: Annotated[
        str | None, typer.Option("--word", "-w", help="Nur Sessions zu diesem Begriff")
    ] = None,
) -> None:
    """Gespeicherte Sessions auflisten, neueste zuerst."""
    manager = get_manager()
    found = manager.get_sessions_for_word(word) if word else manager.get_all_sessions()

    if not found:
        console.print("[yellow]Noch keine Sessions vorhanden.[/yellow]")
        return

    table = Table(title="📚 Interrogation Sessions")
    table.add_column("Session", style="dim")
    table.add_column("Begriff", style="cyan")
    table.add_column("Gestartet", style="white")
    table.add_column("Fortschritt", justify="right")
    table.add_column("Punktzahl", justify="right")
    table.add_column("Status")

    for session in sorted(found, key=lambda s: s.started_at, reverse=True):
        progress = manager.get_session_progress(session.id)
        if session.completed:
            score = f"[{score_style(session.overall_score)}]{session.overall_score}/100[/]"
            status = "[green]abgeschlossen[/green]"
        else:
            score = "-"
            status = "[yellow]offen[/yellow]"
        table.add_row(
            session.id,
            session.word,
            session.started_at.strftime("%d.%m.%Y %H:%M"),
            f"{progress}%",
            score,
            status,
        )

    console.print(table)


@app.command()
def show(
    session_id: Annotated[str, typer.Argument(help="Anzuzeigende Session")],
) -> None:
    """Fragen, Antworten und Bewertungen einer Session anzeigen."""
    manager = get_manager()
    session = manager.get_session(session_id)

    if session is None:
        console.print(f"[red]Session nicht gefunden: {session_id}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold cyan]{session.word}[/bold cyan] [dim]{session.explanation}[/dim]")
    for question in session.questions:
        response = session.responses.get(question.id)
        evaluation = session.evaluations.get(question.id)

        body = f"[bold]{question.question_text}[/bold]\n\n"
        body += response if response is not None else "[dim]Noch nicht beantwortet[/dim]"
        if evaluation is not None:
            body += f"\n\n[{score_style(evaluation.score)}]{evaluation.score}/100[/] {evaluation.feedback}"

        console.print(Panel(body, title=type_label(question.type.value), border_style="cyan"))

    if session.completed:
        console.print(f"Gesamtpunktzahl: {session.overall_score}/100")


@app.command()
def complete(
    session_id: Annotated[str, typer.Argument(help="Abzuschließende Session")],
) -> None:
    """Session jetzt abschließen, auch mit offenen Fragen."""
    manager = get_manager()

    try:
        session = manager.complete_session(session_id)
    except SessionNotFound as e:
        console.print(f"[red]Session nicht gefunden: {e.session_id}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Session abgeschlossen: {session.overall_score}/100[/green]")


@app.command()
def delete(
    session_id: Annotated[str, typer.Argument(help="Zu löschende Session")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Ohne Rückfrage löschen")] = False,
) -> None:
    """Session löschen."""
    manager = get_manager()

    if manager.get_session(session_id) is None:
        console.print(f"[yellow]Keine Session {session_id}, nichts zu löschen.[/yellow]")
        return

    if not yes and not Confirm.ask(f"Session {session_id} löschen?"):
        raise typer.Exit(0)

    manager.delete_session(session_id)
    console.print(f"[green]Session {session_id} gelöscht.[/green]")


# =============================================================================
# Statistics
# =============================================================================


@app.command()
def stats() -> None:
    """Statistik über abgeschlossene Sessions anzeigen."""
    manager = get_manager()
    statistics = manager.get_statistics()

    if statistics.total_sessions == 0:
        console.print("[yellow]Noch keine abgeschlossenen Sessions.[/yellow]")
        return

    trend_style = "green" if statistics.improvement_rate >= 0 else "red"
    console.print(
        Panel(
            f"Sessions: [bold]{statistics.total_sessions}[/bold]\n"
            f"Ø Punktzahl: [bold]{statistics.average_score}/100[/bold]\n"
            f"Fragen beantwortet: [bold]{statistics.questions_answered}[/bold]\n"
            f"Stärkster Fragetyp: {type_label(statistics.strongest_question_type)}\n"
            f"Schwächster Fragetyp: {type_label(statistics.weakest_question_type)}\n"
            f"Verbesserung: [{trend_style}]{statistics.improvement_rate:+d}%[/]",
            title="📊 Statistik",
            border_style="cyan",
        )
    )

    completed = [s for s in manager.get_all_sessions() if s.completed]
    table = Table(title="Fragetypen")
    table.add_column("Typ", style="cyan")
    table.add_column("Ø Punktzahl", justify="right")
    table.add_column("Antworten", justify="right")

    for question_type, type_stats in question_type_stats(completed).items():
        table.add_row(
            type_label(question_type.value),
            f"{type_stats.average_score}/100" if type_stats.count else "-",
            str(type_stats.count),
        )

    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="5 MB", retention=3)

    app()


if __name__ == "__main__":
    main()
