"""
Typer CLI for quizbank.

Commands:
    quizbank template               - Write the CSV authoring template
    quizbank import-csv FILE        - Import questions from a CSV file
    quizbank export QUIZ_ID         - Export a quiz to Moodle XML or CSV
    quizbank validate-xml FILE      - Shape-check a Moodle XML file
    quizbank list                   - List saved quizzes
    quizbank stats                  - Show store statistics

Usage:
    quizbank --help
    quizbank template -o questions.csv
    quizbank import-csv questions.csv --quiz "Géographie"
    quizbank export 1700000000000-abc123def --format xml
"""

from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..codecs.csv_codec import csv_template, from_csv, quiz_to_csv, template_to_csv
from ..codecs.xml_codec import quiz_export_filename, to_xml, validate_xml
from ..config import get_settings
from ..errors import QuizbankError
from ..model.types import Quiz
from ..store import JsonFileQuizRepository, QuizEditor
from ..validation import ValidationIssue, errors_only, validate_question

app = typer.Typer(
    help="quizbank: author quizzes in CSV and export them to Moodle XML",
    no_args_is_help=True,
)

console = Console()


class ExportFormat(str, Enum):
    XML = "xml"
    CSV = "csv"


# =============================================================================
# Helpers
# =============================================================================


def _repository() -> JsonFileQuizRepository:
    return JsonFileQuizRepository(get_settings().store_path)


def _fail(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(1)


def _issues_table(title: str, issues: list[ValidationIssue]) -> Table:
    table = Table(title=title)
    table.add_column("Severity", style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Message")
    for issue in issues:
        style = "red" if issue.is_error else "yellow"
        table.add_row(f"[{style}]{issue.severity.value}[/{style}]", issue.field, issue.message)
    return table


def _find_quiz(quizzes: list[Quiz], name: str) -> Quiz | None:
    """Match a quiz by id first, then by exact name."""
    for quiz in quizzes:
        if quiz.id == name:
            return quiz
    return next((quiz for quiz in quizzes if quiz.name == name), None)


# =============================================================================
# Commands
# =============================================================================


@app.command("template")
def template(
    output: Path = typer.Option(Path("quiz_template.csv"), "--output", "-o", help="Where to write the template"),
) -> None:
    """Write the CSV template (headers and sample rows) and print the instructions."""
    settings = get_settings()
    tpl = csv_template()
    output.write_text(template_to_csv(tpl), encoding=settings.csv_encoding)

    rprint(f"[green]✓[/green] Template written to {output}")
    console.print(tpl.instructions)


@app.command("import-csv")
def import_csv(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file to import"),
    quiz_name: str = typer.Option(None, "--quiz", "-q", help="Target quiz (id or name); created when missing"),
) -> None:
    """Import questions from a CSV file into a saved quiz."""
    settings = get_settings()

    try:
        text = file.read_text(encoding=settings.csv_encoding)
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Cannot read {file}: {e}")

    result = from_csv(text)

    if result.errors:
        console.print(_issues_table("Errors", result.errors))
    if result.warnings:
        console.print(_issues_table("Warnings", result.warnings))

    if not result.questions:
        _fail("No question imported")

    repository = _repository()
    editor = QuizEditor(repository)
    name = quiz_name or file.stem

    try:
        existing = _find_quiz(repository.get_quizzes(), name)
        if existing is not None:
            quiz = editor.load_quiz(existing.id)
        else:
            quiz = editor.create_quiz(name, category=settings.default_category)
        for question in result.questions:
            editor.add_question(question)
    except QuizbankError as e:
        _fail(str(e))

    status = "[green]✓[/green]" if result.success else "[yellow]![/yellow]"
    rprint(
        f"{status} Imported {len(result.questions)} question(s) into "
        f"[bold]{quiz.name}[/bold] ({quiz.id})"
    )
    if result.partial_success:
        rprint(f"[yellow]{len(result.errors)} row error(s) were skipped[/yellow]")


@app.command("export")
def export(
    quiz_id: str = typer.Argument(..., help="Quiz id (see 'quizbank list')"),
    fmt: ExportFormat = typer.Option(ExportFormat.XML, "--format", "-f", help="Export format"),
    output: Path = typer.Option(None, "--output", "-o", help="Output file (defaults to a name derived from the quiz)"),
) -> None:
    """Export a quiz to Moodle XML or CSV."""
    settings = get_settings()
    quiz = _repository().get_quiz(quiz_id)
    if quiz is None:
        _fail(f"Quiz not found: {quiz_id}")

    blocking: list[ValidationIssue] = []
    for question in quiz.questions:
        for issue in errors_only(validate_question(question)):
            blocking.append(ValidationIssue(f"{question.title or question.id}, {issue.field}", issue.message))
    if blocking:
        console.print(_issues_table("Invalid questions", blocking))
        _fail("Fix the questions above before exporting")

    output = output or Path(quiz_export_filename(quiz, fmt.value))
    if fmt is ExportFormat.XML:
        output.write_text(to_xml(quiz), encoding="utf-8")
    else:
        output.write_text(quiz_to_csv(quiz), encoding=settings.csv_encoding)

    rprint(f"[green]✓[/green] Exported {len(quiz.questions)} question(s) to {output}")


@app.command("validate-xml")
def validate_xml_file(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Moodle XML file"),
) -> None:
    """Check the shape of a Moodle XML file."""
    result = validate_xml(file.read_text(encoding="utf-8"))
    if not result.valid:
        for error in result.errors:
            console.print(f"  [red]•[/red] {error}")
        _fail(f"{file} is not a valid Moodle XML file")

    rprint(f"[green]✓[/green] Valid Moodle XML: {file}")


@app.command("list")
def list_quizzes() -> None:
    """List saved quizzes."""
    quizzes = _repository().get_quizzes()
    if not quizzes:
        rprint("[dim]No quiz saved yet[/dim]")
        return

    table = Table(title="Quizzes")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Questions", justify="right")
    table.add_column("Modified")

    for quiz in quizzes:
        table.add_row(
            quiz.id,
            quiz.name,
            quiz.category,
            str(len(quiz.questions)),
            quiz.modified.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command("stats")
def stats() -> None:
    """Show store statistics."""
    repository = _repository()
    store_stats = repository.get_stats()

    table = Table(title=f"Store: {repository.path}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Quizzes", str(store_stats.total_quizzes))
    table.add_row("Questions", str(store_stats.total_questions))
    for question_type, count in sorted(store_stats.question_types.items()):
        table.add_row(f"  {question_type}", str(count))
    table.add_row("Storage size", f"{store_stats.storage_size} bytes")

    console.print(table)


@app.command("version")
def version() -> None:
    """Show version information."""
    rprint(f"[bold]quizbank[/bold] v{__version__}")


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
