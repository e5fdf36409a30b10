"""
Submission Grader CLI Application.

Provides a command-line interface for grading exported submissions
against a question bank and for recording teachers' essay grades.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from submission_grader.config import get_settings
from submission_grader.grading import (
    GradingEngine,
    ManualGradingError,
    apply_essay_grades,
    collect_statistics,
    summarize,
)
from submission_grader.log_config import configure_logging
from submission_grader.models import GradingOutcome, PassStatus, ScoreSummary
from submission_grader.output import AuditTrail, JsonResultStore, ReportFormat, ReportGenerator
from submission_grader.questions import (
    BatchedQuestionLookup,
    InMemoryQuestionStore,
    LoadError,
    QuestionLookupError,
    QuestionValidator,
    load_essay_grades,
    load_question_bank,
    load_report,
    load_submission,
)

# Create Typer app
app = typer.Typer(
    name="submission-grader",
    help="Grade test submissions of multiple-choice and essay questions",
    add_completion=False,
)

console = Console()


@app.callback()
def setup() -> None:
    """Configure logging from settings before any command runs."""
    configure_logging(get_settings().log_level)


@app.command()
def grade(
    questions_file: Annotated[Path, typer.Argument(help="Question bank JSON export")],
    submission_file: Annotated[Path, typer.Argument(help="Submission JSON export")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path for the report"),
    ] = None,
    format: Annotated[
        ReportFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = ReportFormat.JSON,
    store: Annotated[
        Optional[Path],
        typer.Option("--store", help="Directory to store the outcome by submission id"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed output"),
    ] = False,
) -> None:
    """
    Grade a submission against a question bank.

    Multiple-choice questions are graded immediately; essays are left
    pending for manual grading.
    """
    try:
        settings = get_settings()

        questions = load_question_bank(questions_file)
        submission = load_submission(submission_file)

        lookup = BatchedQuestionLookup(InMemoryQuestionStore(questions), settings=settings)
        engine = GradingEngine(lookup, settings)
        outcome, audit = engine.grade(submission)
        summary = engine.summarize(outcome)
        statistics = collect_statistics(outcome)

        _display_results(outcome, summary, verbose)

        if store:
            result_store = JsonResultStore(store)
            result_store.save(submission.id, outcome)
            console.print(f"[green]Outcome stored:[/green] {result_store.path_for(submission.id)}")

        audit_path = AuditTrail(settings.output_directory / "audits").save(audit)
        if verbose:
            console.print(f"[dim]Audit saved to: {audit_path}[/dim]")

        generator = ReportGenerator()
        if output:
            saved_path = generator.save(outcome, output, summary, statistics, audit, format)
            console.print(f"\n[green]Report saved to:[/green] {saved_path}")
        else:
            report = generator.generate(outcome, summary, statistics, audit, format)
            console.print("\n" + report, markup=False, highlight=False, soft_wrap=True)

    except LoadError as e:
        console.print(f"[red]Load Error:[/red] {e}")
        raise typer.Exit(1)
    except QuestionLookupError as e:
        console.print(f"[red]Lookup Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def validate_questions(
    questions_file: Annotated[Path, typer.Argument(help="Question bank JSON export")],
) -> None:
    """
    Validate a question bank without grading anything.

    Reports questions whose correct option is missing or ambiguous.
    """
    try:
        questions = load_question_bank(questions_file)
    except LoadError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    validator = QuestionValidator()
    is_valid, issues = validator.validate_bank(questions)

    table = Table(title="Questions")
    table.add_column("Id", style="cyan")
    table.add_column("Type")
    table.add_column("Points", justify="right")
    table.add_column("Title")

    for question in questions:
        table.add_row(question.id, question.type, str(question.points), question.title[:50])

    console.print(table)

    if is_valid:
        console.print("\n[green]✓ Question bank is valid[/green]")
    else:
        console.print("\n[yellow]⚠ Validation issues found:[/yellow]")
        for issue in issues:
            console.print(f"  • {issue}")
        raise typer.Exit(1)


@app.command()
def apply_grades(
    result_file: Annotated[Path, typer.Argument(help="Stored outcome or JSON report")],
    grades_file: Annotated[Path, typer.Argument(help="Essay grades JSON file")],
    grader: Annotated[str, typer.Option("--grader", "-g", help="Id of the grading teacher")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Where to write the updated report (default: overwrite)"),
    ] = None,
) -> None:
    """
    Record a teacher's essay grades on a graded submission.

    The submission's pass status is decided once every essay has marks.
    The audit of the grading run is carried over to the updated report.
    """
    try:
        settings = get_settings()
        outcome, audit = load_report(result_file)
        grades = load_essay_grades(grades_file)

        updated = apply_essay_grades(outcome, grades, graded_by=grader)
        summary = summarize(updated, settings.pass_threshold)

        _display_results(updated, summary, verbose=False)

        target = output or result_file
        ReportGenerator().save(updated, target, summary, collect_statistics(updated), audit)
        console.print(f"\n[green]Report saved to:[/green] {target}")

    except LoadError as e:
        console.print(f"[red]Load Error:[/red] {e}")
        raise typer.Exit(1)
    except ManualGradingError as e:
        console.print(f"[red]Grading Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def health() -> None:
    """
    Check that the grader is configured correctly.

    Verifies settings load and the output directory is writable.
    """
    try:
        settings = get_settings()
        console.print("[bold]Submission Grader Health Check[/bold]\n")

        console.print("[dim]Checking configuration...[/dim]")
        console.print(f"  Question batch size: {settings.question_batch_size}")
        console.print(f"  Lookup workers: {settings.lookup_max_workers}")
        console.print(f"  Pass threshold: {settings.pass_threshold}")
        console.print(f"  Output directory: {settings.output_directory}")

        probe = settings.output_directory / ".health"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()

        console.print("\n[green]All systems operational[/green]")

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _display_results(outcome: GradingOutcome, summary: ScoreSummary, verbose: bool = False) -> None:
    """Display grading results in a formatted table."""

    if summary.pass_status == PassStatus.PENDING_REVIEW:
        score_color = "yellow"
    elif summary.pass_status == PassStatus.PASSED:
        score_color = "green"
    else:
        score_color = "red"

    console.print(
        Panel(
            f"[{score_color}][bold]{summary.total_score} / {summary.max_score}[/bold] "
            f"({summary.percentage}%) {summary.pass_status.value}[/{score_color}]",
            title="Score",
        )
    )

    if outcome.manual_grading_pending:
        pending = sum(1 for r in outcome.essay_results if not r.is_graded)
        console.print(f"[yellow]⚠ {pending} essay answer(s) await manual grading[/yellow]")

    for anomaly in outcome.anomalies:
        console.print(f"[yellow]⚠ {anomaly.question_id}: {anomaly.detail}[/yellow]")

    if verbose:
        table = Table(title="Question Breakdown")
        table.add_column("Question", style="cyan")
        table.add_column("Type")
        table.add_column("Answer")
        table.add_column("Marks", justify="right")
        table.add_column("Status")

        for r in outcome.mcq_results:
            table.add_row(
                r.question_id,
                "mcq",
                r.selected_option_text,
                f"{r.marks_awarded}/{r.max_marks}",
                "✅" if r.is_correct else "❌",
            )
        for e in outcome.essay_results:
            marks = "-" if e.marks_awarded is None else str(e.marks_awarded)
            table.add_row(
                e.question_id,
                "essay",
                f"{e.word_count} words",
                f"{marks}/{e.max_marks}",
                "✅" if e.is_graded else "⏳",
            )

        console.print(table)


if __name__ == "__main__":
    app()
