"""
Grading report generation.

Renders a grading outcome with its score summary as JSON for storage and
export, or as Markdown for teachers reviewing a submission.
"""

import json
from enum import Enum
from pathlib import Path

from submission_grader.models import (
    GradingAudit,
    GradingOutcome,
    ScoreSummary,
    SubmissionStatistics,
)


class ReportFormat(str, Enum):
    """Supported report formats."""

    JSON = "json"
    MARKDOWN = "markdown"


class ReportGenerator:
    """Generates grading reports in the supported formats."""

    def generate(
        self,
        outcome: GradingOutcome,
        summary: ScoreSummary,
        statistics: SubmissionStatistics | None = None,
        audit: GradingAudit | None = None,
        format: ReportFormat = ReportFormat.JSON,
    ) -> str:
        """
        Render a report.

        Args:
            outcome: The grading outcome.
            summary: Totals and verdict for the outcome.
            statistics: Optional answering statistics.
            audit: Optional audit record to include.
            format: Output format.

        Returns:
            The report text.
        """
        if format == ReportFormat.MARKDOWN:
            return self._to_markdown(outcome, summary, statistics, audit)
        return self._to_json(outcome, summary, statistics, audit)

    def save(
        self,
        outcome: GradingOutcome,
        output_path: Path,
        summary: ScoreSummary,
        statistics: SubmissionStatistics | None = None,
        audit: GradingAudit | None = None,
        format: ReportFormat = ReportFormat.JSON,
    ) -> Path:
        """
        Render a report and write it to ``output_path``.

        Returns:
            The path written.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        report = self.generate(outcome, summary, statistics, audit, format)
        output_path.write_text(report, encoding="utf-8")
        return output_path

    def _to_json(
        self,
        outcome: GradingOutcome,
        summary: ScoreSummary,
        statistics: SubmissionStatistics | None,
        audit: GradingAudit | None,
    ) -> str:
        data: dict[str, object] = {
            "summary": summary.model_dump(mode="json", by_alias=True),
            "outcome": outcome.model_dump(mode="json", by_alias=True),
        }
        if statistics is not None:
            data["statistics"] = statistics.model_dump(mode="json", by_alias=True)
        if audit is not None:
            data["audit"] = audit.model_dump(mode="json", by_alias=True)
        return json.dumps(data, indent=2, ensure_ascii=False)

    def _to_markdown(
        self,
        outcome: GradingOutcome,
        summary: ScoreSummary,
        statistics: SubmissionStatistics | None,
        audit: GradingAudit | None,
    ) -> str:
        lines = [
            "# Grading Report",
            "",
            f"**Score:** {summary.total_score} / {summary.max_score} ({summary.percentage}%)",
            f"**Status:** {summary.pass_status.value}",
            f"**Auto-graded score:** {summary.auto_graded_score}",
        ]
        if outcome.manual_grading_pending:
            lines.append("**Manual grading pending:** yes")

        if statistics is not None:
            lines += [
                "",
                "## Statistics",
                "",
                f"- Attempted: {statistics.questions_attempted}",
                f"- Skipped: {statistics.questions_skipped}",
                f"- Reviewed: {statistics.questions_reviewed}",
                f"- Answer changes: {statistics.total_changes}",
            ]

        if outcome.mcq_results:
            lines += [
                "",
                "## Multiple Choice",
                "",
                "| Question | Selected | Correct | Marks |",
                "| --- | --- | --- | --- |",
            ]
            for r in outcome.mcq_results:
                mark = "✓" if r.is_correct else "✗"
                lines.append(
                    f"| {_cell(r.question_text)} | {_cell(r.selected_option_text)} | "
                    f"{_cell(r.correct_option_text)} | {mark} {r.marks_awarded}/{r.max_marks} |"
                )

        if outcome.essay_results:
            lines += ["", "## Essays", ""]
            for r in outcome.essay_results:
                marks = "pending" if r.marks_awarded is None else f"{r.marks_awarded}/{r.max_marks}"
                lines.append(f"### {r.question_text or r.question_id}")
                lines.append("")
                lines.append(f"Words: {r.word_count} | Marks: {marks}")
                if r.feedback:
                    lines.append("")
                    lines.append(f"> {r.feedback}")
                lines.append("")

        if outcome.anomalies:
            lines += ["", "## Anomalies", ""]
            for a in outcome.anomalies:
                lines.append(f"- `{a.question_id}` {a.kind.value}: {a.detail}")

        if audit is not None:
            lines += ["", "---", "", f"Outcome hash: `{audit.outcome_hash}`"]

        return "\n".join(lines).rstrip() + "\n"


def _cell(text: str) -> str:
    """Escape text for a Markdown table cell."""
    return text.replace("|", "\\|").replace("\n", " ")
