"""
Integration tests for the full grading pipeline.

Tests end-to-end grading from exported JSON files through the engine,
manual grading, reports, persistence and the command-line interface.
"""

import json
from decimal import Decimal
from pathlib import Path

from typer.testing import CliRunner

from submission_grader.config import Settings
from submission_grader.grading import (
    GradingEngine,
    apply_essay_grades,
    collect_statistics,
    summarize,
)
from submission_grader.main import app
from submission_grader.models import Answer, EssayGrade, GradingOutcome, PassStatus, Submission
from submission_grader.output import AuditTrail, JsonResultStore, ReportFormat, ReportGenerator
from submission_grader.questions import (
    BatchedQuestionLookup,
    InMemoryQuestionStore,
    load_essay_grades,
    load_outcome,
    load_question_bank,
    load_submission,
)

runner = CliRunner()


class TestFullPipeline:
    """Integration tests for the complete grading pipeline."""

    def test_full_grading_pipeline(
        self,
        questions_file: Path,
        submission_file: Path,
        grades_file: Path,
        test_settings: Settings,
    ) -> None:
        """Test complete pipeline from exported files to a final verdict."""
        # Step 1: Load exports
        questions = load_question_bank(questions_file)
        submission = load_submission(submission_file)

        # Step 2: Automatic grading
        lookup = BatchedQuestionLookup(InMemoryQuestionStore(questions), settings=test_settings)
        engine = GradingEngine(lookup, test_settings)
        outcome, audit = engine.grade(submission)

        assert outcome.auto_graded_score == Decimal("5")
        assert outcome.manual_grading_pending
        assert engine.summarize(outcome).pass_status == PassStatus.PENDING_REVIEW
        assert audit.question_count == 2

        # Step 3: Manual grading
        graded = apply_essay_grades(outcome, load_essay_grades(grades_file), graded_by="teacher-1")
        summary = engine.summarize(graded)

        assert summary.total_score == Decimal("12")
        assert summary.max_score == Decimal("15")
        assert summary.percentage == 80
        assert summary.pass_status == PassStatus.PASSED

    def test_report_generation_json(
        self,
        sample_submission,
        question_lookup: BatchedQuestionLookup,
        temp_dir: Path,
    ) -> None:
        """Test JSON report generation and reloading the outcome from it."""
        outcome, audit = GradingEngine(question_lookup).grade(sample_submission)
        summary = summarize(outcome)
        generator = ReportGenerator()

        saved_path = generator.save(
            outcome, temp_dir / "report.json", summary, collect_statistics(outcome), audit
        )

        content = json.loads(saved_path.read_text(encoding="utf-8"))
        assert content["summary"]["passStatus"] == "pending_review"
        assert content["summary"]["percentage"] == 28
        assert content["outcome"]["manualGradingPending"] is True
        assert content["outcome"]["mcqResults"][1]["selectedOptionText"] == "48"
        assert content["outcome"]["essayResults"][0]["isGraded"] is False
        assert content["statistics"]["questionsAttempted"] == 3
        assert content["audit"]["outcomeHash"] == audit.outcome_hash

        reloaded = load_outcome(saved_path)
        assert reloaded == outcome

    def test_report_generation_markdown(
        self,
        sample_submission,
        question_lookup: BatchedQuestionLookup,
    ) -> None:
        """Test Markdown report generation."""
        outcome, _ = GradingEngine(question_lookup).grade(sample_submission)
        graded = apply_essay_grades(
            outcome,
            [EssayGrade(question_id="q-essay-1", marks_awarded=6, feedback="Mention the equinoxes.")],
            graded_by="teacher-1",
        )

        content = ReportGenerator().generate(
            graded, summarize(graded), collect_statistics(graded), format=ReportFormat.MARKDOWN
        )

        assert "# Grading Report" in content
        assert "**Score:** 11 / 18 (61%)" in content
        assert "**Status:** passed" in content
        assert "## Multiple Choice" in content
        assert "| What is 6 x 7? | 48 | 42 | ✗ 0/3 |" in content
        assert "Words: 10 | Marks: 6/10" in content
        assert "> Mention the equinoxes." in content
        assert "Manual grading pending" not in content

    def test_result_store_round_trip(
        self,
        sample_submission,
        question_lookup: BatchedQuestionLookup,
        temp_dir: Path,
    ) -> None:
        """Test outcomes are persisted and reloaded by submission id."""
        outcome, _ = GradingEngine(question_lookup).grade(sample_submission)
        store = JsonResultStore(temp_dir / "results")

        store.save(sample_submission.id, outcome)

        assert store.path_for(sample_submission.id).exists()
        assert store.load(sample_submission.id) == outcome
        assert store.load("never-graded") is None

    def test_result_store_sanitizes_ids(self, temp_dir: Path) -> None:
        """Test submission ids cannot escape the store directory."""
        store = JsonResultStore(temp_dir / "results")

        path = store.path_for("../attempt/1")

        assert path.parent == temp_dir / "results"
        assert path.name == "..%2Fattempt%2F1.json"

    def test_result_store_keeps_similar_ids_apart(
        self,
        sample_submission,
        question_lookup: BatchedQuestionLookup,
        temp_dir: Path,
    ) -> None:
        """Test ids differing only in punctuation are stored in separate files."""
        outcome, _ = GradingEngine(question_lookup).grade(sample_submission)
        store = JsonResultStore(temp_dir / "results")

        store.save("class/1", outcome)
        store.save("class_1", GradingOutcome())

        assert store.path_for("class/1") != store.path_for("class_1")
        assert store.load("class/1") == outcome
        assert store.load("class_1") == GradingOutcome()

    def test_audit_trail_save_and_find(
        self,
        sample_submission,
        question_lookup: BatchedQuestionLookup,
        temp_dir: Path,
    ) -> None:
        """Test audit trail persistence."""
        engine = GradingEngine(question_lookup)
        _, first = engine.grade(sample_submission)
        _, second = engine.grade(sample_submission)
        trail = AuditTrail(temp_dir / "audits")

        saved_path = trail.save(first)
        trail.save(second)

        assert saved_path.exists()
        found = trail.find(sample_submission.id)
        assert {a.audit_id for a in found} == {first.audit_id, second.audit_id}
        assert trail.find("someone-else") == []

    def test_regrading_is_reproducible(
        self,
        sample_submission,
        question_lookup: BatchedQuestionLookup,
    ) -> None:
        """Test grading the same inputs twice yields identical hashes."""
        engine = GradingEngine(question_lookup)

        outcome_a, audit_a = engine.grade(sample_submission)
        outcome_b, audit_b = engine.grade(sample_submission)

        assert outcome_a == outcome_b
        assert audit_a.audit_id != audit_b.audit_id
        assert audit_a.answers_hash == audit_b.answers_hash
        assert audit_a.questions_hash == audit_b.questions_hash
        assert audit_a.outcome_hash == audit_b.outcome_hash


class TestCLI:
    """Tests for the command-line interface."""

    def test_grade_writes_report_and_audit(
        self,
        questions_file: Path,
        submission_file: Path,
        temp_dir: Path,
        cli_env: Path,
    ) -> None:
        """Test grade saves a JSON report and an audit record."""
        report_path = temp_dir / "report.json"

        result = runner.invoke(
            app, ["grade", str(questions_file), str(submission_file), "-o", str(report_path)]
        )

        assert result.exit_code == 0, result.output
        content = json.loads(report_path.read_text(encoding="utf-8"))
        assert content["summary"]["autoGradedScore"] == "5"
        assert content["summary"]["passStatus"] == "pending_review"
        assert len(list((cli_env / "audits").glob("audit_*.json"))) == 1

    def test_grade_prints_markdown(
        self,
        questions_file: Path,
        submission_file: Path,
        cli_env: Path,
    ) -> None:
        """Test grade prints the report when no output path is given."""
        result = runner.invoke(
            app, ["grade", str(questions_file), str(submission_file), "--format", "markdown"]
        )

        assert result.exit_code == 0, result.output
        assert "# Grading Report" in result.output
        assert "await manual grading" in result.output

    def test_grade_stores_outcome(
        self,
        questions_file: Path,
        submission_file: Path,
        temp_dir: Path,
        cli_env: Path,
    ) -> None:
        """Test --store keeps the outcome under the submission id."""
        result = runner.invoke(
            app,
            ["grade", str(questions_file), str(submission_file), "--store", str(temp_dir / "results")],
        )

        assert result.exit_code == 0, result.output
        assert JsonResultStore(temp_dir / "results").load("attempt-001") is not None

    def test_grade_missing_file(self, questions_file: Path, temp_dir: Path, cli_env: Path) -> None:
        """Test grade exits with an error for a missing submission file."""
        result = runner.invoke(app, ["grade", str(questions_file), str(temp_dir / "absent.json")])

        assert result.exit_code == 1
        assert "Load Error" in result.output

    def test_apply_grades(
        self,
        questions_file: Path,
        submission_file: Path,
        grades_file: Path,
        temp_dir: Path,
        cli_env: Path,
    ) -> None:
        """Test apply-grades updates a saved report in place and keeps its audit."""
        report_path = temp_dir / "report.json"
        runner.invoke(app, ["grade", str(questions_file), str(submission_file), "-o", str(report_path)])
        audit_id = json.loads(report_path.read_text(encoding="utf-8"))["audit"]["auditId"]

        result = runner.invoke(
            app, ["apply-grades", str(report_path), str(grades_file), "--grader", "teacher-1"]
        )

        assert result.exit_code == 0, result.output
        content = json.loads(report_path.read_text(encoding="utf-8"))
        assert content["summary"]["passStatus"] == "passed"
        assert content["summary"]["percentage"] == 80
        essay = content["outcome"]["essayResults"][0]
        assert essay["gradedBy"] == "teacher-1"
        assert essay["feedback"] == "Good."
        assert content["audit"]["auditId"] == audit_id

    def test_apply_grades_rejects_excess_marks(
        self,
        questions_file: Path,
        submission_file: Path,
        temp_dir: Path,
        cli_env: Path,
    ) -> None:
        """Test apply-grades exits with an error for marks above the maximum."""
        report_path = temp_dir / "report.json"
        runner.invoke(app, ["grade", str(questions_file), str(submission_file), "-o", str(report_path)])
        grades_path = temp_dir / "too_many.json"
        grades_path.write_text(
            json.dumps([{"questionId": "q-essay-1", "marksAwarded": 12}]), encoding="utf-8"
        )

        result = runner.invoke(
            app, ["apply-grades", str(report_path), str(grades_path), "-g", "teacher-1"]
        )

        assert result.exit_code == 1
        assert "Grading Error" in result.output

    def test_validate_questions_valid(self, questions_file: Path, cli_env: Path) -> None:
        """Test validate-questions accepts a well-formed bank."""
        result = runner.invoke(app, ["validate-questions", str(questions_file)])

        assert result.exit_code == 0, result.output
        assert "Question bank is valid" in result.output

    def test_validate_questions_invalid(self, temp_dir: Path, cli_env: Path) -> None:
        """Test validate-questions reports an undeterminable correct option."""
        path = temp_dir / "bank.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "id": "q1",
                        "type": "mcq",
                        "title": "Pick one",
                        "points": 1,
                        "options": [{"text": "a"}, {"text": "b"}],
                    }
                ]
            ),
            encoding="utf-8",
        )

        result = runner.invoke(app, ["validate-questions", str(path)])

        assert result.exit_code == 1
        assert "No correct option can be determined" in result.output

    def test_health(self, cli_env: Path) -> None:
        """Test health reports the configuration."""
        result = runner.invoke(app, ["health"])

        assert result.exit_code == 0, result.output
        assert "All systems operational" in result.output


class TestEdgeCases:
    """Tests for edge cases and error handling."""

    def test_submission_with_no_answers(self, sample_questions, question_lookup) -> None:
        """Test an empty submission grades every question as skipped."""
        submission = Submission(id="empty", question_ids=tuple(q.id for q in sample_questions))

        outcome, _ = GradingEngine(question_lookup).grade(submission)
        summary = summarize(outcome)

        assert outcome.auto_graded_score == Decimal("0")
        assert all(not r.answered for r in outcome.mcq_results)
        assert summary.pass_status == PassStatus.PENDING_REVIEW
        assert collect_statistics(outcome).questions_skipped == 3

    def test_every_question_missing(self, sample_submission) -> None:
        """Test a submission whose questions were all deleted."""
        lookup = BatchedQuestionLookup(InMemoryQuestionStore([]), batch_size=10, max_workers=1)

        outcome, audit = GradingEngine(lookup).grade(sample_submission)

        assert outcome.max_score == Decimal("0")
        assert len(outcome.anomalies) == 3
        assert audit.question_count == 0
        assert summarize(outcome).percentage == 0

    def test_perfect_score(self, sample_questions, question_lookup) -> None:
        """Test full marks on every question."""
        submission = Submission(
            id="perfect",
            question_ids=("q-mcq-1", "q-mcq-2", "q-essay-1"),
            answers=(
                Answer(question_id="q-mcq-1", selected_option=1),
                Answer(question_id="q-mcq-2", selected_option=1),
                Answer(question_id="q-essay-1", text_content="Tilt."),
            ),
        )

        outcome, _ = GradingEngine(question_lookup).grade(submission)
        graded = apply_essay_grades(
            outcome, [EssayGrade(question_id="q-essay-1", marks_awarded=10)], graded_by="t"
        )
        summary = summarize(graded)

        assert summary.total_score == summary.max_score
        assert summary.percentage == 100
        assert summary.pass_status == PassStatus.PASSED
