"""
Manual grading of essay answers.

Applies teacher marks and feedback to a graded outcome and derives the
score summary and answering statistics shown to teachers and students.
Every function returns new models; the outcome passed in is never changed.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from submission_grader.models import (
    EssayGrade,
    EssayResult,
    FinalAnswer,
    GradingOutcome,
    PassStatus,
    QuestionType,
    ScoreSummary,
    SubmissionStatistics,
)


class ManualGradingError(Exception):
    """Raised when a manual grade cannot be applied."""

    def __init__(self, message: str, question_id: str | None = None):
        self.question_id = question_id
        super().__init__(message)


def apply_essay_grades(
    outcome: GradingOutcome,
    grades: Sequence[EssayGrade],
    graded_by: str,
    graded_at: datetime | None = None,
) -> GradingOutcome:
    """
    Apply teacher grades to the essay results of an outcome.

    Grades can be applied in several rounds; essays without a grade keep
    their previous state. Manual grading stays pending until every essay
    has marks.

    Args:
        outcome: The outcome to grade.
        grades: One grade per essay question being graded.
        graded_by: Identifier of the grading teacher.
        graded_at: Grading time. Defaults to now (UTC).

    Returns:
        A new GradingOutcome with the grades applied.

    Raises:
        ManualGradingError: If a grade names an unknown or non-essay question,
            a question is graded twice in one call, or marks exceed the maximum.
    """
    graded_at = graded_at or datetime.now(timezone.utc)
    essays = {r.question_id: r for r in outcome.essay_results}
    mcq_ids = {r.question_id for r in outcome.mcq_results}

    grade_map: dict[str, EssayGrade] = {}
    for grade in grades:
        if grade.question_id in mcq_ids:
            raise ManualGradingError(
                f"Question '{grade.question_id}' is multiple-choice and is graded automatically",
                question_id=grade.question_id,
            )
        essay = essays.get(grade.question_id)
        if essay is None:
            raise ManualGradingError(
                f"No essay answer for question '{grade.question_id}' in this submission",
                question_id=grade.question_id,
            )
        if grade.question_id in grade_map:
            raise ManualGradingError(
                f"Question '{grade.question_id}' is graded more than once",
                question_id=grade.question_id,
            )
        if grade.marks_awarded > essay.max_marks:
            raise ManualGradingError(
                f"Marks ({grade.marks_awarded}) for '{grade.question_id}' exceed "
                f"max marks ({essay.max_marks})",
                question_id=grade.question_id,
            )
        grade_map[grade.question_id] = grade

    essay_results: list[EssayResult] = []
    for result in outcome.essay_results:
        grade = grade_map.get(result.question_id)
        if grade is not None:
            result = result.model_copy(
                update={
                    "marks_awarded": grade.marks_awarded,
                    "feedback": grade.feedback,
                    "graded_by": graded_by,
                    "graded_at": graded_at,
                }
            )
        essay_results.append(result)

    final_answers: list[FinalAnswer] = []
    for answer in outcome.final_answers:
        grade = grade_map.get(answer.question_id)
        if grade is not None and answer.question_type == QuestionType.ESSAY:
            answer = answer.model_copy(update={"marks_awarded": grade.marks_awarded})
        final_answers.append(answer)

    return outcome.model_copy(
        update={
            "essay_results": tuple(essay_results),
            "final_answers": tuple(final_answers),
        }
    )


def summarize(outcome: GradingOutcome, pass_threshold: Decimal = Decimal("0.6")) -> ScoreSummary:
    """
    Derive totals, percentage and verdict from an outcome.

    The verdict is pending review while any essay is ungraded. Otherwise the
    rounded percentage is compared with the threshold, so 59.5% passes a
    0.6 threshold.

    Args:
        outcome: The outcome to summarize.
        pass_threshold: Fraction of the maximum score needed to pass.

    Returns:
        ScoreSummary for the outcome.
    """
    total = outcome.auto_graded_score + outcome.manual_score
    max_score = outcome.max_score

    if max_score > 0:
        percentage = int((total / max_score * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    else:
        percentage = 0

    if outcome.manual_grading_pending:
        status = PassStatus.PENDING_REVIEW
    elif percentage >= Decimal(str(pass_threshold)) * 100:
        status = PassStatus.PASSED
    else:
        status = PassStatus.FAILED

    return ScoreSummary(
        auto_graded_score=outcome.auto_graded_score,
        manual_score=outcome.manual_score,
        total_score=total,
        max_score=max_score,
        percentage=percentage,
        pass_status=status,
    )


def collect_statistics(outcome: GradingOutcome) -> SubmissionStatistics:
    """
    Count attempted, skipped and reviewed questions and answer changes.

    A multiple-choice question counts as attempted when an existing option
    was selected; an essay when its text is not blank.
    """
    answered_mcq = {r.question_id for r in outcome.mcq_results if r.answered}

    attempted = 0
    for answer in outcome.final_answers:
        if answer.question_type == QuestionType.MCQ:
            if answer.question_id in answered_mcq:
                attempted += 1
        elif answer.text_content and answer.text_content.strip():
            attempted += 1

    return SubmissionStatistics(
        questions_attempted=attempted,
        questions_skipped=len(outcome.final_answers) - attempted,
        questions_reviewed=sum(1 for a in outcome.final_answers if a.was_reviewed),
        total_changes=sum(a.change_count for a in outcome.final_answers),
    )
