"""
Per-question scoring.

Scores multiple-choice answers against the resolved correct option and
prepares essay answers for manual grading. Every function here is pure.
"""

from decimal import Decimal
from typing import NamedTuple

from submission_grader.grading.options import option_text, resolve_correct_option
from submission_grader.models import (
    NO_ANSWER_TEXT,
    NO_CORRECT_OPTION_TEXT,
    Answer,
    EssayQuestion,
    EssayResult,
    FinalAnswer,
    GradingAnomaly,
    MCQQuestion,
    MCQResult,
    QuestionType,
)

NO_SELECTION = -1


class ScoredMCQ(NamedTuple):
    """Outcome of scoring one multiple-choice question."""

    result: MCQResult
    final_answer: FinalAnswer
    anomalies: tuple[GradingAnomaly, ...]


class ScoredEssay(NamedTuple):
    """Outcome of preparing one essay question for manual grading."""

    result: EssayResult
    final_answer: FinalAnswer


def count_words(text: str) -> int:
    """Count whitespace-delimited, non-empty tokens."""
    return len(text.split())


def grade_mcq(question: MCQQuestion, answer: Answer | None) -> ScoredMCQ:
    """
    Score a multiple-choice question.

    Scoring is binary: the full question points when the selected option
    is the correct one, otherwise zero. An unanswered question or one with
    no determinable correct option is always incorrect.

    Args:
        question: The question definition.
        answer: The student's answer, or None if the question was skipped.

    Returns:
        ScoredMCQ with the result, the unified final answer and anomalies.
    """
    correct = resolve_correct_option(question)
    correct_index = correct.index if correct.index is not None else NO_SELECTION

    selected = NO_SELECTION
    if answer is not None and answer.selected_option is not None:
        selected = answer.selected_option

    is_correct = selected == correct_index and selected != NO_SELECTION
    marks_awarded = question.points if is_correct else Decimal(0)

    selected_text = option_text(question.options, selected) if selected >= 0 else None
    correct_text = option_text(question.options, correct_index) if correct_index >= 0 else None

    result = MCQResult(
        question_id=question.id,
        question_text=question.title,
        selected_option=selected if selected >= 0 else 0,
        selected_option_text=selected_text or NO_ANSWER_TEXT,
        answered=selected_text is not None,
        correct_option=correct_index if correct_index >= 0 else 0,
        correct_option_text=correct_text or NO_CORRECT_OPTION_TEXT,
        correct_option_defined=correct.index is not None,
        is_correct=is_correct,
        marks_awarded=marks_awarded,
        max_marks=question.points,
        explanation=question.explanation,
        difficulty_level=question.difficulty_level,
        topic=question.topic,
    )

    final_answer = FinalAnswer(
        question_id=question.id,
        question_type=QuestionType.MCQ,
        question_text=question.title,
        question_marks=question.points,
        selected_option=answer.selected_option if answer is not None else None,
        selected_option_text=result.selected_option_text,
        correct_option_text=result.correct_option_text,
        time_spent=answer.time_spent if answer is not None else 0,
        change_count=answer.change_count if answer is not None else 0,
        was_reviewed=answer.was_reviewed if answer is not None else False,
        is_correct=is_correct,
        marks_awarded=marks_awarded,
    )

    return ScoredMCQ(result, final_answer, correct.anomalies)


def grade_essay(question: EssayQuestion, answer: Answer | None) -> ScoredEssay:
    """
    Prepare an essay question for manual grading.

    Marks, feedback and grader fields stay unset; only the raw text and
    its word count are recorded.

    Args:
        question: The question definition.
        answer: The student's answer, or None if the question was skipped.

    Returns:
        ScoredEssay with the pending result and the unified final answer.
    """
    student_answer = ""
    if answer is not None and answer.text_content is not None:
        student_answer = answer.text_content

    result = EssayResult(
        question_id=question.id,
        question_text=question.title,
        student_answer=student_answer,
        word_count=count_words(student_answer),
        max_marks=question.points,
    )

    final_answer = FinalAnswer(
        question_id=question.id,
        question_type=QuestionType.ESSAY,
        question_text=question.title,
        question_marks=question.points,
        text_content=answer.text_content if answer is not None else None,
        time_spent=answer.time_spent if answer is not None else 0,
        change_count=answer.change_count if answer is not None else 0,
        was_reviewed=answer.was_reviewed if answer is not None else False,
    )

    return ScoredEssay(result, final_answer)
