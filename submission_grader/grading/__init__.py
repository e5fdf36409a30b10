"""
Grading Engine Module.

Core grading logic: binary auto-grading of multiple-choice questions,
deferral of essays to manual grading, and aggregate scoring.
"""

from submission_grader.grading.engine import GradingEngine, compute_results
from submission_grader.grading.manual import (
    ManualGradingError,
    apply_essay_grades,
    collect_statistics,
    summarize,
)
from submission_grader.grading.options import letter_to_index, resolve_correct_option
from submission_grader.grading.scorer import count_words, grade_essay, grade_mcq

__all__ = [
    "GradingEngine",
    "ManualGradingError",
    "apply_essay_grades",
    "collect_statistics",
    "compute_results",
    "count_words",
    "grade_essay",
    "grade_mcq",
    "letter_to_index",
    "resolve_correct_option",
    "summarize",
]
