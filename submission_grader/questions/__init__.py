"""
Question Bank Module.

Provides batched question lookup, JSON loading of question banks and
submissions, and validation of question authoring.
"""

from submission_grader.questions.lookup import (
    BatchedQuestionLookup,
    InMemoryQuestionStore,
    QuestionLookup,
    QuestionLookupError,
    QuestionStore,
)
from submission_grader.questions.loader import (
    LoadError,
    load_essay_grades,
    load_outcome,
    load_question_bank,
    load_report,
    load_submission,
)
from submission_grader.questions.validator import QuestionValidationError, QuestionValidator

__all__ = [
    "BatchedQuestionLookup",
    "InMemoryQuestionStore",
    "LoadError",
    "QuestionLookup",
    "QuestionLookupError",
    "QuestionStore",
    "QuestionValidationError",
    "QuestionValidator",
    "load_essay_grades",
    "load_outcome",
    "load_question_bank",
    "load_report",
    "load_submission",
]
