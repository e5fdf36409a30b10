"""
Question authoring validation.

Checks question-bank entries for correctness metadata that grading can
only work around: missing or ambiguous correct options, letters that name
no option, and letters that disagree with the option flags. Grading never
requires a bank to pass validation.
"""

from typing import Sequence

from submission_grader.grading.options import index_to_letter, letter_to_index
from submission_grader.models import EssayQuestion, MCQQuestion
from submission_grader.questions.lookup import QuestionRecord


class QuestionValidationError(Exception):
    """Raised when question validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        message = "Question validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


class QuestionValidator:
    """
    Validates question definitions for unambiguous grading.

    Checks:
    1. Multiple-choice questions have enough options
    2. Exactly one correct option can be determined
    3. correctAnswer letters name an existing option and agree with the flags
    4. Question ids are unique within a bank
    """

    MIN_OPTIONS = 2

    def validate(self, question: QuestionRecord) -> tuple[bool, list[str]]:
        """
        Validate a single question.

        Args:
            question: The question to validate.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        issues: list[str] = []
        prefix = f"Question '{question.id}'"

        if not question.title.strip():
            issues.append(f"{prefix}: Title is empty")

        if isinstance(question, MCQQuestion):
            issues.extend(self._validate_mcq(question, prefix))
        elif isinstance(question, EssayQuestion):
            if question.points <= 0:
                issues.append(f"{prefix}: Essay is worth no points")

        return len(issues) == 0, issues

    def validate_bank(self, questions: Sequence[QuestionRecord]) -> tuple[bool, list[str]]:
        """
        Validate every question of a bank plus id uniqueness.

        Args:
            questions: The questions to validate.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        issues: list[str] = []
        issues.extend(self._check_duplicates(questions))
        for question in questions:
            issues.extend(self.validate(question)[1])
        return len(issues) == 0, issues

    def validate_or_raise(self, questions: Sequence[QuestionRecord]) -> None:
        """
        Validate a bank and raise if invalid.

        Raises:
            QuestionValidationError: If validation fails.
        """
        is_valid, issues = self.validate_bank(questions)
        if not is_valid:
            raise QuestionValidationError(issues)

    def _validate_mcq(self, question: MCQQuestion, prefix: str) -> list[str]:
        """Validate options and correctness metadata of a multiple-choice question."""
        issues: list[str] = []
        option_count = len(question.options)

        if option_count < self.MIN_OPTIONS:
            issues.append(
                f"{prefix}: Has {option_count} option(s), at least {self.MIN_OPTIONS} required"
            )

        marked = [i for i, option in enumerate(question.options) if option.is_correct]
        if len(marked) > 1:
            letters = ", ".join(index_to_letter(i) for i in marked)
            issues.append(
                f"{prefix}: Several options are marked correct ({letters}); "
                f"only {index_to_letter(marked[0])} will be graded as correct"
            )

        letter_index = letter_to_index(question.correct_answer, option_count)
        if question.correct_answer and question.correct_answer.strip() and letter_index is None:
            issues.append(
                f"{prefix}: correctAnswer '{question.correct_answer}' does not name "
                f"one of the {option_count} options"
            )

        if letter_index is not None and marked and letter_index not in marked:
            issues.append(
                f"{prefix}: correctAnswer '{question.correct_answer}' disagrees with the "
                f"option marked correct ({index_to_letter(marked[0])})"
            )

        if letter_index is None and not marked:
            issues.append(f"{prefix}: No correct option can be determined")

        return issues

    def _check_duplicates(self, questions: Sequence[QuestionRecord]) -> list[str]:
        """Check for duplicate question ids."""
        issues: list[str] = []
        seen_ids: dict[str, int] = {}

        for i, question in enumerate(questions, start=1):
            if question.id in seen_ids:
                issues.append(
                    f"Duplicate question id: '{question.id}' "
                    f"(appears at positions {seen_ids[question.id]} and {i})"
                )
            else:
                seen_ids[question.id] = i

        return issues
