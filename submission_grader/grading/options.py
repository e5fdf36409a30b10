"""
Option resolution helpers for multiple-choice questions.

Converts answer letters to option indexes with bounds checking and
determines which option of a question counts as correct.
"""

from typing import NamedTuple

from submission_grader.models import AnomalyKind, GradingAnomaly, MCQQuestion, QuestionOption


class CorrectOption(NamedTuple):
    """Resolved correct option of a question plus any anomalies met on the way."""

    index: int | None
    anomalies: tuple[GradingAnomaly, ...]


def letter_to_index(letter: str | None, option_count: int) -> int | None:
    """
    Convert an answer letter to a zero-based option index.

    Args:
        letter: A single letter, ``A`` naming the first option. Case-insensitive.
        option_count: Number of options the question has.

    Returns:
        The option index, or None if the letter is missing, not a single
        A-Z letter, or names an option that does not exist.
    """
    if letter is None:
        return None

    normalized = letter.strip().upper()
    if len(normalized) != 1 or not ("A" <= normalized <= "Z"):
        return None

    index = ord(normalized) - ord("A")
    if index >= option_count:
        return None
    return index


def index_to_letter(index: int) -> str:
    """Convert a zero-based option index to its letter (0 -> 'A')."""
    return chr(ord("A") + index)


def first_marked_correct(options: tuple[QuestionOption, ...]) -> int | None:
    """Return the index of the first option flagged correct, if any."""
    for i, option in enumerate(options):
        if option.is_correct:
            return i
    return None


def resolve_correct_option(question: MCQQuestion) -> CorrectOption:
    """
    Determine the correct option of a multiple-choice question.

    Resolution order:
    1. ``correct_answer`` when it is a letter naming an existing option
       (a blank ``correct_answer`` counts as absent)
    2. The first option with ``is_correct`` set
    3. Undeterminable (index None)

    Args:
        question: The question to inspect.

    Returns:
        CorrectOption with the index (or None) and the anomalies encountered.
    """
    anomalies: list[GradingAnomaly] = []

    if question.correct_answer and question.correct_answer.strip():
        index = letter_to_index(question.correct_answer, len(question.options))
        if index is not None:
            return CorrectOption(index, ())
        anomalies.append(
            GradingAnomaly(
                kind=AnomalyKind.INVALID_CORRECT_ANSWER,
                question_id=question.id,
                detail=(
                    f"correctAnswer '{question.correct_answer}' does not name one of "
                    f"{len(question.options)} options; falling back to isCorrect flags"
                ),
            )
        )

    index = first_marked_correct(question.options)
    if index is None:
        anomalies.append(
            GradingAnomaly(
                kind=AnomalyKind.UNDETERMINABLE_CORRECT_OPTION,
                question_id=question.id,
                detail="No option is marked correct; every selection is graded incorrect",
            )
        )

    return CorrectOption(index, tuple(anomalies))


def option_text(options: tuple[QuestionOption, ...], index: int) -> str | None:
    """
    Display text of an option.

    Blank option text falls back to the option letter.

    Returns:
        The text, or None when the index is out of range.
    """
    if not 0 <= index < len(options):
        return None
    text = options[index].text
    if text and text.strip():
        return text
    return index_to_letter(index)
