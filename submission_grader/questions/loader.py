"""
JSON loaders for question banks, submissions and grading files.

Reads files exported from the document store and validates them into
models, reporting every failure as a LoadError naming the file.
"""

import json
from pathlib import Path
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from submission_grader.models import (
    EssayGrade,
    GradingAudit,
    GradingOutcome,
    Question,
    Submission,
)

T = TypeVar("T")

# Encodings to try in order of preference
ENCODINGS: tuple[str, ...] = ("utf-8", "utf-8-sig", "latin-1")

_QUESTIONS_ADAPTER = TypeAdapter(tuple[Question, ...])
_GRADES_ADAPTER = TypeAdapter(tuple[EssayGrade, ...])


class LoadError(Exception):
    """
    Raised when a file cannot be loaded.

    Contains detailed information about the failure cause.
    """

    def __init__(self, message: str, file_path: str | Path, cause: Exception | None = None):
        self.file_path = str(file_path)
        self.cause = cause
        super().__init__(f"Failed to load '{file_path}': {message}")


def load_question_bank(file_path: Path | str) -> tuple[Question, ...]:
    """
    Load question definitions.

    Accepts either a JSON array of questions or an object with a
    ``questions`` array (a question bank export).

    Raises:
        LoadError: If the file is missing, unreadable or invalid.
    """
    path = Path(file_path)
    data = _read_json(path)
    if isinstance(data, dict):
        if "questions" not in data:
            raise LoadError("Expected a list of questions or an object with 'questions'", path)
        data = data["questions"]
    return _validate(_QUESTIONS_ADAPTER, data, path)


def load_submission(file_path: Path | str) -> Submission:
    """
    Load a finalized submission.

    Raises:
        LoadError: If the file is missing, unreadable or invalid.
    """
    path = Path(file_path)
    return _validate(TypeAdapter(Submission), _read_json(path), path)


def load_essay_grades(file_path: Path | str) -> tuple[EssayGrade, ...]:
    """
    Load teacher grades for essay questions.

    Accepts a JSON array of grades or an object with a ``grades`` array.

    Raises:
        LoadError: If the file is missing, unreadable or invalid.
    """
    path = Path(file_path)
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("grades", [])
    return _validate(_GRADES_ADAPTER, data, path)


def load_outcome(file_path: Path | str) -> GradingOutcome:
    """
    Load a stored grading outcome.

    Accepts a bare outcome or a report object with an ``outcome`` key.

    Raises:
        LoadError: If the file is missing, unreadable or invalid.
    """
    return load_report(file_path)[0]


def load_report(file_path: Path | str) -> tuple[GradingOutcome, GradingAudit | None]:
    """
    Load a stored outcome together with the audit of a JSON report.

    A bare outcome file has no audit.

    Raises:
        LoadError: If the file is missing, unreadable or invalid.
    """
    path = Path(file_path)
    data = _read_json(path)
    audit = None
    if isinstance(data, dict) and "outcome" in data:
        if data.get("audit") is not None:
            audit = _validate(TypeAdapter(GradingAudit), data["audit"], path)
        data = data["outcome"]
    return _validate(TypeAdapter(GradingOutcome), data, path), audit


def _read_json(path: Path) -> Any:
    """
    Read and parse a JSON file with encoding fallback.

    Raises:
        LoadError: If the file doesn't exist or isn't valid JSON.
    """
    if not path.exists():
        raise LoadError("File does not exist", path)

    if not path.is_file():
        raise LoadError("Path is not a file", path)

    content = _read_with_encoding_fallback(path)
    if not content.strip():
        raise LoadError("File is empty or contains only whitespace", path)

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON: {e}", path, cause=e) from e


def _read_with_encoding_fallback(path: Path) -> str:
    """
    Read file content, trying each supported encoding in turn.

    Raises:
        LoadError: If no encoding works or the file cannot be read.
    """
    last_error: Exception | None = None

    for encoding in ENCODINGS:
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except OSError as e:
            raise LoadError(f"Could not read file: {e}", path, cause=e) from e

    raise LoadError(
        f"Could not decode file with any supported encoding: {ENCODINGS}",
        path,
        cause=last_error,
    )


def _validate(adapter: TypeAdapter[T], data: Any, path: Path) -> T:
    """Validate parsed JSON against a model, wrapping schema errors."""
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        raise LoadError(
            f"Schema validation failed with {e.error_count()} error(s): {e}",
            path,
            cause=e,
        ) from e
