"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import json
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any, Generator

import pytest

from submission_grader.config import Settings, get_settings
from submission_grader.models import (
    Answer,
    EssayQuestion,
    MCQQuestion,
    QuestionOption,
    Submission,
)
from submission_grader.questions import BatchedQuestionLookup, InMemoryQuestionStore


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# Question Fixtures
# ==============================================================================


@pytest.fixture
def mcq_question() -> MCQQuestion:
    """Two-option MCQ worth 5 points whose second option is flagged correct."""
    return MCQQuestion(
        id="q-mcq-1",
        title="Which planet is known as the Red Planet?",
        points=Decimal("5"),
        options=(
            QuestionOption(text="Venus"),
            QuestionOption(text="Mars", is_correct=True),
        ),
        explanation="Iron oxide on its surface gives Mars its red color.",
        topic="Astronomy",
    )


@pytest.fixture
def lettered_mcq_question() -> MCQQuestion:
    """Four-option MCQ naming its correct option by letter."""
    return MCQQuestion(
        id="q-mcq-2",
        title="What is 6 x 7?",
        points=Decimal("3"),
        options=(
            QuestionOption(text="36"),
            QuestionOption(text="42"),
            QuestionOption(text="48"),
            QuestionOption(text="54"),
        ),
        correct_answer="B",
        difficulty_level="easy",
    )


@pytest.fixture
def essay_question() -> EssayQuestion:
    """Essay question worth 10 points."""
    return EssayQuestion(
        id="q-essay-1",
        title="Explain the causes of the seasons on Earth.",
        points=Decimal("10"),
        suggested_answer="Axial tilt changes the angle of incoming sunlight.",
    )


@pytest.fixture
def sample_questions(
    mcq_question: MCQQuestion,
    lettered_mcq_question: MCQQuestion,
    essay_question: EssayQuestion,
) -> list[MCQQuestion | EssayQuestion]:
    """All sample questions."""
    return [mcq_question, lettered_mcq_question, essay_question]


# ==============================================================================
# Submission Fixtures
# ==============================================================================


@pytest.fixture
def sample_answers() -> list[Answer]:
    """Answers to the sample questions: one correct, one wrong, one essay."""
    return [
        Answer(question_id="q-mcq-1", selected_option=1, time_spent=12, change_count=1),
        Answer(question_id="q-mcq-2", selected_option=2, time_spent=8, was_reviewed=True),
        Answer(
            question_id="q-essay-1",
            text_content="The tilt of the axis  changes how directly sunlight arrives.",
            time_spent=300,
            change_count=4,
        ),
    ]


@pytest.fixture
def sample_submission(sample_answers: list[Answer]) -> Submission:
    """Submission covering the sample questions in test order."""
    return Submission(
        id="attempt-001",
        test_id="test-42",
        student_id="student-7",
        question_ids=("q-mcq-1", "q-mcq-2", "q-essay-1"),
        answers=tuple(sample_answers),
    )


# ==============================================================================
# Lookup Fixtures
# ==============================================================================


@pytest.fixture
def question_store(sample_questions: list[MCQQuestion | EssayQuestion]) -> InMemoryQuestionStore:
    """In-memory store holding the sample questions."""
    return InMemoryQuestionStore(sample_questions)


@pytest.fixture
def question_lookup(question_store: InMemoryQuestionStore) -> BatchedQuestionLookup:
    """Sequential batched lookup over the sample store."""
    return BatchedQuestionLookup(question_store, batch_size=10, max_workers=1)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings writing into the temporary directory."""
    return Settings(
        question_batch_size=10,
        lookup_max_workers=1,
        pass_threshold=Decimal("0.6"),
        log_level="DEBUG",
        output_directory=temp_dir / "output",
    )


@pytest.fixture
def cli_env(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point cached CLI settings at the temporary directory."""
    output_dir = temp_dir / "output"
    monkeypatch.setenv("GRADER_OUTPUT_DIRECTORY", str(output_dir))
    monkeypatch.setenv("GRADER_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield output_dir
    get_settings.cache_clear()


# ==============================================================================
# File Fixtures
# ==============================================================================


def _write_json(path: Path, data: Any) -> Path:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def questions_file(temp_dir: Path) -> Path:
    """Question bank export in the store's camelCase format."""
    return _write_json(
        temp_dir / "questions.json",
        {
            "id": "bank-1",
            "name": "General Science",
            "questions": [
                {
                    "id": "q-mcq-1",
                    "type": "mcq",
                    "title": "Which planet is known as the Red Planet?",
                    "points": 5,
                    "difficultyLevel": "medium",
                    "options": [
                        {"id": "o1", "text": "Venus", "isCorrect": False},
                        {"id": "o2", "text": "Mars", "isCorrect": True},
                    ],
                    "explanation": "Iron oxide.",
                    "createdAt": "2024-01-01T00:00:00Z",
                },
                {
                    "id": "q-essay-1",
                    "type": "essay",
                    "title": "Explain the causes of the seasons on Earth.",
                    "points": 10,
                    "difficultyLevel": "hard",
                },
            ],
        },
    )


@pytest.fixture
def submission_file(temp_dir: Path) -> Path:
    """Submission export with one correct MCQ and one essay."""
    return _write_json(
        temp_dir / "submission.json",
        {
            "id": "attempt-001",
            "testId": "test-42",
            "studentId": "student-7",
            "questionIds": ["q-mcq-1", "q-essay-1"],
            "answers": [
                {"questionId": "q-mcq-1", "selectedOption": 1, "timeSpent": 10, "changeCount": 0},
                {
                    "questionId": "q-essay-1",
                    "textContent": "Axial tilt changes sunlight angles.",
                    "timeSpent": 200,
                    "changeCount": 3,
                    "wasReviewed": True,
                },
            ],
        },
    )


@pytest.fixture
def grades_file(temp_dir: Path) -> Path:
    """Teacher grades for the essay in ``submission_file``."""
    return _write_json(
        temp_dir / "grades.json",
        {"grades": [{"questionId": "q-essay-1", "marksAwarded": 7, "feedback": "Good."}]},
    )
