"""
Pydantic models for the Submission Grader.

These models define the schemas for:
- Question bank entries (multiple-choice and essay) and student answers
- Per-question grading results and the aggregate grading outcome
- Manual grading input, score summaries and audit records

Field names are snake_case in Python and camelCase on the wire, matching
the documents stored by the platform. Both spellings are accepted on input.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from hashlib import sha256
from typing import Annotated, Any, Literal
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

NO_ANSWER_TEXT = "No answer selected"
NO_CORRECT_OPTION_TEXT = "No correct option defined"


def _to_decimal(v: Any) -> Any:
    """Convert numeric values to Decimal for precision."""
    if v is None or isinstance(v, Decimal):
        return v
    if isinstance(v, (int, float, str)) and not isinstance(v, bool):
        return Decimal(str(v))
    return v


class WireModel(BaseModel):
    """Immutable base model using camelCase aliases on the wire."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ==============================================================================
# Question Bank Models
# ==============================================================================


class QuestionType(str, Enum):
    """Variant tag of a question."""

    MCQ = "mcq"
    ESSAY = "essay"


class DifficultyLevel(str, Enum):
    """Authoring difficulty of a question."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionOption(WireModel):
    """A single option of a multiple-choice question."""

    text: str = ""
    is_correct: bool = False


class BaseQuestion(WireModel):
    """Fields shared by every question variant."""

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque question identifier",
    )

    title: str = Field(
        default="",
        description="Prompt text, reported as questionText in results",
    )

    points: Decimal = Field(
        default=Decimal(0),
        ge=0,
        description="Maximum marks obtainable for this question",
    )

    topic: str | None = None

    difficulty_level: DifficultyLevel = DifficultyLevel.MEDIUM

    @field_validator("points", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        """Convert numeric values to Decimal for precision."""
        return Decimal(0) if v is None else _to_decimal(v)

    @field_validator("difficulty_level", mode="before")
    @classmethod
    def default_difficulty(cls, v: Any) -> Any:
        """Treat a null or blank difficulty as medium."""
        return DifficultyLevel.MEDIUM if v is None or v == "" else v


class MCQQuestion(BaseQuestion):
    """
    A multiple-choice question graded automatically.

    The correct option is named either by ``correct_answer`` (a letter,
    ``A`` being the first option) or by the ``is_correct`` flags.
    """

    type: Literal["mcq"] = "mcq"

    options: tuple[QuestionOption, ...] = Field(
        default=(),
        description="Ordered answer options",
    )

    correct_answer: str | None = Field(
        default=None,
        description="Letter of the correct option (A, B, C, ...)",
    )

    explanation: str | None = None


class EssayQuestion(BaseQuestion):
    """A free-text question graded manually by a teacher."""

    type: Literal["essay"] = "essay"

    suggested_answer: str | None = Field(
        default=None,
        description="Reference answer shown to graders; never used for scoring",
    )


Question = Annotated[MCQQuestion | EssayQuestion, Field(discriminator="type")]


# ==============================================================================
# Submission Models
# ==============================================================================


class Answer(WireModel):
    """
    A student's final answer to one question.

    Behavioral metadata defaults to zero/false when absent.
    """

    question_id: str = Field(..., min_length=1)

    selected_option: int | None = Field(
        default=None,
        description="Zero-based option index for MCQ; negative means no answer",
    )

    text_content: str | None = Field(
        default=None,
        description="Free text for essay questions",
    )

    time_spent: int = Field(default=0, ge=0, description="Seconds spent on the question")

    change_count: int = Field(default=0, ge=0, description="Times the answer was modified")

    was_reviewed: bool = False

    @field_validator("time_spent", "change_count", mode="before")
    @classmethod
    def default_counters(cls, v: Any) -> Any:
        """Treat null counters as zero."""
        return 0 if v is None else v

    @field_validator("was_reviewed", mode="before")
    @classmethod
    def default_flag(cls, v: Any) -> Any:
        """Treat a null review flag as false."""
        return False if v is None else v


class Submission(WireModel):
    """A finalized submission: the test's question order plus the answers given."""

    id: str = Field(..., min_length=1)

    test_id: str | None = None

    student_id: str | None = None

    question_ids: tuple[str, ...] = Field(
        default=(),
        description="Question ids in the order the test presented them",
    )

    answers: tuple[Answer, ...] = ()


# ==============================================================================
# Grading Result Models
# ==============================================================================


class MCQResult(WireModel):
    """
    Auto-graded result for one multiple-choice question.

    ``selected_option`` and ``correct_option`` are coerced to 0 when there is
    no answer or no determinable correct option; ``answered`` and
    ``correct_option_defined`` tell those cases apart from option A.
    """

    question_id: str
    question_text: str
    selected_option: int
    selected_option_text: str
    answered: bool
    correct_option: int
    correct_option_text: str
    correct_option_defined: bool
    is_correct: bool
    marks_awarded: Decimal
    max_marks: Decimal
    explanation: str | None = None
    difficulty_level: DifficultyLevel = DifficultyLevel.MEDIUM
    topic: str | None = None

    @field_validator("marks_awarded", "max_marks", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        """Convert numeric values to Decimal for precision."""
        return _to_decimal(v)

    @model_validator(mode="after")
    def validate_binary_marks(self) -> "MCQResult":
        """Multiple-choice marks are all or nothing."""
        if self.marks_awarded not in (Decimal(0), self.max_marks):
            raise ValueError(
                f"MCQ marks ({self.marks_awarded}) must be 0 or max marks ({self.max_marks})"
            )
        return self


class EssayResult(WireModel):
    """
    Result for one essay question.

    The grading fields stay unset until a teacher grades the essay.
    """

    question_id: str
    question_text: str
    student_answer: str = ""
    word_count: int = Field(default=0, ge=0)
    max_marks: Decimal
    marks_awarded: Decimal | None = None
    feedback: str | None = None
    graded_by: str | None = None
    graded_at: datetime | None = None

    @field_validator("marks_awarded", "max_marks", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        """Convert numeric values to Decimal for precision."""
        return _to_decimal(v)

    @model_validator(mode="after")
    def validate_points_range(self) -> "EssayResult":
        """Ensure awarded marks are within [0, max_marks]."""
        if self.marks_awarded is not None and not (
            Decimal(0) <= self.marks_awarded <= self.max_marks
        ):
            raise ValueError(
                f"Awarded marks ({self.marks_awarded}) must be between 0 and "
                f"max marks ({self.max_marks})"
            )
        return self

    @computed_field(alias="isGraded")  # type: ignore[prop-decorator]
    @property
    def is_graded(self) -> bool:
        """Whether a teacher has awarded marks."""
        return self.marks_awarded is not None


class FinalAnswer(WireModel):
    """Unified per-question view merging answer metadata with its outcome."""

    question_id: str
    question_type: QuestionType
    question_text: str
    question_marks: Decimal
    selected_option: int | None = None
    selected_option_text: str | None = None
    correct_option_text: str | None = None
    text_content: str | None = None
    time_spent: int = 0
    change_count: int = 0
    was_reviewed: bool = False
    is_correct: bool | None = None
    marks_awarded: Decimal | None = None

    @field_validator("question_marks", "marks_awarded", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        """Convert numeric values to Decimal for precision."""
        return _to_decimal(v)


class AnomalyKind(str, Enum):
    """Non-fatal data problems met while grading."""

    MISSING_QUESTION = "missing_question"
    UNDETERMINABLE_CORRECT_OPTION = "undeterminable_correct_option"
    INVALID_CORRECT_ANSWER = "invalid_correct_answer"
    DUPLICATE_ANSWER = "duplicate_answer"


class GradingAnomaly(WireModel):
    """A non-fatal anomaly recorded during grading."""

    kind: AnomalyKind
    question_id: str
    detail: str = ""


class GradingOutcome(WireModel):
    """
    Aggregate grading result for one submission.

    Scores and the pending flag are derived from the per-question results,
    so an outcome updated by manual grading stays consistent.
    """

    mcq_results: tuple[MCQResult, ...] = ()
    essay_results: tuple[EssayResult, ...] = ()
    final_answers: tuple[FinalAnswer, ...] = ()
    anomalies: tuple[GradingAnomaly, ...] = ()

    @computed_field(alias="autoGradedScore")  # type: ignore[prop-decorator]
    @property
    def auto_graded_score(self) -> Decimal:
        """Sum of marks from multiple-choice questions."""
        return sum((r.marks_awarded for r in self.mcq_results), Decimal(0))

    @computed_field(alias="manualGradingPending")  # type: ignore[prop-decorator]
    @property
    def manual_grading_pending(self) -> bool:
        """True while any essay still awaits a teacher's marks."""
        return any(r.marks_awarded is None for r in self.essay_results)

    @computed_field(alias="manualScore")  # type: ignore[prop-decorator]
    @property
    def manual_score(self) -> Decimal:
        """Sum of marks awarded so far to essay questions."""
        return sum(
            (r.marks_awarded for r in self.essay_results if r.marks_awarded is not None),
            Decimal(0),
        )

    @computed_field(alias="maxScore")  # type: ignore[prop-decorator]
    @property
    def max_score(self) -> Decimal:
        """Sum of maximum marks over every graded question."""
        return sum((r.max_marks for r in self.mcq_results), Decimal(0)) + sum(
            (r.max_marks for r in self.essay_results), Decimal(0)
        )


# ==============================================================================
# Manual Grading and Summary Models
# ==============================================================================


class EssayGrade(WireModel):
    """Marks and feedback a teacher gives to one essay answer."""

    question_id: str = Field(..., min_length=1)

    marks_awarded: Decimal = Field(..., ge=0)

    feedback: str = ""

    @field_validator("marks_awarded", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        """Convert numeric values to Decimal for precision."""
        return _to_decimal(v)


class PassStatus(str, Enum):
    """Overall verdict for a submission."""

    PASSED = "passed"
    FAILED = "failed"
    PENDING_REVIEW = "pending_review"


class ScoreSummary(WireModel):
    """Totals, percentage and verdict derived from an outcome."""

    auto_graded_score: Decimal
    manual_score: Decimal
    total_score: Decimal
    max_score: Decimal
    percentage: int = Field(..., ge=0)
    pass_status: PassStatus


class SubmissionStatistics(WireModel):
    """Answering behavior across a submission."""

    questions_attempted: int = Field(default=0, ge=0)
    questions_skipped: int = Field(default=0, ge=0)
    questions_reviewed: int = Field(default=0, ge=0)
    total_changes: int = Field(default=0, ge=0)


# ==============================================================================
# Audit Models
# ==============================================================================


class GradingAudit(WireModel):
    """
    Audit record for reproducibility.

    Contains hashes of inputs and outputs so that re-grading the same
    submission can be verified to produce the same outcome.
    """

    audit_id: UUID = Field(
        default_factory=uuid4,
        description="Unique identifier for this audit record",
    )

    submission_id: str | None = None

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp of the grading operation",
    )

    answers_hash: str = Field(..., description="SHA-256 hash of the submitted answers")

    questions_hash: str = Field(..., description="SHA-256 hash of the question set")

    outcome_hash: str = Field(..., description="SHA-256 hash of the grading outcome")

    question_count: int = Field(..., ge=0)

    @staticmethod
    def compute_hash(content: str) -> str:
        """Compute SHA-256 hash of content."""
        return sha256(content.encode("utf-8")).hexdigest()
