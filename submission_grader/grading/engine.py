"""
Grading engine - the core orchestrator.

Walks a submission's questions in test order, scores each one against
its question-bank definition and aggregates the results. The scoring
itself is a pure function; question fetching is injected.
"""

import json
from typing import Any, Iterable, Sequence

from loguru import logger as default_logger

from submission_grader.config import Settings, get_settings
from submission_grader.grading.manual import summarize
from submission_grader.grading.scorer import grade_essay, grade_mcq
from submission_grader.models import (
    AnomalyKind,
    Answer,
    EssayQuestion,
    EssayResult,
    FinalAnswer,
    GradingAnomaly,
    GradingAudit,
    GradingOutcome,
    MCQQuestion,
    MCQResult,
    ScoreSummary,
    Submission,
)
from submission_grader.questions.lookup import QuestionLookup, QuestionRecord


def compute_results(
    answers: Sequence[Answer],
    ordered_question_ids: Sequence[str],
    questions: Iterable[QuestionRecord],
    logger: Any = None,
) -> GradingOutcome:
    """
    Grade a submission against already-fetched question definitions.

    Questions missing from ``questions`` are skipped and reported as
    anomalies; unanswered questions are graded as skipped. Nothing here
    raises for bad data, and the same inputs always give the same outcome.

    Args:
        answers: The submitted answers, possibly fewer than the questions.
        ordered_question_ids: Question ids in the order the test presented them.
        questions: Question definitions in any order.
        logger: Optional loguru logger for anomaly reporting.

    Returns:
        The aggregate GradingOutcome.
    """
    log = logger or default_logger
    question_map = {q.id: q for q in questions}

    anomalies: list[GradingAnomaly] = []
    answer_map: dict[str, Answer] = {}
    for answer in answers:
        if answer.question_id in answer_map:
            anomalies.append(
                GradingAnomaly(
                    kind=AnomalyKind.DUPLICATE_ANSWER,
                    question_id=answer.question_id,
                    detail="Several answers share this question id; the last one is graded",
                )
            )
        answer_map[answer.question_id] = answer

    mcq_results: list[MCQResult] = []
    essay_results: list[EssayResult] = []
    final_answers: list[FinalAnswer] = []

    for question_id in ordered_question_ids:
        question = question_map.get(question_id)
        if question is None:
            anomalies.append(
                GradingAnomaly(
                    kind=AnomalyKind.MISSING_QUESTION,
                    question_id=question_id,
                    detail="Question not found in the question bank; skipped",
                )
            )
            continue

        answer = answer_map.get(question_id)

        if isinstance(question, MCQQuestion):
            scored_mcq = grade_mcq(question, answer)
            mcq_results.append(scored_mcq.result)
            final_answers.append(scored_mcq.final_answer)
            anomalies.extend(scored_mcq.anomalies)
        elif isinstance(question, EssayQuestion):
            scored_essay = grade_essay(question, answer)
            essay_results.append(scored_essay.result)
            final_answers.append(scored_essay.final_answer)
        else:
            raise TypeError(f"Unsupported question type: {type(question).__name__}")

    for anomaly in anomalies:
        log.warning(
            "Grading anomaly",
            kind=anomaly.kind.value,
            question_id=anomaly.question_id,
            detail=anomaly.detail,
        )

    return GradingOutcome(
        mcq_results=tuple(mcq_results),
        essay_results=tuple(essay_results),
        final_answers=tuple(final_answers),
        anomalies=tuple(anomalies),
    )


class GradingEngine:
    """
    Grades submissions by fetching their questions and scoring the answers.

    The engine holds no per-submission state, so one instance can grade
    many submissions, concurrently or repeatedly.
    """

    def __init__(
        self,
        lookup: QuestionLookup,
        settings: Settings | None = None,
        logger: Any = None,
    ):
        """
        Initialize the grading engine.

        Args:
            lookup: Source of question definitions.
            settings: Configuration settings. Uses global settings if not provided.
            logger: loguru logger to report through. Defaults to the global logger.
        """
        self._lookup = lookup
        self._settings = settings
        self._logger = (logger or default_logger).bind(component="grading")

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def compute_results(
        self, answers: Sequence[Answer], ordered_question_ids: Sequence[str]
    ) -> GradingOutcome:
        """
        Fetch the referenced questions and grade the answers.

        Args:
            answers: The submitted answers.
            ordered_question_ids: Question ids in test order.

        Returns:
            The aggregate GradingOutcome.

        Raises:
            QuestionLookupError: If the question lookup fails. Not retried.
        """
        questions = list(self._lookup.fetch_questions(ordered_question_ids))
        self._logger.debug(
            "Questions fetched",
            requested=len(ordered_question_ids),
            found=len(questions),
        )
        return compute_results(answers, ordered_question_ids, questions, logger=self._logger)

    def grade(self, submission: Submission) -> tuple[GradingOutcome, GradingAudit]:
        """
        Grade a submission and produce an audit record.

        Args:
            submission: The finalized submission.

        Returns:
            Tuple of (GradingOutcome, GradingAudit).

        Raises:
            QuestionLookupError: If the question lookup fails.
        """
        log = self._logger.bind(submission_id=submission.id)
        questions = list(self._lookup.fetch_questions(submission.question_ids))
        outcome = compute_results(submission.answers, submission.question_ids, questions, logger=log)

        log.info(
            "Submission graded",
            auto_graded_score=str(outcome.auto_graded_score),
            mcq_count=len(outcome.mcq_results),
            essay_count=len(outcome.essay_results),
            anomalies=len(outcome.anomalies),
            manual_grading_pending=outcome.manual_grading_pending,
        )

        return outcome, self._create_audit(submission, questions, outcome)

    def summarize(self, outcome: GradingOutcome) -> ScoreSummary:
        """Summarize an outcome using the configured pass threshold."""
        return summarize(outcome, self.settings.pass_threshold)

    def _create_audit(
        self,
        submission: Submission,
        questions: Sequence[QuestionRecord],
        outcome: GradingOutcome,
    ) -> GradingAudit:
        """
        Create an audit record for the grading operation.

        Args:
            submission: The graded submission.
            questions: The question definitions used.
            outcome: The grading outcome.

        Returns:
            Immutable GradingAudit.
        """
        answers_content = _canonical_json(
            {
                "questionIds": list(submission.question_ids),
                "answers": [a.model_dump(mode="json", by_alias=True) for a in submission.answers],
            }
        )
        questions_content = _canonical_json(
            sorted(
                (q.model_dump(mode="json", by_alias=True) for q in questions),
                key=lambda q: q["id"],
            )
        )
        outcome_content = _canonical_json(outcome.model_dump(mode="json", by_alias=True))

        return GradingAudit(
            submission_id=submission.id,
            answers_hash=GradingAudit.compute_hash(answers_content),
            questions_hash=GradingAudit.compute_hash(questions_content),
            outcome_hash=GradingAudit.compute_hash(outcome_content),
            question_count=len(questions),
        )


def _canonical_json(data: Any) -> str:
    """Serialize data with stable key order for hashing."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
