"""
Question lookup against the question bank.

The grading engine only needs a way to fetch question definitions by id.
Stores limit how many ids one query may name, so lookups are split into
batches and the results merged. Result order is not guaranteed; the engine
re-sorts by the submission's question order.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Protocol, Sequence

from loguru import logger

from submission_grader.config import Settings, get_settings
from submission_grader.models import EssayQuestion, MCQQuestion

QuestionRecord = MCQQuestion | EssayQuestion

# Store limit on ids per "in" query
MAX_BATCH_SIZE = 10


class QuestionLookupError(Exception):
    """Raised when the question store cannot be queried."""

    def __init__(
        self,
        message: str,
        question_ids: Sequence[str] = (),
        cause: Exception | None = None,
    ):
        self.question_ids = tuple(question_ids)
        self.cause = cause
        super().__init__(message)


class QuestionLookup(Protocol):
    """Fetches question definitions for a set of ids."""

    def fetch_questions(self, ids: Sequence[str]) -> Sequence[QuestionRecord]:
        """Return the questions that exist among ``ids``, in any order."""
        ...


class QuestionStore(Protocol):
    """A question store answering one bounded batch query at a time."""

    def fetch_batch(self, ids: Sequence[str]) -> Sequence[QuestionRecord]:
        """Return the questions matching at most ``MAX_BATCH_SIZE`` ids."""
        ...


class InMemoryQuestionStore:
    """
    Dict-backed question store.

    Enforces the same batch limit as the document store and records every
    batch it receives.
    """

    def __init__(self, questions: Iterable[QuestionRecord], batch_limit: int = MAX_BATCH_SIZE):
        self._questions: dict[str, QuestionRecord] = {q.id: q for q in questions}
        self._batch_limit = batch_limit
        self.calls: list[tuple[str, ...]] = []

    def fetch_batch(self, ids: Sequence[str]) -> Sequence[QuestionRecord]:
        if len(ids) > self._batch_limit:
            raise ValueError(
                f"Batch of {len(ids)} ids exceeds the store limit of {self._batch_limit}"
            )
        self.calls.append(tuple(ids))
        return [self._questions[i] for i in ids if i in self._questions]

    def __len__(self) -> int:
        return len(self._questions)


class BatchedQuestionLookup:
    """
    Question lookup that splits requests into store-sized batches.

    Duplicate ids are requested once. Ids the store does not know are
    simply absent from the result. Any store failure is wrapped in
    QuestionLookupError and is not retried.
    """

    def __init__(
        self,
        store: QuestionStore,
        batch_size: int | None = None,
        max_workers: int | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the lookup.

        Args:
            store: The question store to query.
            batch_size: Ids per store query. Uses settings if not provided.
            max_workers: Batches fetched in parallel. Uses settings if not provided.
            settings: Configuration settings. Uses global settings if not provided.
        """
        if batch_size is None or max_workers is None:
            settings = settings or get_settings()
            batch_size = batch_size or settings.question_batch_size
            max_workers = max_workers or settings.lookup_max_workers
        self._store = store
        self._batch_size = batch_size
        self._max_workers = max_workers

        if not 1 <= self._batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")

    def fetch_questions(self, ids: Sequence[str]) -> Sequence[QuestionRecord]:
        """
        Fetch every question named in ``ids``.

        Args:
            ids: Question ids, possibly with duplicates.

        Returns:
            The found questions, each once, in no guaranteed order.

        Raises:
            QuestionLookupError: If any store query fails.
        """
        unique_ids = list(dict.fromkeys(ids))
        batches = [
            unique_ids[i : i + self._batch_size]
            for i in range(0, len(unique_ids), self._batch_size)
        ]
        if not batches:
            return []

        logger.debug(
            "Fetching questions",
            requested=len(ids),
            unique=len(unique_ids),
            batches=len(batches),
        )

        if self._max_workers > 1 and len(batches) > 1:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(batches))) as pool:
                results = list(pool.map(self._fetch_batch, batches))
        else:
            results = [self._fetch_batch(batch) for batch in batches]

        found: dict[str, QuestionRecord] = {}
        for batch_result in results:
            for question in batch_result:
                found.setdefault(question.id, question)
        return list(found.values())

    def _fetch_batch(self, batch: list[str]) -> Sequence[QuestionRecord]:
        """Query the store for one batch, wrapping failures."""
        try:
            return self._store.fetch_batch(batch)
        except Exception as e:
            logger.error("Question batch fetch failed", question_ids=batch, error=str(e))
            raise QuestionLookupError(
                f"Failed to fetch questions {batch}: {e}",
                question_ids=batch,
                cause=e,
            ) from e
