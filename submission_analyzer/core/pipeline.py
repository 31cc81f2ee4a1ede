"""
Main Pipeline Orchestrator for the Submission Analysis Service.

Coordinates fetching, filtering, batching, annotation and merging of a user's
submissions, and serves the cached single-problem analyses.
"""
import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from submission_analyzer.config.settings import settings
from submission_analyzer.core.analysis_cache import AnalysisCache
from submission_analyzer.core.annotation_client import AnnotationClient
from submission_analyzer.core.merger import merge
from submission_analyzer.core.page_fetcher import PageFetcher
from submission_analyzer.core.partitioning import chunk, partition_accepted
from submission_analyzer.errors import AnnotationError
from submission_analyzer.models.analysis_kinds import AnalysisKind
from submission_analyzer.models.dtos import (
    AggregateAnalysis,
    AnnotatedSubmission,
    ComplexityAnnotation,
    DeepAnalysis,
    PatternInfo,
    ProblemToCheck,
    Submission,
    SubmissionFeedback,
)
from submission_analyzer.storage.keyed_store import SqlAlchemyKeyedStore

logger = logging.getLogger(__name__)


class AnnotationRun(BaseModel):
    """
    Outcome of annotating one batch of fetched submissions.

    When a chunk fails, ``submissions`` holds the annotated items merged before
    the failure plus the excluded (non-accepted) items; the remaining accepted
    items are dropped and counted in ``dropped_count``.
    """
    submissions: List[AnnotatedSubmission]
    annotated_count: int
    excluded_count: int
    dropped_count: int = 0
    failed_chunk: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.failed_chunk is None


class SubmissionAnalysisPipeline:
    """
    Orchestrates the submission analysis pipeline.
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        annotator: Optional[AnnotationClient] = None,
        cache: Optional[AnalysisCache] = None,
        batch_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ):
        """
        Initializes all necessary components for the pipeline.

        Args:
            fetcher: Judge page fetcher.
            annotator: Analysis service client.
            cache: Cache for single-problem analyses.
            batch_size: Number of submissions per annotation call.
            max_concurrency: Maximum number of annotation calls in flight; 1 runs
                             the chunks strictly one after another.

        Raises:
            ValueError: If batch_size or max_concurrency is not positive.
        """
        logger.info("Initializing Submission Analysis Pipeline components...")
        self.batch_size = settings.ANNOTATION_BATCH_SIZE if batch_size is None else batch_size
        self.max_concurrency = settings.ANNOTATION_MAX_CONCURRENCY if max_concurrency is None else max_concurrency
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {self.max_concurrency}")
        self.fetcher = fetcher or PageFetcher()
        self.annotator = annotator or AnnotationClient()
        self.cache = cache or AnalysisCache(SqlAlchemyKeyedStore())
        logger.info("Submission Analysis Pipeline components initialized.")

    async def fetch_and_annotate(self, cookie: str, limit: Optional[int] = None) -> AnnotationRun:
        """
        Fetches up to ``limit`` submissions and annotates the accepted ones.

        Raises:
            FetchError: If fetching fails; nothing is annotated in that case.
        """
        limit = settings.DEFAULT_SUBMISSION_LIMIT if limit is None else limit
        submissions = await self.fetcher.fetch(cookie, limit)
        return await self.annotate_submissions(submissions)

    async def annotate_submissions(self, submissions: Sequence[Submission]) -> AnnotationRun:
        """
        Annotates the accepted submissions chunk by chunk and merges the results.

        A failing chunk stops the run: chunks merged before it are kept, its items
        and all later accepted items are dropped, and excluded items are still
        appended.
        """
        eligible, excluded = partition_accepted(submissions)
        chunks = chunk(eligible, self.batch_size)
        logger.info(
            f"Annotating {len(eligible)} accepted submissions in {len(chunks)} chunk(s) "
            f"of up to {self.batch_size}; {len(excluded)} passed through."
        )

        if self.max_concurrency > 1:
            results_by_chunk, error = await self._annotate_concurrently(chunks)
        else:
            results_by_chunk, error = await self._annotate_sequentially(chunks)

        merged = merge(eligible, results_by_chunk, excluded, self.batch_size)
        annotated_count = len(merged) - len(excluded)
        run = AnnotationRun(
            submissions=merged,
            annotated_count=annotated_count,
            excluded_count=len(excluded),
            dropped_count=len(eligible) - annotated_count,
            failed_chunk=error.chunk_index if error else None,
            error=str(error) if error else None,
        )
        if error:
            logger.warning(
                f"Annotation stopped at chunk {run.failed_chunk}: {run.error}. "
                f"Kept {run.annotated_count} annotated, dropped {run.dropped_count}."
            )
        else:
            logger.info(f"Annotation finished. Annotated: {run.annotated_count}, passed through: {run.excluded_count}")
        return run

    async def _annotate_sequentially(
        self, chunks: List[List[Submission]]
    ) -> Tuple[List[Optional[List[ComplexityAnnotation]]], Optional[AnnotationError]]:
        results: List[Optional[List[ComplexityAnnotation]]] = []
        for index, items in enumerate(chunks):
            try:
                results.append(await self.annotator.annotate(items, chunk_index=index))
            except AnnotationError as e:
                e.chunk_index = index
                results.append(None)
                return results, e
        return results, None

    async def _annotate_concurrently(
        self, chunks: List[List[Submission]]
    ) -> Tuple[List[Optional[List[ComplexityAnnotation]]], Optional[AnnotationError]]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(index: int, items: List[Submission]) -> List[ComplexityAnnotation]:
            async with semaphore:
                return await self.annotator.annotate(items, chunk_index=index)

        outcomes = await asyncio.gather(
            *(run(index, items) for index, items in enumerate(chunks)),
            return_exceptions=True,
        )

        # Results are placed by chunk index, not by completion order.
        results: List[Optional[List[ComplexityAnnotation]]] = []
        first_error: Optional[AnnotationError] = None
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, AnnotationError):
                outcome.chunk_index = index
                first_error = first_error or outcome
                results.append(None)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        return results, first_error

    async def submission_feedback(self, problem: ProblemToCheck) -> Tuple[SubmissionFeedback, bool]:
        """Returns ``(feedback, from_cache)`` for one problem."""
        return await self.cache.get_or_compute(
            AnalysisKind.SUBMISSION_FEEDBACK,
            problem.cache_key,
            lambda: self.annotator.submission_feedback(problem),
        )

    async def analyse_submission(self, problem: ProblemToCheck) -> Tuple[DeepAnalysis, bool]:
        """Returns ``(deep_analysis, from_cache)`` for one problem."""
        return await self.cache.get_or_compute(
            AnalysisKind.DEEP_ANALYSIS,
            problem.cache_key,
            lambda: self.annotator.deep_analysis(problem),
        )

    async def pattern_info(self, pattern: str, language: str) -> PatternInfo:
        return await self.annotator.pattern_info(pattern, language)

    async def overall_analysis(self, cookie: str, limit: Optional[int] = None) -> AggregateAnalysis:
        """Fetches the most recent submissions and asks for an aggregate pattern report."""
        limit = settings.OVERALL_ANALYSIS_LIMIT if limit is None else limit
        submissions = await self.fetcher.fetch(cookie, limit)
        logger.info(f"Running overall analysis over {len(submissions)} submission(s).")
        return await self.annotator.overall_analysis(submissions)

    async def close(self) -> None:
        await self.fetcher.close()


async def main(cookie: str, limit: int) -> AnnotationRun:
    """Runs one fetch-and-annotate cycle and logs the outcome."""
    pipeline = SubmissionAnalysisPipeline()
    try:
        run = await pipeline.fetch_and_annotate(cookie, limit)
        for submission in run.submissions:
            logger.info(
                f"{submission.title} [{submission.status}] "
                f"time {submission.current_time_complexity or '-'} (best {submission.best_time_complexity or '-'}), "
                f"space {submission.current_space_complexity or '-'} (best {submission.best_space_complexity or '-'})"
            )
        return run
    finally:
        await pipeline.close()


if __name__ == "__main__":
    from submission_analyzer.utils.logging_utils import setup_logging

    setup_logging()
    if not settings.JUDGE_SESSION_COOKIE:
        logger.critical("JUDGE_SESSION_COOKIE is not set; cannot fetch submissions.")
        raise SystemExit(1)

    logger.info("Starting Submission Analysis Pipeline (standalone execution)...")
    try:
        asyncio.run(main(settings.JUDGE_SESSION_COOKIE, settings.DEFAULT_SUBMISSION_LIMIT))
    except KeyboardInterrupt:
        logger.info("Submission Analysis Pipeline execution stopped by user (KeyboardInterrupt).")
