"""
Annotation Client component for the Submission Analysis Service.

Wraps the Gemini API. Every call sends a system instruction plus a user
prompt, asks for JSON matching a response schema and decodes the reply into
the matching DTO. Decoding only checks required fields; the content itself
is trusted.
"""
import asyncio
import json
import logging
from typing import Any, List, Optional, Sequence, Type, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from submission_analyzer.config.settings import settings
from submission_analyzer.core import prompts
from submission_analyzer.errors import AnnotationError, DecodeError
from submission_analyzer.models.dtos import (
    AggregateAnalysis,
    ComplexityAnnotation,
    DeepAnalysis,
    PatternInfo,
    ProblemToCheck,
    Submission,
    SubmissionFeedback,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def decode_json(text: Optional[str]) -> Any:
    """Parses a JSON reply. Raises DecodeError on empty or malformed text."""
    if not text:
        raise DecodeError("Empty response from analysis service")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError("Analysis service returned malformed JSON", cause=e) from e


def decode_model(data: Any, model: Type[M]) -> M:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise DecodeError(f"Analysis service reply does not match {model.__name__}", cause=e) from e


def decode_annotations(text: Optional[str], expected: int) -> List[ComplexityAnnotation]:
    """
    Decodes a batched complexity reply.

    The reply must be a JSON array with exactly ``expected`` objects; result
    ``j`` describes input item ``j``.
    """
    data = decode_json(text)
    if not isinstance(data, list):
        raise DecodeError(f"Expected a JSON array, got {type(data).__name__}")
    if len(data) != expected:
        raise DecodeError(f"Expected {expected} annotation results, got {len(data)}")
    return [decode_model(item, ComplexityAnnotation) for item in data]


class AnnotationClient:
    """
    Async client for the Gemini analysis service.

    Handles request construction, per-call timeouts and decoding. There is no
    retry logic; every failure surfaces as an AnnotationError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        big_model: Optional[str] = None,
        small_model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[genai.Client] = None,
    ):
        """
        Args:
            api_key: Gemini API key.
            big_model: Model used for single-problem deep work (feedback, deep analysis).
            small_model: Model used for batched and aggregate calls.
            timeout: Per-call timeout in seconds.
            client: Optional pre-built genai client (tests inject a mock here).
        """
        self.big_model = big_model or settings.GEMINI_FLASH_BIG
        self.small_model = small_model or settings.GEMINI_FLASH_SMALL
        self.timeout = timeout or settings.ANNOTATION_REQUEST_TIMEOUT_SECONDS
        self.client = client or genai.Client(api_key=api_key or settings.GEMINI_API_KEY)

    async def _generate(self, model: str, task: str, contents: str, schema: dict) -> Optional[str]:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            system_instruction=prompts.system_instruction(task),
            response_schema=schema,
        )
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(model=model, contents=contents, config=config),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"{task}: analysis service timed out after {self.timeout}s")
            raise AnnotationError(f"{task} timed out after {self.timeout}s", cause=e) from e
        except Exception as e:
            logger.error(f"{task}: error generating content: {e}", exc_info=True)
            raise AnnotationError(f"{task} request failed", cause=e) from e
        return response.text

    async def annotate(self, chunk: Sequence[Submission], chunk_index: Optional[int] = None) -> List[ComplexityAnnotation]:
        """
        Annotates one chunk of accepted submissions.

        Returns:
            One annotation per submission, aligned positionally with ``chunk``.

        Raises:
            AnnotationError: On transport failure, malformed JSON or a result
                             count that differs from the chunk length.
        """
        if not chunk:
            return []
        text = await self._generate(
            self.small_model,
            prompts.HIGH_LEVEL_ANALYSIS,
            prompts.submissions_prompt(chunk),
            prompts.COMPLEXITY_BATCH_SCHEMA,
        )
        try:
            return decode_annotations(text, expected=len(chunk))
        except DecodeError as e:
            logger.error(f"Chunk {chunk_index}: {e}")
            raise AnnotationError("Could not decode complexity annotations", cause=e, chunk_index=chunk_index) from e

    async def _generate_model(self, model: str, task: str, contents: str, schema: dict, result_type: Type[M]) -> M:
        text = await self._generate(model, task, contents, schema)
        try:
            return decode_model(decode_json(text), result_type)
        except DecodeError as e:
            logger.error(f"{task}: {e}")
            raise AnnotationError(f"Could not decode {task} response", cause=e) from e

    async def submission_feedback(self, problem: ProblemToCheck) -> SubmissionFeedback:
        return await self._generate_model(
            self.big_model,
            prompts.SUBMISSION_FEEDBACK,
            prompts.problem_prompt(problem),
            prompts.SUBMISSION_FEEDBACK_SCHEMA,
            SubmissionFeedback,
        )

    async def deep_analysis(self, problem: ProblemToCheck) -> DeepAnalysis:
        return await self._generate_model(
            self.big_model,
            prompts.ANALYSE_SUBMISSION,
            prompts.problem_prompt(problem),
            prompts.DEEP_ANALYSIS_SCHEMA,
            DeepAnalysis,
        )

    async def pattern_info(self, pattern: str, language: str) -> PatternInfo:
        return await self._generate_model(
            self.small_model,
            prompts.PATTERN_INFO,
            prompts.pattern_prompt(pattern, language),
            prompts.PATTERN_INFO_SCHEMA,
            PatternInfo,
        )

    async def overall_analysis(self, submissions: Sequence[Submission]) -> AggregateAnalysis:
        return await self._generate_model(
            self.small_model,
            prompts.OVERALL_ANALYSIS,
            prompts.submissions_prompt(submissions),
            prompts.AGGREGATE_ANALYSIS_SCHEMA,
            AggregateAnalysis,
        )
