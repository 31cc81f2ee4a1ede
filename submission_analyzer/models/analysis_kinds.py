"""
The closed set of analysis result kinds that can be cached.

Each kind names its store collection, the DTO used to decode stored payloads
and the predicate deciding whether a stored payload counts as present.
"""
from enum import Enum
from typing import Callable, Type

from pydantic import BaseModel

from .dtos import AggregateAnalysis, DeepAnalysis, PatternInfo, SubmissionFeedback


class AnalysisKind(Enum):
    """
    Cacheable analysis kinds.

    Only SUBMISSION_FEEDBACK and DEEP_ANALYSIS are cached by the pipeline.
    PATTERN_INFO and AGGREGATE_ANALYSIS are reserved: pattern info and the
    overall report are always computed live, but their shapes keep a
    collection and presence check so a store holding them can be read.
    """

    SUBMISSION_FEEDBACK = (
        "submissionFeedback",
        SubmissionFeedback,
        lambda r: r.code_style_and_readability != "",
    )
    DEEP_ANALYSIS = (
        "analyseSubmission",
        DeepAnalysis,
        lambda r: r.optimal_code != "",
    )
    PATTERN_INFO = (
        "patternInfo",
        PatternInfo,
        lambda r: r.template != "",
    )
    AGGREGATE_ANALYSIS = (
        "overallAnalysis",
        AggregateAnalysis,
        lambda r: len(r.strengths) > 0,
    )

    def __init__(self, collection: str, model: Type[BaseModel], is_present: Callable[[BaseModel], bool]):
        self.collection = collection
        self.model = model
        self._is_present = is_present

    def is_present(self, result: BaseModel) -> bool:
        return self._is_present(result)
