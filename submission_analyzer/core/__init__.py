"""
Core components for the Submission Analysis Service.
"""

from .page_fetcher import PageFetcher
from .partitioning import chunk, partition_accepted
from .annotation_client import AnnotationClient
from .merger import merge
from .analysis_cache import AnalysisCache
from .revision_scheduler import RevisionScheduler
from .pipeline import AnnotationRun, SubmissionAnalysisPipeline

__all__ = [
    "PageFetcher",
    "partition_accepted",
    "chunk",
    "AnnotationClient",
    "merge",
    "AnalysisCache",
    "RevisionScheduler",
    "AnnotationRun",
    "SubmissionAnalysisPipeline",
]
