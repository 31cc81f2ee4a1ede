"""
Models package for the Submission Analyzer service.

This package contains SQLAlchemy ORM models and Pydantic DTOs.
"""

# Ensure all ORM models are registered with the Base metadata when this package is imported.
from .base import Base
from .analysis_result_orm import AnalysisResultORM
from .revision_set_orm import RevisionSetORM

from .analysis_kinds import AnalysisKind
from .dtos import (
    ACCEPTED_STATUS,
    AggregateAnalysis,
    AnnotatedSubmission,
    ComplexityAnnotation,
    DeepAnalysis,
    PatternInfo,
    ProblemToCheck,
    RevisionEntry,
    RevisionSet,
    Submission,
    SubmissionFeedback,
    SubmissionsPage,
)

__all__ = [
    # Base
    "Base",
    # ORMs
    "AnalysisResultORM",
    "RevisionSetORM",
    # Kinds
    "AnalysisKind",
    # DTOs
    "ACCEPTED_STATUS",
    "AggregateAnalysis",
    "AnnotatedSubmission",
    "ComplexityAnnotation",
    "DeepAnalysis",
    "PatternInfo",
    "ProblemToCheck",
    "RevisionEntry",
    "RevisionSet",
    "Submission",
    "SubmissionFeedback",
    "SubmissionsPage",
]
