"""
Error taxonomy for the Submission Analysis Service.

Every error raised by a core component derives from SubmissionAnalyzerError.
Wrapping errors keep the underlying exception on ``cause`` and are raised
with ``raise ... from cause`` so the chain shows up in tracebacks.
"""
from typing import Optional


class SubmissionAnalyzerError(Exception):
    """Base class for all service errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class FetchError(SubmissionAnalyzerError):
    """The judge submission source failed (network, HTTP status or payload)."""


class AnnotationError(SubmissionAnalyzerError):
    """The analysis service failed for one call (one chunk or one problem)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None, chunk_index: Optional[int] = None):
        super().__init__(message, cause)
        self.chunk_index = chunk_index


class CacheError(SubmissionAnalyzerError):
    """The keyed result store could not be read or written."""


class ValidationError(SubmissionAnalyzerError):
    """A revision entry is malformed (missing title or confidence level)."""


class DecodeError(SubmissionAnalyzerError):
    """An external service returned JSON that does not match the expected shape."""
