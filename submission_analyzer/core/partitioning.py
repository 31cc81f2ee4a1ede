"""
Filtering and batching helpers for the analysis pipeline.

Both functions are pure: they never mutate their input and keep input order.
"""
from typing import List, Sequence, Tuple, TypeVar

from submission_analyzer.models.dtos import Submission

T = TypeVar("T")


def partition_accepted(submissions: Sequence[Submission]) -> Tuple[List[Submission], List[Submission]]:
    """
    Splits submissions into ``(eligible, excluded)``.

    Eligible submissions have the "Accepted" status and go on to annotation;
    everything else passes through untouched. Order within each partition
    matches the input order.
    """
    eligible: List[Submission] = []
    excluded: List[Submission] = []
    for submission in submissions:
        (eligible if submission.is_accepted else excluded).append(submission)
    return eligible, excluded


def chunk(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """
    Splits ``items`` into consecutive chunks of at most ``batch_size`` items.

    Concatenating the chunks reproduces ``items`` exactly; only the last chunk
    may be shorter.

    Raises:
        ValueError: If ``batch_size`` is not positive.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]
