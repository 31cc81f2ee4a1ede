"""
Merger component for the Submission Analysis Service.

Reassembles chunked annotation results onto their source submissions by
position and re-appends the submissions that were never sent for annotation.
"""
import logging
from typing import List, Optional, Sequence

from submission_analyzer.models.dtos import AnnotatedSubmission, ComplexityAnnotation, Submission

logger = logging.getLogger(__name__)


def merge(
    eligible: Sequence[Submission],
    results_by_chunk: Sequence[Optional[Sequence[ComplexityAnnotation]]],
    excluded: Sequence[Submission],
    batch_size: int,
) -> List[AnnotatedSubmission]:
    """
    Merges annotation results back onto the eligible submissions.

    Result ``j`` of chunk ``i`` annotates ``eligible[i * batch_size + j]``. Chunks
    are merged in chunk order; the first chunk whose result is ``None`` (failed)
    stops the merge, so its items and every later chunk's items are dropped.
    Excluded submissions are appended unchanged afterwards.

    Args:
        eligible: The accepted submissions, in the order they were chunked.
        results_by_chunk: One entry per chunk, ``None`` for a failed chunk.
        excluded: Submissions that were not sent for annotation.
        batch_size: The chunk size used to split ``eligible``.

    Returns:
        Annotated copies of the merged submissions followed by ``excluded``.

    Raises:
        ValueError: If batch_size is not positive or a chunk's result count differs
                    from the number of submissions in that chunk.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    merged: List[AnnotatedSubmission] = []
    for i, results in enumerate(results_by_chunk):
        if results is None:
            dropped = max(len(eligible) - i * batch_size, 0)
            logger.warning(
                f"Chunk {i} failed; dropping {dropped} unmerged submission(s) from chunk {i} onwards."
            )
            break
        start = i * batch_size
        expected = max(min(batch_size, len(eligible) - start), 0)
        if len(results) != expected:
            raise ValueError(f"Chunk {i} has {len(results)} result(s) for {expected} submission(s)")
        for j, annotation in enumerate(results):
            merged.append(eligible[start + j].with_annotation(annotation))

    merged.extend(excluded)
    return merged
