"""
Module: batch_helpers.py
Description: Utility functions for SQS batch operations.

SQS batch calls (send, delete, change visibility, receive) accept at
most ten entries. These helpers check batch sizes and describe which
source rows a batch covers.

Key Components:
- SQS_BATCH_SIZE: Hard per-call entry limit
- validate_batch_size(): Validate batch size constraints
- format_rows(): Describe a row range for diagnostics

Dependencies: typing
"""

from typing import List, Optional, Any

SQS_BATCH_SIZE = 10


def validate_batch_size(items: List[Any], max_size: int = SQS_BATCH_SIZE) -> None:
    """
    Validate that a batch is non-empty and doesn't exceed the maximum size.

    Args:
        items: List of items to validate
        max_size: Maximum allowed batch size

    Raises:
        ValueError: If batch is empty or exceeds maximum

    Example:
        >>> validate_batch_size([1, 2, 3], 5)  # OK
        >>> validate_batch_size([1, 2, 3], 2)  # Raises ValueError
    """
    if not isinstance(items, list):
        raise ValueError("items must be a list")
    if not items:
        raise ValueError("batch cannot be empty")
    if len(items) > max_size:
        raise ValueError(f"batch size cannot exceed {max_size} items")


def format_rows(batch_start: Optional[int], batch_end: Optional[int], read_count: int) -> str:
    """
    Describe the source rows an error applies to.

    Args:
        batch_start: First row of the failed batch, or None if unknown
        batch_end: Last row of the failed batch, or None if unknown
        read_count: Rows read from the source so far

    Returns:
        'row batch S-E' when the range is known, otherwise 'row N'
        where N is the row being read when the failure occurred

    Example:
        >>> format_rows(11, 20, 25)
        'row batch 11-20'
        >>> format_rows(None, None, 7)
        'row 8'
    """
    if batch_start is not None and batch_end is not None:
        return f"row batch {batch_start}-{batch_end}"
    return f"row {read_count + 1}"
