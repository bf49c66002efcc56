"""
Module: exceptions.py
Description: Exception types raised by the SQS utility pipelines.

Key Components:
- SqsUtilityError: Base class for utility-specific failures
- VisibilityTimeoutTooLowError: Receive requested below the SQS minimum
- BatchError: A batch submission failed; carries the source row range
- AbortedError: A load/delete run was aborted by a source failure
"""

from typing import Optional


class SqsUtilityError(Exception):
    """Base class for SQS utility errors."""


class VisibilityTimeoutTooLowError(SqsUtilityError, ValueError):
    """Raised when a receive asks for less than the minimum visibility timeout."""

    def __init__(self, visibility_timeout: int, minimum: int):
        super().__init__("Visibility timeout too low")
        self.visibility_timeout = visibility_timeout
        self.minimum = minimum


class BatchError(SqsUtilityError):
    """
    A send/delete batch call failed as a whole.

    Attributes:
        batch_start: First source row (1-based) covered by the batch
        batch_end: Last source row covered by the batch
        cause: The transport exception that rejected the call
    """

    def __init__(self, cause: BaseException, batch_start: int, batch_end: int):
        super().__init__(str(cause))
        self.cause = cause
        self.batch_start = batch_start
        self.batch_end = batch_end


class AbortedError(SqsUtilityError):
    """
    A load/delete run did not consume its whole source.

    Raised after every in-flight batch has settled, so counters read
    from the pipeline afterwards are final.
    """

    def __init__(self, error: BaseException):
        super().__init__(f"Aborted: {error}")
        self.error: Optional[BaseException] = error
