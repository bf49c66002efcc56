"""
Module: results.py
Description: Per-run counters for the receive and modify pipelines.

Counters are owned by one pipeline instance for the duration of a run
and stay valid when the run fails, so callers can always report them.
"""

from pydantic import BaseModel, Field


class ReceiveCounts(BaseModel):
    """Counters for a list/extract run."""

    received: int = Field(default=0, ge=0, description="Messages received from the queue")
    filtered: int = Field(default=0, ge=0, description="Messages kept by the message processor")
    written: int = Field(default=0, ge=0, description="Messages passed to the writer")
    deleted: int = Field(default=0, ge=0, description="Messages deleted after writing")

    @property
    def ignored(self) -> int:
        """Messages dropped by the message processor."""
        return self.received - self.filtered

    @property
    def delete_failed(self) -> int:
        """Received messages that were not deleted."""
        return self.received - self.deleted


class ModifyCounts(BaseModel):
    """Counters for a load/delete run."""

    read: int = Field(default=0, ge=0, description="Rows read from the source")
    filtered: int = Field(default=0, ge=0, description="Rows kept by the message processor")
    modified: int = Field(default=0, ge=0, description="Messages sent to or deleted from the queue")

    @property
    def ignored(self) -> int:
        """Rows dropped by the message processor."""
        return self.read - self.filtered

    @property
    def failed(self) -> int:
        """Rows read but not sent/deleted."""
        return self.read - self.modified
