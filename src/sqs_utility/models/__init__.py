"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains all data models used by the SQS utility:
- Message: One queue message or CSV row
- MessageAttribute: Typed message attribute value
- ReceiveCounts / ModifyCounts: Per-run counters

All models are exported here for convenient importing.
"""

from .message import CSV_FIELDS, FIFO_CSV_FIELDS, Message, MessageAttribute
from .results import ModifyCounts, ReceiveCounts

__all__ = [
    "CSV_FIELDS",
    "FIFO_CSV_FIELDS",
    "Message",
    "MessageAttribute",
    "ModifyCounts",
    "ReceiveCounts",
]
