"""
Module: utils
Description: Package initialization for utility functions.

This package contains shared helpers used throughout the SQS utility:
- logger: Structured logging configuration and helpers
- batch_helpers: Batch sizing and row range helpers
- completion: One-shot completion gate for run settlement
"""

__all__ = []
