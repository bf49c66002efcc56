"""
Package: sqs_utility
Description: Move Amazon SQS messages between queues and CSV files.

Provides batch engines for draining a queue into a file (list/extract)
and streaming a file into send or delete batches (load/delete), plus
queue listing and describe.
"""

__version__ = "0.3.0"
