"""
Package: csv_io
Description: CSV file boundary for the SQS utility.

- reader: Async, stoppable message source for load/delete
- writer: Message sink for list/extract
"""

from .reader import CsvMessageReader
from .writer import CsvMessageWriter

__all__ = ["CsvMessageReader", "CsvMessageWriter"]
