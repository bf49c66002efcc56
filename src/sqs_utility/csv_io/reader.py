"""
Module: csv_io/reader.py
Description: Asynchronous CSV message source for load/delete runs.

Reads a CSV file with a header row and yields one Message per row,
yielding control to the event loop between rows so submitted batches
make progress while the file is read. The MessageAttributes column
holds JSON; unparseable JSON is logged and passed on as an explicit
null so the load pipeline can drop the row.

File access is synchronous: opening the file and reading a row block
the event loop briefly, which is fine for local files.
"""

import asyncio
import csv
import json
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

from sqs_utility.models.message import Message
from sqs_utility.utils.logger import get_logger

logger = get_logger(__name__)

# Columns whose empty cells are read as "not present"
OPTIONAL_COLUMNS = (
    "SenderId",
    "Sent",
    "FirstReceived",
    "ReceiveCount",
    "ReceiptHandle",
    "MessageGroupId",
    "MessageDeduplicationId",
)


def parse_row(row: Dict[Optional[str], Any], row_number: int) -> Message:
    """
    Convert one CSV row into a Message.

    Args:
        row: Row from csv.DictReader
        row_number: 1-based data row number, for diagnostics

    Returns:
        Message built from the row
    """
    fields = {key: value for key, value in row.items() if key is not None}

    for column in OPTIONAL_COLUMNS:
        if fields.get(column) == '':
            del fields[column]

    attributes = fields.pop("MessageAttributes", None)
    if attributes:
        try:
            fields["MessageAttributes"] = json.loads(attributes)
        except json.JSONDecodeError as e:
            logger.error(
                f"Invalid JSON MessageAttributes (row {row_number}): {e}",
                row=row_number
            )
            fields["MessageAttributes"] = None

    return Message.model_validate(fields)


class CsvMessageReader:
    """
    Stoppable async iterator over the messages in a CSV file.

    The file is opened on first iteration, so a missing or unreadable
    file surfaces as an iteration error like any other source failure.

    Example:
        >>> async with CsvMessageReader("messages.csv") as reader:
        ...     async for message in reader:
        ...         print(message.message_id)
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        """
        Initialize CSV reader.

        Args:
            path: CSV file to read
            encoding: File encoding
        """
        if not path:
            raise ValueError("path must be a non-empty string or Path")

        self.path = Path(path)
        self.encoding = encoding
        self.row_count = 0
        self._file: Optional[TextIO] = None
        self._rows: Optional[csv.DictReader] = None
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """Stop emitting rows; iteration ends at the next step without an error."""
        if not self._stopped:
            logger.debug("CSV reader stopped", path=str(self.path), row_count=self.row_count)
        self._stopped = True

    def close(self) -> None:
        """Close the underlying file."""
        if self._file is not None:
            self._file.close()
            self._file = None
            self._rows = None

    def __aiter__(self) -> "CsvMessageReader":
        return self

    async def __anext__(self) -> Message:
        await asyncio.sleep(0)

        if self._stopped:
            raise StopAsyncIteration

        if self._rows is None:
            self._file = open(self.path, newline='', encoding=self.encoding)
            self._rows = csv.DictReader(self._file)

        try:
            row = next(self._rows)
        except StopIteration:
            self.close()
            raise StopAsyncIteration from None

        self.row_count += 1
        return parse_row(row, self.row_count)

    async def __aenter__(self) -> "CsvMessageReader":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
