"""
Module: csv_io/writer.py
Description: CSV message sink for list/extract runs.

Writes received messages to a new CSV file. Message attributes are
stored as one JSON field (binary values as base64 text); columns for
FIFO queues are added when the first message written is from a FIFO
queue.
"""

import base64
import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sqs_utility.models.message import CSV_FIELDS, FIFO_CSV_FIELDS, Message
from sqs_utility.utils.logger import get_logger

logger = get_logger(__name__)


def _encode_binary(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_csv_row(message: Message) -> Dict[str, str]:
    """Convert a Message to a CSV row keyed by column name."""
    fields = message.model_dump(by_alias=True)

    attributes = fields.pop("MessageAttributes", None)
    row = {key: '' if value is None else str(value) for key, value in fields.items()}
    row["MessageAttributes"] = (
        json.dumps(attributes, default=_encode_binary) if attributes is not None else ''
    )
    return row


class CsvMessageWriter:
    """
    Write messages to a new CSV file.

    Refuses to overwrite an existing file.

    Example:
        >>> with CsvMessageWriter("backup.csv") as writer:
        ...     await receiver.receive_messages(queue_url, writer.write, False)
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        """
        Create the output file.

        Args:
            path: CSV file to create
            encoding: File encoding

        Raises:
            FileExistsError: If the file already exists
        """
        if not path:
            raise ValueError("path must be a non-empty string or Path")

        self.path = Path(path)
        if self.path.exists():
            raise FileExistsError(f"{self.path} already exists")

        self._file = open(self.path, 'x', newline='', encoding=encoding)
        self._writer: Optional[csv.DictWriter] = None
        self.row_count = 0

    def write(self, messages: List[Message]) -> None:
        """
        Append messages to the file, in order.

        Args:
            messages: Messages to write
        """
        if self._file is None:
            raise ValueError(f"{self.path} is closed")

        for message in messages:
            if self._writer is None:
                fieldnames = FIFO_CSV_FIELDS if message.is_fifo else CSV_FIELDS
                self._writer = csv.DictWriter(self._file, fieldnames=fieldnames, extrasaction='ignore')
                self._writer.writeheader()
            self._writer.writerow(to_csv_row(message))
            self.row_count += 1

        self._file.flush()

    def close(self) -> None:
        """Close the file."""
        if self._file is not None:
            self._file.close()
            self._file = None
            logger.debug("CSV file closed", path=str(self.path), row_count=self.row_count)

    def __enter__(self) -> "CsvMessageWriter":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
