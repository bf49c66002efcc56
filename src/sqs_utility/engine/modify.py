"""
Module: engine/modify.py
Description: Stream messages from a source into SQS send or delete batches.

Each message read from the source is passed through the message
processor and validated, then collected into batches of ten. Full
batches are submitted as background tasks while reading continues;
the final partial batch is submitted when the source ends.

Once reading stops, every outstanding batch is allowed to finish before
the run is settled, so a source failure never discards batches already
in flight and a batch failure is never hidden behind a later source
failure. Every failure is logged with the source rows it covers.
"""

import asyncio
import re
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Protocol

from sqs_utility.exceptions import AbortedError, BatchError
from sqs_utility.models.message import Message
from sqs_utility.models.results import ModifyCounts
from sqs_utility.processors import MessageProcessor, apply_processor
from sqs_utility.sqs_queue.sqs import SQSClient
from sqs_utility.utils.batch_helpers import SQS_BATCH_SIZE, format_rows
from sqs_utility.utils.completion import CompletionGate
from sqs_utility.utils.logger import get_logger

logger = get_logger(__name__)

MESSAGE_ID_PATTERN = re.compile(r'[a-z0-9_-]{1,80}', re.IGNORECASE)

BatchOperation = Callable[[List[Message], str], Awaitable[int]]


class MessageSource(Protocol):
    """Asynchronous message source that can be told to stop early."""

    def __aiter__(self) -> AsyncIterator[Message]:
        ...

    def stop(self) -> None:
        """Stop emitting messages; iteration ends without an error."""
        ...


def is_empty_message(message: Message) -> bool:
    message_id = message.message_id
    return message_id is None or (isinstance(message_id, str) and not message_id.strip())


def is_invalid_message(message: Message) -> bool:
    message_id = message.message_id
    return not isinstance(message_id, str) or MESSAGE_ID_PATTERN.fullmatch(message_id) is None


def validate_message(message: Message) -> Optional[str]:
    """
    Check a message before it may join a batch.

    Returns:
        None if the message is usable, otherwise the diagnostic prefix
        for the first check that failed
    """
    if is_empty_message(message):
        return "Ignoring empty message"
    if is_invalid_message(message):
        return "Ignoring invalid message"
    if message.has_invalid_attributes():
        return "Ignoring message due to invalid message attributes"
    return None


class MessageModifier:
    """
    Modify engine for load/delete runs.

    Attributes:
        counts: Counters for the current run, valid after success or failure

    Example:
        >>> modifier = MessageModifier(sqs_client)
        >>> async with CsvMessageReader("messages.csv") as reader:
        ...     counts = await modifier.modify_messages(queue_url, reader, False)
    """

    def __init__(
        self,
        sqs_client: SQSClient,
        message_processor: Optional[MessageProcessor] = None
    ):
        """
        Initialize the modify engine.

        Args:
            sqs_client: Queue transport
            message_processor: Optional filter/transform hook
        """
        self._sqs = sqs_client
        self._message_processor = message_processor
        self._pending: List[asyncio.Task] = []
        self._gate = CompletionGate()
        self._batch_failure: Optional[BatchError] = None
        self.counts = ModifyCounts()

    async def modify_messages(
        self,
        queue_url: str,
        reader: MessageSource,
        delete_from_queue: bool
    ) -> ModifyCounts:
        """
        Send (or delete) every valid message from `reader`.

        Args:
            queue_url: URL of the SQS queue
            reader: Message source
            delete_from_queue: Delete messages by receipt handle instead
                of sending them

        Returns:
            The run counters

        Raises:
            AbortedError: If the source failed or a batch failure stopped
                it; raised only after all submitted batches have settled
        """
        self._reset()
        operation = self._sqs.delete_messages if delete_from_queue else self._sqs.send_messages
        batch: List[Message] = []
        batch_start = batch_end = 0
        source_error: Optional[BaseException] = None

        try:
            async for raw_message in reader:
                if self._batch_failure is not None:
                    break

                self.counts.read += 1
                row = self.counts.read

                message = apply_processor(self._message_processor, raw_message)
                if message is None:
                    continue

                self.counts.filtered += 1

                problem = validate_message(message)
                if problem:
                    logger.error(f"{problem} (row {row})", row=row, queue_url=queue_url)
                    continue

                if not batch:
                    batch_start = row
                batch_end = row
                batch.append(message)

                if len(batch) == SQS_BATCH_SIZE:
                    self._submit(operation, batch, batch_start, batch_end, queue_url, reader)
                    batch = []

        except Exception as e:
            source_error = e

        else:
            if self._batch_failure is not None:
                source_error = self._batch_failure
            elif batch:
                self._submit(operation, batch, batch_start, batch_end, queue_url, reader)

        await self.settle(source_error)
        return self.counts

    def _reset(self) -> None:
        """Start a fresh run: new counters, pending list and settle gate."""
        self._pending = []
        self._gate = CompletionGate()
        self._batch_failure = None
        self.counts = ModifyCounts()

    def settle(self, error: Optional[BaseException] = None) -> asyncio.Future:
        """
        Wait for every submitted batch, then decide the run outcome.

        Only the first call has any effect; later calls return the same
        future whatever error they pass.

        Args:
            error: Source-level failure, if any

        Returns:
            Future that resolves when the run succeeded or raises
            AbortedError when `error` was given
        """
        return self._gate.trigger(self._settle, error)

    def _submit(
        self,
        operation: BatchOperation,
        batch: List[Message],
        batch_start: int,
        batch_end: int,
        queue_url: str,
        reader: MessageSource
    ) -> None:
        task = asyncio.ensure_future(
            self._modify_batch(operation, batch, batch_start, batch_end, queue_url, reader)
        )
        self._pending.append(task)

    async def _modify_batch(
        self,
        operation: BatchOperation,
        batch: List[Message],
        batch_start: int,
        batch_end: int,
        queue_url: str,
        reader: MessageSource
    ) -> int:
        try:
            count = await operation(batch, queue_url)

        except Exception as e:
            failure = BatchError(e, batch_start, batch_end)
            if self._batch_failure is None:
                self._batch_failure = failure
            reader.stop()
            raise failure from e

        self.counts.modified += count
        return count

    async def _settle(self, error: Optional[BaseException]) -> None:
        results = await asyncio.gather(*self._pending, return_exceptions=True)
        failures = [result for result in results if isinstance(result, BaseException)]

        for failure in failures:
            self._log_failure(failure)

        if error is not None and not failures:
            self._log_failure(error)

        logger.info("Modify run complete", aborted=error is not None, **self.counts.model_dump())

        if error is not None:
            raise AbortedError(error) from error

    def _log_failure(self, failure: BaseException) -> None:
        batch_start = getattr(failure, 'batch_start', None)
        batch_end = getattr(failure, 'batch_end', None)
        rows = format_rows(batch_start, batch_end, self.counts.read)
        message = str(failure) or 'Unknown'

        logger.error(
            f"Error ({rows}): {message}",
            batch_start=batch_start,
            batch_end=batch_end,
            error_type=type(failure).__name__
        )
