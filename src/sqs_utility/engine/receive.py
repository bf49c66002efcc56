"""
Module: engine/receive.py
Description: Drain messages from an SQS queue into a writer.

Receives messages in batches of up to ten until the limit is reached,
the queue runs dry, or the time budget is spent. Each batch is passed
through the message processor and handed to the writer; with
delete_from_queue the written messages are then deleted. Messages that
were received but not deleted are made visible again at the end so
other consumers can pick them up straight away.
"""

import asyncio
import inspect
import math
import time
from typing import Awaitable, Callable, List, Optional, Union

from sqs_utility.models.message import Message
from sqs_utility.models.results import ReceiveCounts
from sqs_utility.processors import MessageProcessor, apply_processor
from sqs_utility.sqs_queue.sqs import MIN_VISIBILITY_TIMEOUT, SQSClient
from sqs_utility.utils.batch_helpers import SQS_BATCH_SIZE
from sqs_utility.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 1000
DEFAULT_TIMEOUT = 30

MessageWriter = Callable[[List[Message]], Union[None, Awaitable[None]]]


class MessageReceiver:
    """
    Receive engine for list/extract runs.

    Attributes:
        limit: Maximum number of messages received in one run
        timeout: Wall-clock seconds allowed for the run
        counts: Counters for the current run, valid after success or failure

    Example:
        >>> receiver = MessageReceiver(sqs_client, limit=500, timeout=60)
        >>> counts = await receiver.receive_messages(queue_url, writer.write, True)
        >>> counts.deleted
        500
    """

    def __init__(
        self,
        sqs_client: SQSClient,
        message_processor: Optional[MessageProcessor] = None,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the receive engine.

        Args:
            sqs_client: Queue transport
            message_processor: Optional filter/transform hook
            limit: Maximum messages to receive (default 1000)
            timeout: Seconds allowed for the whole run (default 30)
            clock: Monotonic clock in seconds

        Raises:
            ValueError: If limit is not a positive integer or timeout is negative
        """
        if limit is None:
            limit = DEFAULT_LIMIT
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValueError("limit must be a positive integer")
        if timeout is None:
            timeout = DEFAULT_TIMEOUT
        if timeout < 0:
            raise ValueError("timeout must not be negative")

        self._sqs = sqs_client
        self._message_processor = message_processor
        self._clock = clock

        self.limit = limit
        self.timeout = timeout
        self.counts = ReceiveCounts()

    async def receive_messages(
        self,
        queue_url: str,
        writer: MessageWriter,
        delete_from_queue: bool
    ) -> ReceiveCounts:
        """
        Drain up to `limit` messages from a queue into `writer`.

        Args:
            queue_url: URL of the SQS queue
            writer: Called once per non-empty batch of kept messages;
                may be a plain function or a coroutine function
            delete_from_queue: Delete messages after they are written

        Returns:
            The run counters

        Raises:
            ClientError: If any queue call fails; the run stops at once.
                A failed visibility reset is raised only after every
                reset has finished
        """
        self.counts = ReceiveCounts()
        receipt_handles: List[List[str]] = []
        end_time = self._clock() + self.timeout

        while True:
            visibility_timeout = math.floor(end_time - self._clock())
            if visibility_timeout < MIN_VISIBILITY_TIMEOUT:
                logger.warning(
                    f"Timeout reached ({self.timeout} seconds)",
                    queue_url=queue_url,
                    received=self.counts.received
                )
                break

            raw_messages = await self._sqs.receive_messages(
                queue_url,
                max_number_of_messages=min(self.limit - self.counts.received, SQS_BATCH_SIZE),
                visibility_timeout=visibility_timeout
            )
            self.counts.received += len(raw_messages)

            messages = [
                message
                for message in (apply_processor(self._message_processor, raw) for raw in raw_messages)
                if message is not None
            ]
            self.counts.filtered += len(messages)

            deleted = 0
            if messages:
                result = writer(messages)
                if inspect.isawaitable(result):
                    await result
                self.counts.written += len(messages)

                if delete_from_queue:
                    deleted = await self._sqs.delete_messages(messages, queue_url)

            self.counts.deleted += deleted

            # Ignored and undeleted messages are still hidden; remember the
            # whole raw batch so it can be released after the loop.
            if deleted < len(raw_messages):
                receipt_handles.append([raw.receipt_handle for raw in raw_messages])

            if not raw_messages or self.counts.received >= self.limit:
                break

        if receipt_handles:
            results = await asyncio.gather(
                *(
                    self._sqs.change_visibility(handles, queue_url, 0)
                    for handles in receipt_handles
                ),
                return_exceptions=True
            )
            failures = [result for result in results if isinstance(result, BaseException)]
            if failures:
                raise failures[0]

        logger.info(
            "Receive run complete",
            queue_url=queue_url,
            **self.counts.model_dump()
        )

        return self.counts
