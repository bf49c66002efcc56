"""
Module: sqs.py
Description: SQS client for batch queue operations.

Handles receiving messages (with all system and message attributes),
sending and deleting messages in batches of up to ten, resetting
message visibility, and queue introspection (list, describe).

Per-entry failures inside a batch call are logged and reflected in
the returned success count; a failure of the call itself is logged
and re-raised.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from aioboto3 import Session
from botocore.exceptions import ClientError

from sqs_utility.exceptions import VisibilityTimeoutTooLowError
from sqs_utility.models.message import Message
from sqs_utility.utils.batch_helpers import SQS_BATCH_SIZE, validate_batch_size
from sqs_utility.utils.logger import get_logger

logger = get_logger(__name__)

MIN_VISIBILITY_TIMEOUT = 1
DEFAULT_WAIT_TIME = 5

DESCRIBE_ATTRIBUTES = [
    'ApproximateNumberOfMessages',
    'ApproximateNumberOfMessagesDelayed',
    'ApproximateNumberOfMessagesNotVisible',
]


def to_date_string(timestamp: Optional[str]) -> Optional[str]:
    """
    Convert an SQS epoch-milliseconds timestamp to ISO 8601 UTC.

    Example:
        >>> to_date_string("1600000000123")
        '2020-09-13T12:26:40.123Z'
    """
    if timestamp is None:
        return None
    milliseconds = int(timestamp)
    moment = datetime.fromtimestamp(milliseconds // 1000, tz=timezone.utc)
    moment += timedelta(milliseconds=milliseconds % 1000)
    return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _reduce_message_attributes(attributes: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Keep only DataType/StringValue/BinaryValue of each received attribute."""
    if not attributes:
        return None

    return {
        name: {
            key: attribute[key]
            for key in ('DataType', 'StringValue', 'BinaryValue')
            if attribute.get(key) is not None
        }
        for name, attribute in attributes.items()
    }


def from_sqs_message(sqs_message: Dict[str, Any]) -> Message:
    """Map a receive_message entry to a Message."""
    attributes = sqs_message.get('Attributes', {})
    fields: Dict[str, Any] = {
        'MessageId': sqs_message['MessageId'],
        'SenderId': attributes.get('SenderId'),
        'Sent': to_date_string(attributes.get('SentTimestamp')),
        'FirstReceived': to_date_string(attributes.get('ApproximateFirstReceiveTimestamp')),
        'ReceiveCount': attributes.get('ApproximateReceiveCount'),
        'Body': sqs_message.get('Body'),
        'ReceiptHandle': sqs_message.get('ReceiptHandle'),
    }

    message_attributes = _reduce_message_attributes(sqs_message.get('MessageAttributes'))
    if message_attributes is not None:
        fields['MessageAttributes'] = message_attributes

    # FIFO queues only
    if attributes.get('MessageGroupId') is not None:
        fields['MessageGroupId'] = attributes['MessageGroupId']
        fields['MessageDeduplicationId'] = attributes.get('MessageDeduplicationId')

    return Message.model_validate(fields)


def to_send_entry(message: Message) -> Dict[str, Any]:
    """Build a send_message_batch entry from a Message."""
    entry: Dict[str, Any] = {
        'Id': message.message_id,
        'MessageBody': message.body or '',
    }

    attributes = message.typed_attributes()
    if attributes:
        entry['MessageAttributes'] = {
            name: attribute.to_wire() for name, attribute in attributes.items()
        }

    # FIFO queues only
    if message.message_group_id is not None:
        entry['MessageGroupId'] = message.message_group_id
        if message.message_deduplication_id:
            entry['MessageDeduplicationId'] = message.message_deduplication_id

    return entry


def to_delete_entry(message: Message) -> Dict[str, Any]:
    """Build a delete_message_batch entry from a Message."""
    return {
        'Id': message.message_id,
        'ReceiptHandle': message.receipt_handle,
    }


class SQSClient:
    """
    SQS client for batch queue operations.

    Opens a short-lived aioboto3 client per call, so one SQSClient can
    be shared by concurrent batch submissions.

    Example:
        >>> client = SQSClient(region_name="eu-west-2")
        >>> messages = await client.receive_messages(queue_url, max_number_of_messages=10)
        >>> await client.delete_messages(messages, queue_url)
    """

    def __init__(
        self,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        wait_time: int = DEFAULT_WAIT_TIME,
        session: Optional[Session] = None
    ):
        """
        Initialize SQS client.

        Args:
            region_name: AWS region (defaults to the session's region)
            endpoint_url: Custom endpoint URL, e.g. for localstack
            wait_time: Default long-poll wait time in seconds for receives
            session: Optional pre-built aioboto3 session
        """
        self.region_name = region_name
        self.endpoint_url = endpoint_url
        self.wait_time = wait_time
        self.session = session or Session()

        logger.debug(
            "SQS client initialized",
            region_name=region_name,
            endpoint_url=endpoint_url
        )

    def _client(self):
        return self.session.client(
            'sqs',
            region_name=self.region_name,
            endpoint_url=self.endpoint_url
        )

    async def receive_messages(
        self,
        queue_url: str,
        max_number_of_messages: int = SQS_BATCH_SIZE,
        visibility_timeout: int = 30,
        wait_time: Optional[int] = None
    ) -> List[Message]:
        """
        Receive up to ten messages from a queue.

        The long-poll wait time is capped one second below the visibility
        timeout so received messages cannot reappear mid-call.

        Args:
            queue_url: URL of the SQS queue
            max_number_of_messages: Messages to request (capped at 10)
            visibility_timeout: Seconds received messages stay hidden
            wait_time: Long-poll wait time in seconds (default: the client's)

        Returns:
            Received messages, possibly empty

        Raises:
            VisibilityTimeoutTooLowError: If visibility_timeout is below the minimum
            ClientError: If SQS operation fails
        """
        if visibility_timeout < MIN_VISIBILITY_TIMEOUT:
            raise VisibilityTimeoutTooLowError(visibility_timeout, MIN_VISIBILITY_TIMEOUT)
        if wait_time is None:
            wait_time = self.wait_time

        try:
            async with self._client() as sqs:
                response = await sqs.receive_message(
                    QueueUrl=queue_url,
                    AttributeNames=['All'],
                    MessageAttributeNames=['All'],
                    MaxNumberOfMessages=min(max_number_of_messages, SQS_BATCH_SIZE),
                    VisibilityTimeout=visibility_timeout,
                    WaitTimeSeconds=min(visibility_timeout - MIN_VISIBILITY_TIMEOUT, wait_time)
                )

        except ClientError as e:
            logger.error(
                "Failed to receive messages from SQS",
                queue_url=queue_url,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        messages = [from_sqs_message(raw) for raw in response.get('Messages', [])]

        logger.debug(
            "Messages received from SQS",
            queue_url=queue_url,
            count=len(messages)
        )

        return messages

    async def send_messages(self, messages: List[Message], queue_url: str) -> int:
        """
        Send a batch of messages to a queue.

        Args:
            messages: Up to ten messages; message_id is used as the entry id
            queue_url: URL of the SQS queue

        Returns:
            Number of messages sent successfully

        Raises:
            ValueError: If the batch is empty or too large
            ClientError: If SQS operation fails
        """
        validate_batch_size(messages)
        entries = [to_send_entry(message) for message in messages]

        try:
            async with self._client() as sqs:
                response = await sqs.send_message_batch(QueueUrl=queue_url, Entries=entries)

        except ClientError as e:
            logger.error(
                "Failed to send message batch to SQS",
                queue_url=queue_url,
                batch_size=len(entries),
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        return self._count_successes(response, entries, queue_url, 'send')

    async def delete_messages(self, messages: List[Message], queue_url: str) -> int:
        """
        Delete a batch of messages from a queue by receipt handle.

        Args:
            messages: Up to ten messages carrying receipt handles
            queue_url: URL of the SQS queue

        Returns:
            Number of messages deleted successfully

        Raises:
            ValueError: If the batch is empty or too large
            ClientError: If SQS operation fails
        """
        validate_batch_size(messages)
        entries = [to_delete_entry(message) for message in messages]

        try:
            async with self._client() as sqs:
                response = await sqs.delete_message_batch(QueueUrl=queue_url, Entries=entries)

        except ClientError as e:
            logger.error(
                "Failed to delete message batch from SQS",
                queue_url=queue_url,
                batch_size=len(entries),
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        return self._count_successes(response, entries, queue_url, 'delete')

    async def change_visibility(
        self,
        receipt_handles: List[str],
        queue_url: str,
        visibility_timeout: int = 0
    ) -> int:
        """
        Change the visibility timeout of received messages.

        The default of zero makes the messages visible to other
        consumers immediately.

        Args:
            receipt_handles: Up to ten receipt handles
            queue_url: URL of the SQS queue
            visibility_timeout: New visibility timeout in seconds

        Returns:
            Number of visibility changes that succeeded

        Raises:
            ValueError: If the batch is empty or too large
            ClientError: If SQS operation fails
        """
        validate_batch_size(receipt_handles)
        entries = [
            {
                'Id': str(i),
                'ReceiptHandle': handle,
                'VisibilityTimeout': visibility_timeout,
            }
            for i, handle in enumerate(receipt_handles)
        ]

        try:
            async with self._client() as sqs:
                response = await sqs.change_message_visibility_batch(
                    QueueUrl=queue_url,
                    Entries=entries
                )

        except ClientError as e:
            logger.error(
                "Failed to change message visibility in SQS",
                queue_url=queue_url,
                batch_size=len(entries),
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        return self._count_successes(response, entries, queue_url, 'change visibility of')

    async def list_queues(self) -> List[str]:
        """
        List queue URLs visible to the current credentials.

        Raises:
            ClientError: If SQS operation fails
        """
        queue_urls: List[str] = []

        try:
            async with self._client() as sqs:
                paginator = sqs.get_paginator('list_queues')
                async for page in paginator.paginate():
                    queue_urls.extend(page.get('QueueUrls', []))

        except ClientError as e:
            logger.error(
                "Failed to list SQS queues",
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        return queue_urls

    async def describe_queue(self, queue_url: str) -> Dict[str, str]:
        """
        Fetch approximate message counts for a queue.

        Returns:
            Mapping of ApproximateNumberOfMessages, ...Delayed and
            ...NotVisible to their string values

        Raises:
            ClientError: If SQS operation fails
        """
        try:
            async with self._client() as sqs:
                response = await sqs.get_queue_attributes(
                    QueueUrl=queue_url,
                    AttributeNames=DESCRIBE_ATTRIBUTES
                )

        except ClientError as e:
            logger.error(
                "Failed to describe SQS queue",
                queue_url=queue_url,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        return response.get('Attributes', {})

    @staticmethod
    def _count_successes(
        response: Dict[str, Any],
        entries: List[Dict[str, Any]],
        queue_url: str,
        action: str
    ) -> int:
        failed = response.get('Failed', [])
        for failure in failed:
            logger.error(
                f"Failed to {action} {failure.get('Id')}",
                queue_url=queue_url,
                entry_id=failure.get('Id'),
                error_code=failure.get('Code'),
                error_message=failure.get('Message')
            )
        return len(entries) - len(failed)
