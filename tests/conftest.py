"""
Module: conftest.py
Description: Shared pytest fixtures for SQS utility tests.

Provides message factories, an in-memory stoppable message source, a
controllable clock, and a mocked SQS client so the pipelines can be
tested without AWS.
"""

import asyncio
from typing import List, Optional, Union
from unittest.mock import AsyncMock, MagicMock

import pytest

from sqs_utility.models.message import Message
from sqs_utility.sqs_queue.sqs import SQSClient

QUEUE_URL = "https://sqs.eu-west-2.amazonaws.com/123456789012/test-queue"


class ListMessageSource:
    """
    In-memory message source with the same contract as CsvMessageReader.

    Items that are exceptions are raised when reached, simulating a
    source failure at that row.
    """

    def __init__(self, items: List[Union[Message, BaseException]]):
        self._items = list(items)
        self._index = 0
        self.stopped = False
        self.emitted = 0

    def stop(self) -> None:
        self.stopped = True

    def __aiter__(self):
        return self

    async def __anext__(self) -> Message:
        await asyncio.sleep(0)

        if self.stopped or self._index >= len(self._items):
            raise StopAsyncIteration

        item = self._items[self._index]
        self._index += 1

        if isinstance(item, BaseException):
            raise item

        self.emitted += 1
        return item


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_message(index: int, **overrides) -> Message:
    """Build a valid received message numbered `index`."""
    fields = {
        "MessageId": f"msg-{index}",
        "Body": f"body {index}",
        "ReceiptHandle": f"rh-{index}",
    }
    fields.update(overrides)
    return Message.model_validate(fields)


def make_messages(count: int, start: int = 1) -> List[Message]:
    return [make_message(i) for i in range(start, start + count)]


@pytest.fixture
def queue_url():
    return QUEUE_URL


@pytest.fixture
def mock_sqs_client():
    """
    Provide a mocked SQSClient.

    Batch operations report full success by default.
    """
    client = AsyncMock(spec=SQSClient)
    client.send_messages.side_effect = lambda messages, queue_url: len(messages)
    client.delete_messages.side_effect = lambda messages, queue_url: len(messages)
    client.change_visibility.side_effect = (
        lambda handles, queue_url, visibility_timeout=0: len(handles)
    )
    client.receive_messages.return_value = []
    return client


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sqs_api():
    """
    Provide a mocked aiobotocore SQS client and a session producing it.

    Returns:
        Tuple of (api mock, session mock)
    """
    api = AsyncMock()
    api.get_paginator = MagicMock()

    session = MagicMock()
    context = session.client.return_value
    context.__aenter__.return_value = api
    context.__aexit__.return_value = False

    return api, session


def sample_attributes(binary: Optional[str] = None) -> dict:
    attributes = {
        "color": {"DataType": "String", "StringValue": "red"},
        "count": {"DataType": "Number", "StringValue": "3"},
    }
    if binary is not None:
        attributes["blob"] = {"DataType": "Binary", "BinaryValue": binary}
    return attributes
