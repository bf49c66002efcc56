"""
Module: test_message.py
Description: Unit tests for message and counter models.
"""

import pytest
from pydantic import ValidationError

from sqs_utility.models.message import Message, MessageAttribute
from sqs_utility.models.results import ModifyCounts, ReceiveCounts


class TestMessage:
    """Test cases for the Message model."""

    def test_aliases_and_field_names(self):
        """Test messages can be built from column names or field names."""
        by_alias = Message.model_validate({"MessageId": "m1", "Body": "hi", "ReceiptHandle": "rh"})
        by_name = Message(message_id="m1", body="hi", receipt_handle="rh")

        assert by_alias == by_name
        assert by_alias.model_dump(by_alias=True)["MessageId"] == "m1"

    def test_unknown_columns_ignored(self):
        message = Message.model_validate({"MessageId": "m1", "Extra": "x"})

        assert not hasattr(message, "Extra")

    def test_is_fifo(self):
        assert Message(MessageId="m1", MessageGroupId="g").is_fifo
        assert not Message(MessageId="m1").is_fifo

    def test_has_invalid_attributes(self):
        """Test absent attributes are valid but explicit nulls are not."""
        assert not Message(MessageId="m1").has_invalid_attributes()
        assert not Message(MessageId="m1", MessageAttributes={}).has_invalid_attributes()
        assert Message(MessageId="m1", MessageAttributes=None).has_invalid_attributes()
        assert Message(MessageId="m1", MessageAttributes="text").has_invalid_attributes()

    def test_typed_attributes(self):
        message = Message(
            MessageId="m1",
            MessageAttributes={"n": {"DataType": "Number", "StringValue": "4"}}
        )

        attributes = message.typed_attributes()

        assert attributes["n"].data_type == "Number"
        assert attributes["n"].string_value == "4"
        assert Message(MessageId="m1").typed_attributes() is None

    def test_typed_attributes_requires_data_type(self):
        message = Message(MessageId="m1", MessageAttributes={"n": {"StringValue": "4"}})

        with pytest.raises(ValidationError):
            message.typed_attributes()


class TestMessageAttribute:
    """Test cases for MessageAttribute.to_wire."""

    def test_string_value(self):
        attribute = MessageAttribute(DataType="String", StringValue="red")

        assert attribute.to_wire() == {"DataType": "String", "StringValue": "red"}

    def test_base64_binary_is_decoded(self):
        attribute = MessageAttribute(DataType="Binary", BinaryValue="AP8=")

        assert attribute.to_wire() == {"DataType": "Binary", "BinaryValue": b"\x00\xff"}

    def test_bytes_binary_passes_through(self):
        attribute = MessageAttribute(DataType="Binary", BinaryValue=b"\x01")

        assert attribute.to_wire()["BinaryValue"] == b"\x01"

    def test_non_base64_binary_is_utf8(self):
        attribute = MessageAttribute(DataType="Binary", BinaryValue="not base64!")

        assert attribute.to_wire()["BinaryValue"] == b"not base64!"


class TestCounts:
    """Test cases for derived counters."""

    def test_receive_counts(self):
        counts = ReceiveCounts(received=10, filtered=7, written=7, deleted=5)

        assert counts.ignored == 3
        assert counts.delete_failed == 5

    def test_modify_counts(self):
        counts = ModifyCounts(read=12, filtered=10, modified=8)

        assert counts.ignored == 2
        assert counts.failed == 4
