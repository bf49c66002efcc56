"""
Module: message.py
Description: Message data models for the SQS utility.

Defines the Message model exchanged between SQS and CSV files. Field
aliases match the CSV column names, so rows can be validated directly
and dumped back with by_alias=True.

Key Components:
- Message: One queue message (or one CSV row)
- MessageAttribute: Typed view of a single message attribute
- CSV_FIELDS / FIFO_CSV_FIELDS: Column order for written files

Dependencies: pydantic, base64, typing
"""

import base64
import binascii
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

CSV_FIELDS = [
    "MessageId",
    "SenderId",
    "Sent",
    "FirstReceived",
    "ReceiveCount",
    "Body",
    "MessageAttributes",
    "ReceiptHandle",
]
FIFO_CSV_FIELDS = CSV_FIELDS + ["MessageGroupId", "MessageDeduplicationId"]


class MessageAttribute(BaseModel):
    """
    A single SQS message attribute.

    Binary values travel through CSV files as base64 text and are
    turned back into bytes when sent.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    data_type: str = Field(..., alias="DataType", min_length=1)
    string_value: Optional[str] = Field(default=None, alias="StringValue")
    binary_value: Optional[Union[bytes, str]] = Field(default=None, alias="BinaryValue")

    def to_wire(self) -> Dict[str, Any]:
        """Build the MessageAttributeValue structure for send_message_batch."""
        value: Dict[str, Any] = {"DataType": self.data_type}
        if self.string_value is not None:
            value["StringValue"] = self.string_value
        if self.binary_value is not None:
            binary = self.binary_value
            if isinstance(binary, str):
                try:
                    binary = base64.b64decode(binary, validate=True)
                except binascii.Error:
                    binary = binary.encode("utf-8")
            value["BinaryValue"] = binary
        return value


class Message(BaseModel):
    """
    A message received from, or destined for, an SQS queue.

    The model is deliberately permissive: rows read from a file are
    checked by the load pipeline, which drops bad rows with a diagnostic
    rather than failing the run.

    Attributes:
        message_id: SQS message id, reused as the batch entry id on send
        sender_id: Sender account or principal (received messages only)
        sent: Sent timestamp, ISO 8601 UTC
        first_received: First receive timestamp, ISO 8601 UTC
        receive_count: Approximate receive count as reported by SQS
        body: Message body
        message_attributes: Mapping of attribute name to
            {DataType, StringValue, BinaryValue}; left untyped so that an
            explicit null or a non-mapping value can be diagnosed
        receipt_handle: Continuation token needed to delete or change
            visibility of this delivery
        message_group_id: FIFO group id
        message_deduplication_id: FIFO deduplication id
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message_id: Optional[str] = Field(default=None, alias="MessageId")
    sender_id: Optional[str] = Field(default=None, alias="SenderId")
    sent: Optional[str] = Field(default=None, alias="Sent")
    first_received: Optional[str] = Field(default=None, alias="FirstReceived")
    receive_count: Optional[str] = Field(default=None, alias="ReceiveCount")
    body: Optional[str] = Field(default=None, alias="Body")
    message_attributes: Any = Field(default=None, alias="MessageAttributes")
    receipt_handle: Optional[str] = Field(default=None, alias="ReceiptHandle")
    message_group_id: Optional[str] = Field(default=None, alias="MessageGroupId")
    message_deduplication_id: Optional[str] = Field(default=None, alias="MessageDeduplicationId")

    @property
    def is_fifo(self) -> bool:
        """Whether this message carries FIFO ordering fields."""
        return self.message_group_id is not None

    def has_invalid_attributes(self) -> bool:
        """
        Check whether message attributes were given but are unusable.

        Absent attributes are fine. Attributes explicitly set to None
        (e.g. unparseable JSON in a file) or set to anything other than a
        mapping are invalid.
        """
        if "message_attributes" not in self.model_fields_set:
            return False
        return not isinstance(self.message_attributes, Mapping)

    def typed_attributes(self) -> Optional[Dict[str, MessageAttribute]]:
        """
        Return message attributes as MessageAttribute models.

        Raises:
            pydantic.ValidationError: If an attribute value is malformed
        """
        if not isinstance(self.message_attributes, Mapping):
            return None
        return {
            name: MessageAttribute.model_validate(value)
            for name, value in self.message_attributes.items()
        }
