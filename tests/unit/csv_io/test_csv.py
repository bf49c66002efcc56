"""
Module: test_csv.py
Description: Unit tests for the CSV message reader and writer.
"""

import csv
import json

import pytest
from structlog.testing import capture_logs

from conftest import make_message, make_messages, sample_attributes
from sqs_utility.csv_io.reader import CsvMessageReader, parse_row
from sqs_utility.csv_io.writer import CsvMessageWriter, to_csv_row
from sqs_utility.models.message import CSV_FIELDS, FIFO_CSV_FIELDS


async def read_all(path):
    async with CsvMessageReader(path) as reader:
        return [message async for message in reader]


def write_rows(path, fieldnames, rows):
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


class TestCsvMessageWriter:
    """Test cases for CsvMessageWriter."""

    def test_refuses_existing_file(self, tmp_path):
        """Test that an existing file is never overwritten."""
        path = tmp_path / "messages.csv"
        path.write_text("keep me")

        with pytest.raises(FileExistsError, match="already exists"):
            CsvMessageWriter(path)

        assert path.read_text() == "keep me"

    def test_writes_header_and_rows(self, tmp_path):
        """Test the header and field values of written rows."""
        path = tmp_path / "messages.csv"
        message = make_message(1, Sent="2020-09-13T12:26:40.123Z", MessageAttributes=sample_attributes())

        with CsvMessageWriter(path) as writer:
            writer.write([message])
            writer.write(make_messages(2, start=2))

        with open(path, newline='', encoding='utf-8') as f:
            rows = list(csv.reader(f))

        assert rows[0] == CSV_FIELDS
        assert len(rows) == 4
        first = dict(zip(rows[0], rows[1]))
        assert first["MessageId"] == "msg-1"
        assert first["Sent"] == "2020-09-13T12:26:40.123Z"
        assert first["SenderId"] == ""
        assert json.loads(first["MessageAttributes"]) == sample_attributes()
        assert dict(zip(rows[0], rows[3]))["MessageAttributes"] == ""

    def test_fifo_columns_from_first_message(self, tmp_path):
        """Test FIFO queues get group and deduplication columns."""
        path = tmp_path / "fifo.csv"

        with CsvMessageWriter(path) as writer:
            writer.write([make_message(1, MessageGroupId="g1", MessageDeduplicationId="d1")])

        with open(path, newline='', encoding='utf-8') as f:
            row = next(csv.DictReader(f))

        assert list(row) == FIFO_CSV_FIELDS
        assert row["MessageGroupId"] == "g1"

    def test_no_messages_leaves_empty_file(self, tmp_path):
        """Test a run with nothing received still creates the file."""
        path = tmp_path / "empty.csv"

        with CsvMessageWriter(path) as writer:
            writer.write([])

        assert path.exists()
        assert path.read_text() == ""

    def test_binary_values_are_base64(self):
        """Test received bytes are stored as base64 text."""
        attributes = {"blob": {"DataType": "Binary", "BinaryValue": b"\x00\xff"}}

        row = to_csv_row(make_message(1, MessageAttributes=attributes))

        assert json.loads(row["MessageAttributes"]) == {
            "blob": {"DataType": "Binary", "BinaryValue": "AP8="}
        }

    def test_write_after_close(self, tmp_path):
        writer = CsvMessageWriter(tmp_path / "closed.csv")
        writer.close()

        with pytest.raises(ValueError, match="is closed"):
            writer.write(make_messages(1))


class TestParseRow:
    """Test cases for parse_row."""

    def test_empty_optional_cells_are_absent(self):
        """Test empty optional cells and empty attributes are left unset."""
        row = dict.fromkeys(CSV_FIELDS, "")
        row.update({"MessageId": "m1", "Body": "hello"})

        message = parse_row(row, 1)

        assert message.message_id == "m1"
        assert message.sender_id is None
        assert message.receipt_handle is None
        assert "message_attributes" not in message.model_fields_set
        assert not message.has_invalid_attributes()

    def test_empty_message_id_kept(self):
        """Test an empty MessageId stays empty for validation to catch."""
        message = parse_row({"MessageId": "", "Body": "x"}, 1)

        assert message.message_id == ""

    def test_invalid_json_attributes(self):
        """Test malformed attribute JSON is logged and becomes an explicit null."""
        with capture_logs() as logs:
            message = parse_row({"MessageId": "m1", "Body": "x", "MessageAttributes": "{not json"}, 4)

        assert message.message_attributes is None
        assert message.has_invalid_attributes()
        assert logs[0]['log_level'] == 'error'
        assert logs[0]['event'].startswith("Invalid JSON MessageAttributes (row 4): ")

    def test_extra_cells_ignored(self):
        """Test cells beyond the header are dropped."""
        message = parse_row({"MessageId": "m1", "Body": "x", None: ["stray"]}, 1)

        assert message.message_id == "m1"


class TestCsvMessageReader:
    """Test cases for CsvMessageReader."""

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        """Test messages written by the writer read back unchanged."""
        path = tmp_path / "messages.csv"
        messages = [
            make_message(1, SenderId="AIDA1", ReceiveCount="3", MessageAttributes=sample_attributes()),
            make_message(2, Body='multi\nline, "quoted"'),
        ]
        with CsvMessageWriter(path) as writer:
            writer.write(messages)

        read_back = await read_all(path)

        assert [m.model_dump() for m in read_back] == [m.model_dump() for m in messages]

    @pytest.mark.asyncio
    async def test_row_count(self, tmp_path):
        """Test rows are counted as they are read."""
        path = tmp_path / "messages.csv"
        write_rows(path, ["MessageId", "Body"], [{"MessageId": f"m{i}", "Body": "b"} for i in range(3)])

        reader = CsvMessageReader(path)
        messages = [message async for message in reader]

        assert [m.message_id for m in messages] == ["m0", "m1", "m2"]
        assert reader.row_count == 3

    @pytest.mark.asyncio
    async def test_stop_ends_iteration(self, tmp_path):
        """Test stop() ends iteration quietly at the next step."""
        path = tmp_path / "messages.csv"
        write_rows(path, ["MessageId", "Body"], [{"MessageId": f"m{i}", "Body": "b"} for i in range(5)])

        seen = []
        async with CsvMessageReader(path) as reader:
            async for message in reader:
                seen.append(message.message_id)
                if len(seen) == 2:
                    reader.stop()

        assert seen == ["m0", "m1"]
        assert reader.stopped

    @pytest.mark.asyncio
    async def test_missing_file_fails_on_iteration(self, tmp_path):
        """Test a missing file is reported when reading starts."""
        reader = CsvMessageReader(tmp_path / "missing.csv")

        with pytest.raises(FileNotFoundError):
            await reader.__anext__()

    def test_requires_path(self):
        with pytest.raises(ValueError):
            CsvMessageReader("")
