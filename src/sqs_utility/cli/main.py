#!/usr/bin/env python3
"""
Script: cli/main.py
Description: Command-line entry point for the SQS utility.

Moves messages between SQS queues and CSV files, and inspects queues.

Usage:
    sqs-utility --queues
    sqs-utility --describe QUEUE_URL
    sqs-utility --list QUEUE_URL --file backup.csv [--limit 500] [--timeout 60]
    sqs-utility --extract QUEUE_URL --file backup.csv
    sqs-utility --load QUEUE_URL --file backup.csv
    sqs-utility --delete QUEUE_URL --file backup.csv

Filtering:
    --filter and --transform take importable functions given as
    'package.module:function'. The filter receives a Message and returns
    a bool; the transform receives a Message and returns a Message.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from sqs_utility.config.settings import settings
from sqs_utility.csv_io.reader import CsvMessageReader
from sqs_utility.csv_io.writer import CsvMessageWriter
from sqs_utility.engine.modify import MessageModifier
from sqs_utility.engine.receive import MessageReceiver
from sqs_utility.models.results import ModifyCounts, ReceiveCounts
from sqs_utility.processors import build_processor
from sqs_utility.sqs_queue.sqs import DESCRIBE_ATTRIBUTES, SQSClient
from sqs_utility.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

ACTIONS = ('queues', 'describe', 'list', 'extract', 'load', 'delete')
FILE_ACTIONS = ('list', 'extract', 'load', 'delete')


class UsageError(ValueError):
    """Invalid command-line usage."""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='sqs-utility',
        description="Move messages between Amazon SQS queues and CSV files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sqs-utility --queues
  sqs-utility --describe https://sqs.eu-west-2.amazonaws.com/123456789012/orders
  sqs-utility --list QUEUE_URL --file orders.csv --limit 100
  sqs-utility --extract QUEUE_URL --file orders.csv --filter myhooks:is_order
  sqs-utility --load QUEUE_URL --file orders.csv --transform myhooks:retag
  sqs-utility --delete QUEUE_URL --file orders.csv
        """
    )

    actions = parser.add_argument_group('actions')
    actions.add_argument('-q', '--queues', action='store_true', default=None,
                         help='List queue URLs')
    actions.add_argument('--describe', metavar='QUEUE',
                         help='Show approximate message counts for a queue')
    actions.add_argument('-i', '--list', metavar='QUEUE',
                         help='Receive messages to a file, leaving them on the queue')
    actions.add_argument('-e', '--extract', metavar='QUEUE',
                         help='Receive messages to a file and delete them from the queue')
    actions.add_argument('-l', '--load', metavar='QUEUE',
                         help='Send every message in a file to a queue')
    actions.add_argument('-d', '--delete', metavar='QUEUE',
                         help='Delete every message in a file from a queue')

    parser.add_argument('-f', '--file', help='CSV file to write or read')
    parser.add_argument('--filter', metavar='MODULE:FUNCTION',
                        help='Keep only messages for which this function returns true')
    parser.add_argument('--transform', metavar='MODULE:FUNCTION',
                        help='Replace each kept message with this function\'s result')
    parser.add_argument('--limit', type=int, default=settings.default_limit,
                        help='Maximum messages to receive (list/extract)')
    parser.add_argument('--timeout', type=int, default=settings.default_timeout,
                        help='Seconds allowed for receiving (list/extract)')
    parser.add_argument('--region', default=settings.aws_region, help='AWS region')
    parser.add_argument('--endpoint', default=settings.endpoint_url,
                        help='Custom SQS endpoint URL')
    parser.add_argument('--quiet', action='store_true', help='Do not print run summaries')
    parser.add_argument('--log-level', default=settings.log_level,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        type=str.upper, help='Diagnostic log level (stderr)')

    return parser


def validate_options(options: argparse.Namespace) -> argparse.Namespace:
    """
    Check action/file combinations and numeric options.

    Raises:
        UsageError: If the options are inconsistent
    """
    actions = [action for action in ACTIONS if getattr(options, action) is not None]

    if not actions:
        raise UsageError("No action specified")
    if len(actions) > 1:
        raise UsageError(f"Multiple actions specified [{', '.join(actions)}]")

    action = actions[0]
    options.action = action

    if action != 'queues' and not getattr(options, action).strip():
        raise UsageError(f"No queue specified for {action} action")
    if action in FILE_ACTIONS and not options.file:
        raise UsageError(f"File required for {action} action")
    if action not in FILE_ACTIONS and options.file is not None:
        raise UsageError(f"File not allowed for {action} action")
    if options.limit <= 0:
        raise UsageError("Invalid limit")
    if options.timeout <= 0:
        raise UsageError("Invalid timeout")

    return options


def parse_options(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse and validate command-line arguments."""
    return validate_options(build_parser().parse_args(argv))


def print_receive_summary(counts: ReceiveCounts, delete_from_queue: bool, options: argparse.Namespace) -> None:
    if options.quiet:
        return

    print(f"{counts.received} messages received from queue")
    if options.filter or options.transform:
        print(f"{counts.ignored} messages ignored by filter/transform")
    print(f"{counts.written} messages written to file")
    if delete_from_queue:
        print(f"{counts.deleted} messages deleted from queue")
        print(f"{counts.delete_failed} messages failed to delete from queue")


def print_modify_summary(counts: ModifyCounts, delete_from_queue: bool, options: argparse.Namespace) -> None:
    if options.quiet:
        return

    print(f"{counts.read} messages read from file")
    if options.filter or options.transform:
        print(f"{counts.ignored} messages ignored by filter/transform")
    done, failed = ('deleted from', 'delete from') if delete_from_queue else ('sent to', 'send to')
    print(f"{counts.modified} messages {done} queue")
    print(f"{counts.failed} messages failed to {failed} queue")


async def list_queues_action(sqs: SQSClient) -> None:
    for queue_url in await sqs.list_queues():
        print(queue_url)


async def describe_queue_action(sqs: SQSClient, queue_url: str) -> None:
    attributes = await sqs.describe_queue(queue_url)
    print(f"Queue: {queue_url}")
    for name in DESCRIBE_ATTRIBUTES:
        print(f"{name}: {attributes.get(name)}")


async def receive_action(sqs: SQSClient, options: argparse.Namespace) -> ReceiveCounts:
    """Run list/extract: drain the queue into a new CSV file."""
    receiver = MessageReceiver(
        sqs,
        message_processor=build_processor(options.filter, options.transform),
        limit=options.limit,
        timeout=options.timeout
    )
    queue_url = options.list or options.extract
    delete_from_queue = options.action == 'extract'

    writer = CsvMessageWriter(options.file)
    try:
        return await receiver.receive_messages(queue_url, writer.write, delete_from_queue)
    finally:
        writer.close()
        print_receive_summary(receiver.counts, delete_from_queue, options)


async def modify_action(sqs: SQSClient, options: argparse.Namespace) -> ModifyCounts:
    """Run load/delete: stream the CSV file into send or delete batches."""
    modifier = MessageModifier(
        sqs,
        message_processor=build_processor(options.filter, options.transform)
    )
    queue_url = options.load or options.delete
    delete_from_queue = options.action == 'delete'

    try:
        async with CsvMessageReader(options.file) as reader:
            return await modifier.modify_messages(queue_url, reader, delete_from_queue)
    finally:
        print_modify_summary(modifier.counts, delete_from_queue, options)


async def run(options: argparse.Namespace, sqs: Optional[SQSClient] = None) -> None:
    """Dispatch the selected action."""
    sqs = sqs or SQSClient(
        region_name=options.region,
        endpoint_url=options.endpoint,
        wait_time=settings.receive_wait_time
    )

    if options.action == 'queues':
        await list_queues_action(sqs)
    elif options.action == 'describe':
        await describe_queue_action(sqs, options.describe)
    elif options.action in ('list', 'extract'):
        await receive_action(sqs, options)
    else:
        await modify_action(sqs, options)


def main(argv: Optional[List[str]] = None) -> int:
    """Main script execution."""
    try:
        options = parse_options(argv)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(options.log_level)

    try:
        asyncio.run(run(options))

    except KeyboardInterrupt:
        print("Cancelled by user.", file=sys.stderr)
        return 1

    except Exception as e:
        logger.error(
            "Command failed",
            action=options.action,
            error=str(e),
            error_type=type(e).__name__
        )
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
