"""
Package: sqs_queue
Description: SQS message queue operations.

Provides an async client for receiving, sending, deleting and
re-exposing messages in batches, plus queue listing and describe.
"""
