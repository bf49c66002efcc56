"""
Package: cli
Description: Command-line interface for the SQS utility.
"""
