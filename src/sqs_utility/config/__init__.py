"""
Package: config
Description: Configuration for the SQS utility.
"""
