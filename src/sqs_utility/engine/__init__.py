"""
Package: engine
Description: Batch streaming engines for the SQS utility.

- receive: Drain a queue into a writer (list/extract)
- modify: Stream a source into send or delete batches (load/delete)
"""

from .modify import MessageModifier
from .receive import MessageReceiver

__all__ = ["MessageModifier", "MessageReceiver"]
