"""
Module: completion.py
Description: One-shot completion gate for asynchronous run settlement.

A run can be asked to settle from more than one place (the source
failing, the source ending, a caller converging on an upstream error).
CompletionGate makes sure the settle coroutine is started exactly once;
every later trigger receives the same future.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional


class CompletionGate:
    """
    One-shot latch guarding a settle-and-decide coroutine.

    Example:
        >>> gate = CompletionGate()
        >>> first = gate.trigger(settle, None)
        >>> second = gate.trigger(settle, error)  # ignored, same future
        >>> first is second
        True
    """

    def __init__(self):
        self._future: Optional[asyncio.Future] = None

    @property
    def triggered(self) -> bool:
        """Whether the gate has already been opened."""
        return self._future is not None

    def trigger(
        self,
        settle: Callable[..., Awaitable[Any]],
        *args: Any
    ) -> asyncio.Future:
        """
        Start settle(*args) on first call; return the running future.

        Args:
            settle: Coroutine function performing the settlement
            *args: Arguments for the first (and only) invocation

        Returns:
            Future resolving with the settle outcome
        """
        if self._future is None:
            self._future = asyncio.ensure_future(settle(*args))
        return self._future
