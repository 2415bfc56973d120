"""Callback sink - hands message batches to a user-provided callable.

Lets UI or test glue observe the broker without subclassing
:class:`Sink`::

    home.add_sink(lambda messages: print(len(messages)))
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

from smart_home_sim.models import Message
from smart_home_sim.sinks.base import Sink

__all__ = ["CallbackSink"]


class CallbackSink(Sink):
    """Wraps a function as a sink.

    The callable receives a ``list[Message]`` on each flush.  It can be a
    regular function, a coroutine function, or a lambda; regular
    functions run in the default executor.
    """

    def __init__(
        self,
        callback: Callable[[list[Message]], Any],
        *,
        rate_hz: float | None = None,
        batch_size: int = 100,
        **kwargs,
    ) -> None:
        super().__init__(rate_hz=rate_hz, batch_size=batch_size, **kwargs)
        self._callback = callback
        self._is_async = inspect.iscoroutinefunction(callback)

    async def connect(self) -> None:
        """No-op."""

    async def write(self, messages: list[Message]) -> None:
        if self._is_async:
            await self._callback(messages)
        else:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._callback, messages)

    async def flush(self) -> None:
        """No-op."""

    async def close(self) -> None:
        """No-op."""
