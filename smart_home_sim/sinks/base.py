"""Sink abstraction for outbound observability.

Sinks receive the broker messages published during each tick (the
simulator subscribes to the wildcard topic and hands every tick's
messages to its sink runners).

Provides:
- ``Sink``       - abstract base class that every concrete sink implements.
- ``SinkConfig`` - per-sink flush rate / batching / buffer limits.
- ``SinkRunner`` - async helper that buffers messages and drains them to
                   the sink at the configured rate.
"""

from __future__ import annotations

import asyncio
import collections
import contextlib
import logging
from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel

from smart_home_sim.models import Message

__all__ = ["Sink", "SinkConfig", "SinkRunner"]

logger = logging.getLogger("smart_home_sim.sinks")


# -----------------------------------------------------------------------
# Throughput configuration
# -----------------------------------------------------------------------


class SinkConfig(BaseModel):
    """Per-sink flush / batching knobs.

    Attributes:
        rate_hz:
            How often the runner flushes buffered messages to the sink.
            ``None`` drains every 50 ms.
        batch_size:
            Maximum messages passed to a single ``write()`` call.
        max_buffer_size:
            Maximum messages held in memory before ``overflow`` applies.
        overflow:
            ``"drop_oldest"`` - discard the oldest buffered messages.
            ``"drop_newest"`` - discard incoming messages.
        retry_count:
            How many times a failed ``write()`` is attempted.
        retry_delay_s:
            Seconds to wait between attempts.
    """

    rate_hz: float | None = None
    batch_size: int = 100
    max_buffer_size: int = 10_000
    overflow: Literal["drop_oldest", "drop_newest"] = "drop_oldest"
    retry_count: int = 3
    retry_delay_s: float = 1.0


# -----------------------------------------------------------------------
# Sink ABC
# -----------------------------------------------------------------------


class Sink(ABC):
    """Abstract base class for all sinks.

    Concrete sinks implement ``connect``, ``write``, ``flush`` and
    ``close``.  Throughput parameters are accepted in ``__init__`` and
    stored in ``self.sink_config``.
    """

    def __init__(
        self,
        *,
        rate_hz: float | None = None,
        batch_size: int = 100,
        max_buffer_size: int = 10_000,
        overflow: Literal["drop_oldest", "drop_newest"] = "drop_oldest",
        retry_count: int = 3,
        retry_delay_s: float = 1.0,
    ) -> None:
        self.sink_config = SinkConfig(
            rate_hz=rate_hz,
            batch_size=batch_size,
            max_buffer_size=max_buffer_size,
            overflow=overflow,
            retry_count=retry_count,
            retry_delay_s=retry_delay_s,
        )

    @abstractmethod
    async def connect(self) -> None:
        """Open resources."""

    @abstractmethod
    async def write(self, messages: list[Message]) -> None:
        """Deliver a batch of broker messages (at most ``batch_size``)."""

    @abstractmethod
    async def flush(self) -> None:
        """Flush any internal buffers the sink may hold."""

    @abstractmethod
    async def close(self) -> None:
        """Release resources."""


# -----------------------------------------------------------------------
# SinkRunner
# -----------------------------------------------------------------------


class SinkRunner:
    """Buffers messages for one ``Sink`` and drains them in the background.

    ``SmartHome`` creates one runner per ``add_sink()`` call.
    """

    def __init__(self, sink: Sink) -> None:
        self.sink = sink
        self.cfg = sink.sink_config
        maxlen = self.cfg.max_buffer_size if self.cfg.overflow == "drop_oldest" else None
        self._buffer: collections.deque[Message] = collections.deque(maxlen=maxlen)
        self._drain_task: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def pending(self) -> int:
        return len(self._buffer)

    async def start(self) -> None:
        """Connect the sink and start the drain loop."""
        await self.sink.connect()
        self._stopped = False
        self._drain_task = asyncio.create_task(self._drain_loop(), name=f"drain-{type(self.sink).__name__}")

    async def enqueue(self, messages: list[Message]) -> None:
        """Buffer one tick's messages."""
        if self._stopped:
            return
        if self.cfg.overflow == "drop_newest":
            space = max(0, self.cfg.max_buffer_size - len(self._buffer))
            if len(messages) > space:
                logger.debug("%s buffer full - dropping %d messages", type(self.sink).__name__, len(messages) - space)
                messages = messages[:space]
        self._buffer.extend(messages)

    async def stop(self) -> None:
        """Cancel the drain loop, write what is left, flush and close."""
        self._stopped = True
        if self._drain_task and not self._drain_task.done():
            self._drain_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._drain_task
        await self._flush_buffer()
        await self.sink.flush()
        await self.sink.close()

    async def _drain_loop(self) -> None:
        interval = 1.0 / self.cfg.rate_hz if self.cfg.rate_hz else 0.05
        with contextlib.suppress(asyncio.CancelledError):
            while not self._stopped:
                await asyncio.sleep(interval)
                await self._flush_buffer()

    async def _flush_buffer(self) -> None:
        while self._buffer:
            count = min(len(self._buffer), self.cfg.batch_size)
            batch = [self._buffer.popleft() for _ in range(count)]
            await self._write_with_retry(batch)

    async def _write_with_retry(self, batch: list[Message]) -> None:
        name = type(self.sink).__name__
        for attempt in range(1, self.cfg.retry_count + 1):
            try:
                await self.sink.write(batch)
                return
            except Exception as exc:
                if attempt >= self.cfg.retry_count:
                    logger.error(
                        "%s write failed after %d attempts: %s - dropping %d messages",
                        name,
                        self.cfg.retry_count,
                        exc,
                        len(batch),
                    )
                    return
                logger.warning(
                    "%s write failed (attempt %d/%d): %s - retrying in %.1fs",
                    name,
                    attempt,
                    self.cfg.retry_count,
                    exc,
                    self.cfg.retry_delay_s,
                )
                await asyncio.sleep(self.cfg.retry_delay_s)
