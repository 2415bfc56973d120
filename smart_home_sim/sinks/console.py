"""Console sink - prints broker messages to stdout.

The simulator's equivalent of logging every topic to the console; useful
for debugging and demos.
"""

from __future__ import annotations

import sys
from typing import IO

from smart_home_sim.models import Message, Payload
from smart_home_sim.sinks.base import Sink

__all__ = ["ConsoleSink", "describe"]


def describe(payload: Payload) -> str:
    """One-line human readable summary of a payload."""
    if payload.kind == "device_state":
        state = "on" if payload.is_on else "off"
        if payload.attribute == "power":
            return f"{payload.name} turned {state} ({payload.power:.0f} W)"
        return f"{payload.name} {payload.attribute}={payload.value} ({state}, {payload.power:.0f} W)"
    if payload.kind == "sensor_reading":
        if isinstance(payload.value, bool):
            return f"{payload.name}: {'detected' if payload.value else 'clear'}"
        return f"{payload.name}: {payload.value:.1f} {payload.unit}".rstrip()
    if payload.kind == "automation_triggered":
        return f"{payload.rule}: {payload.action} ({payload.reason})"
    return f"{payload.participant} '{payload.id}' registered ({payload.name})"


class ConsoleSink(Sink):
    """Writes broker messages to the console (stdout by default).

    Parameters:
        fmt: Output format - ``"text"`` (human-readable) or ``"json"``
             (one JSON object per message).
        stream: Writable file-like object (defaults to ``sys.stdout``).
        topics: Only print messages on these topics (``None`` = all).
        rate_hz: Throughput - how often to flush batches.
        **kwargs: Forwarded to :class:`Sink`.
    """

    def __init__(
        self,
        *,
        fmt: str = "text",
        stream: IO[str] | None = None,
        topics: list[str] | None = None,
        rate_hz: float | None = None,
        batch_size: int = 100,
        **kwargs,
    ) -> None:
        super().__init__(rate_hz=rate_hz, batch_size=batch_size, **kwargs)
        self._fmt = fmt
        self._stream = stream or sys.stdout
        self._topics = set(topics) if topics else None

    async def connect(self) -> None:
        """No-op - stdout is always available."""

    async def write(self, messages: list[Message]) -> None:
        for msg in messages:
            if self._topics is not None and msg.topic not in self._topics:
                continue
            if self._fmt == "json":
                self._stream.write(msg.to_json() + "\n")
            else:
                self._stream.write(f"[{msg.topic}] {describe(msg.payload)}\n")
        self._stream.flush()

    async def flush(self) -> None:
        self._stream.flush()

    async def close(self) -> None:
        """No-op - we do not own stdout."""
