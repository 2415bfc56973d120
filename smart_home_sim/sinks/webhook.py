"""Webhook sink - POSTs JSON batches of broker messages to an HTTP
endpoint, e.g. a dashboard that renders live device and sensor cards.

Each request body is a single envelope::

    {"source": "smart-home-sim", "count": 2, "messages": [{...}, {...}]}

Requires the ``webhook`` extra::

    pip install smart-home-simulator[webhook]
"""

from __future__ import annotations

import json
import logging

from smart_home_sim.models import Message
from smart_home_sim.sinks.base import Sink

__all__ = ["WebhookSink"]

logger = logging.getLogger("smart_home_sim.sinks.webhook")

try:
    import httpx

    HTTPX_AVAILABLE = True
except ImportError:
    HTTPX_AVAILABLE = False


class WebhookSink(Sink):
    """Deliver message batches to an HTTP endpoint.

    Non-2xx responses raise, so the runner's retry policy applies.

    Parameters:
        url: Target endpoint (must accept ``POST``).
        source: Identifies this home in the envelope.
        headers: Extra HTTP headers merged over the JSON content type.
        timeout_s: Per-request timeout in seconds.
        rate_hz / batch_size / **kwargs: Forwarded to :class:`Sink`.
    """

    def __init__(
        self,
        *,
        url: str,
        source: str = "smart-home-sim",
        headers: dict[str, str] | None = None,
        timeout_s: float = 10.0,
        rate_hz: float | None = None,
        batch_size: int = 100,
        **kwargs,
    ) -> None:
        if not HTTPX_AVAILABLE:
            raise ImportError("httpx is required for WebhookSink.  Install with: pip install smart-home-simulator[webhook]")
        super().__init__(rate_hz=rate_hz, batch_size=batch_size, **kwargs)
        self.url = url
        self.source = source
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._timeout_s = timeout_s
        self._client: httpx.AsyncClient | None = None
        self.posted = 0

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(headers=self._headers, timeout=httpx.Timeout(self._timeout_s))
        logger.info("WebhookSink posting to %s", self.url)

    async def write(self, messages: list[Message]) -> None:
        if self._client is None:
            raise RuntimeError("WebhookSink is not connected")

        envelope = {
            "source": self.source,
            "count": len(messages),
            "messages": [msg.to_dict() for msg in messages],
        }
        response = await self._client.post(self.url, content=json.dumps(envelope))
        response.raise_for_status()
        self.posted += len(messages)
        logger.debug("POST %s: %d messages, HTTP %d", self.url, len(messages), response.status_code)

    async def flush(self) -> None:
        """No-op - each write is a completed request."""

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("WebhookSink closed after %d messages", self.posted)
