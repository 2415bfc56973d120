"""Tests for WebhookSink - mocked httpx dependency."""

from __future__ import annotations

import json
import sys
from types import ModuleType
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from smart_home_sim.models import DeviceStatePayload, Message

# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


def _make_messages(n: int = 3) -> list[Message]:
    return [
        Message(
            topic=f"device/light{i}/state",
            payload=DeviceStatePayload(id=f"light{i}", name=f"Light {i}", is_on=True, power=60.0, value=True),
            timestamp=1_700_000_000.0 + i,
        )
        for i in range(n)
    ]


# -----------------------------------------------------------------------
# Mock setup
# -----------------------------------------------------------------------


def _make_mock_httpx():
    """Create mock httpx module."""
    mock_httpx = ModuleType("httpx")

    mock_client = AsyncMock()
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.raise_for_status = MagicMock()
    mock_client.post = AsyncMock(return_value=mock_response)
    mock_client.aclose = AsyncMock()

    mock_httpx.AsyncClient = MagicMock(return_value=mock_client)
    mock_httpx.Timeout = MagicMock()

    return mock_httpx, mock_client, mock_response


# -----------------------------------------------------------------------
# Tests
# -----------------------------------------------------------------------


class TestWebhookSink:
    """WebhookSink with mocked httpx."""

    def _import_webhook_sink(self, mock_module):
        with patch.dict(sys.modules, {"httpx": mock_module}):
            if "smart_home_sim.sinks.webhook" in sys.modules:
                del sys.modules["smart_home_sim.sinks.webhook"]
            from smart_home_sim.sinks.webhook import WebhookSink

            return WebhookSink

    @pytest.mark.asyncio
    async def test_connect_creates_client(self) -> None:
        mock_httpx, _mock_client, _ = _make_mock_httpx()
        WebhookSink = self._import_webhook_sink(mock_httpx)

        sink = WebhookSink(url="https://example.com/ingest")
        await sink.connect()
        mock_httpx.AsyncClient.assert_called_once()

    @pytest.mark.asyncio
    async def test_write_posts_envelope(self) -> None:
        mock_httpx, mock_client, mock_resp = _make_mock_httpx()
        WebhookSink = self._import_webhook_sink(mock_httpx)

        sink = WebhookSink(url="https://example.com/ingest")
        await sink.connect()
        await sink.write(_make_messages(3))

        mock_client.post.assert_awaited_once()
        mock_resp.raise_for_status.assert_called_once()
        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://example.com/ingest"
        body = json.loads(kwargs["content"])
        assert body["source"] == "smart-home-sim"
        assert body["count"] == 3
        topics = [item["topic"] for item in body["messages"]]
        assert topics == ["device/light0/state", "device/light1/state", "device/light2/state"]
        assert body["messages"][0]["payload"]["kind"] == "device_state"
        assert sink.posted == 3

    @pytest.mark.asyncio
    async def test_write_without_connect_raises(self) -> None:
        mock_httpx, _, _ = _make_mock_httpx()
        WebhookSink = self._import_webhook_sink(mock_httpx)

        sink = WebhookSink(url="https://example.com/ingest")
        with pytest.raises(RuntimeError, match="not connected"):
            await sink.write(_make_messages(1))

    @pytest.mark.asyncio
    async def test_custom_headers(self) -> None:
        mock_httpx, _mock_client, _ = _make_mock_httpx()
        WebhookSink = self._import_webhook_sink(mock_httpx)

        sink = WebhookSink(
            url="https://example.com/ingest",
            headers={"Authorization": "Bearer token123"},
            timeout_s=5.0,
        )
        await sink.connect()
        call_kwargs = mock_httpx.AsyncClient.call_args[1]
        assert call_kwargs["headers"]["Authorization"] == "Bearer token123"
        assert call_kwargs["headers"]["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        mock_httpx, mock_client, _ = _make_mock_httpx()
        WebhookSink = self._import_webhook_sink(mock_httpx)

        sink = WebhookSink(url="https://example.com/ingest")
        await sink.connect()
        await sink.close()
        await sink.close()
        mock_client.aclose.assert_awaited_once()

    def test_missing_httpx_raises_import_error(self) -> None:
        with patch.dict(sys.modules, {"httpx": None}):
            sys.modules.pop("smart_home_sim.sinks.webhook", None)
            from smart_home_sim.sinks.webhook import WebhookSink

            with pytest.raises(ImportError, match="httpx is required"):
                WebhookSink(url="https://example.com/ingest")
        sys.modules.pop("smart_home_sim.sinks.webhook", None)
