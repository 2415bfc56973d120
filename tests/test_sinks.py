"""Tests for built-in sinks - ConsoleSink, CallbackSink, FileSink."""

from __future__ import annotations

import csv
import io
import json
import time
from pathlib import Path

import pytest

from smart_home_sim.models import (
    AutomationTriggeredPayload,
    DeviceStatePayload,
    Message,
    RegistrationPayload,
    SensorReadingPayload,
)
from smart_home_sim.sinks.base import SinkConfig
from smart_home_sim.sinks.callback import CallbackSink
from smart_home_sim.sinks.console import ConsoleSink, describe
from smart_home_sim.sinks.file import FileSink, _parse_rotation

# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


def _make_messages(n: int = 3) -> list[Message]:
    """Create *n* sensor reading messages."""
    return [
        Message(
            topic=f"sensor/sensor_{i}/reading",
            payload=SensorReadingPayload(
                id=f"sensor_{i}",
                name=f"Sensor {i}",
                value=float(i * 10),
                unit="°C",
                timestamp=1_700_000_000.0 + i,
            ),
            timestamp=1_700_000_000.0 + i,
        )
        for i in range(n)
    ]


# -----------------------------------------------------------------------
# SinkConfig
# -----------------------------------------------------------------------


class TestSinkConfig:
    """SinkConfig Pydantic model."""

    def test_defaults(self) -> None:
        cfg = SinkConfig()
        assert cfg.rate_hz is None
        assert cfg.batch_size == 100
        assert cfg.max_buffer_size == 10_000
        assert cfg.overflow == "drop_oldest"
        assert cfg.retry_count == 3

    def test_custom_values(self) -> None:
        cfg = SinkConfig(rate_hz=2.0, batch_size=50, overflow="drop_newest")
        assert cfg.rate_hz == 2.0
        assert cfg.batch_size == 50
        assert cfg.overflow == "drop_newest"


# -----------------------------------------------------------------------
# ConsoleSink
# -----------------------------------------------------------------------


class TestDescribe:
    """One-line summaries per payload kind."""

    def test_device_power(self) -> None:
        text = describe(DeviceStatePayload(id="ac", name="Air Conditioner", is_on=True, power=1500.0, value=True))
        assert text == "Air Conditioner turned on (1500 W)"

    def test_device_attribute(self) -> None:
        payload = DeviceStatePayload(
            id="ac", name="AC", is_on=False, power=0.0, attribute="mode", value="heat"
        )
        assert describe(payload) == "AC mode=heat (off, 0 W)"

    def test_motion_reading(self) -> None:
        payload = SensorReadingPayload(id="motion", name="Motion", value=True, unit="", timestamp=0.0, detected=True)
        assert describe(payload) == "Motion: detected"

    def test_automation(self) -> None:
        payload = AutomationTriggeredPayload(rule="hvac-off", action="AC turned off", reason="No motion for 5 minutes")
        assert describe(payload) == "hvac-off: AC turned off (No motion for 5 minutes)"

    def test_registration(self) -> None:
        payload = RegistrationPayload(participant="sensor", id="humidity", name="Humidity")
        assert describe(payload) == "sensor 'humidity' registered (Humidity)"


class TestConsoleSink:
    """ConsoleSink text and JSON output."""

    @pytest.mark.asyncio
    async def test_text_format(self) -> None:
        buf = io.StringIO()
        sink = ConsoleSink(fmt="text", stream=buf, rate_hz=1.0)
        await sink.connect()
        await sink.write(_make_messages(2))
        await sink.flush()
        await sink.close()
        output = buf.getvalue()
        assert "[sensor/sensor_0/reading] Sensor 0: 0.0 °C" in output
        assert "sensor_1" in output

    @pytest.mark.asyncio
    async def test_json_format(self) -> None:
        buf = io.StringIO()
        sink = ConsoleSink(fmt="json", stream=buf, rate_hz=1.0)
        await sink.connect()
        await sink.write(_make_messages(1))
        await sink.close()
        parsed = json.loads(buf.getvalue().strip())
        assert parsed["topic"] == "sensor/sensor_0/reading"
        assert parsed["payload"]["kind"] == "sensor_reading"

    @pytest.mark.asyncio
    async def test_topic_filter(self) -> None:
        buf = io.StringIO()
        sink = ConsoleSink(stream=buf, topics=["sensor/sensor_1/reading"])
        await sink.write(_make_messages(3))
        output = buf.getvalue()
        assert "sensor_1" in output
        assert "sensor_0" not in output
        assert "sensor_2" not in output


# -----------------------------------------------------------------------
# CallbackSink
# -----------------------------------------------------------------------


class TestCallbackSink:
    """CallbackSink with sync and async callbacks."""

    @pytest.mark.asyncio
    async def test_sync_callback_receives_messages(self) -> None:
        received: list[list[Message]] = []
        sink = CallbackSink(lambda msgs: received.append(msgs), rate_hz=1.0)
        await sink.connect()
        messages = _make_messages(3)
        await sink.write(messages)
        await sink.flush()
        await sink.close()
        assert len(received) == 1
        assert received[0] == messages

    @pytest.mark.asyncio
    async def test_async_callback(self) -> None:
        received: list[list[Message]] = []

        async def async_cb(msgs: list[Message]) -> None:
            received.append(msgs)

        sink = CallbackSink(async_cb, rate_hz=1.0)
        await sink.connect()
        await sink.write(_make_messages(2))
        await sink.close()
        assert len(received) == 1


# -----------------------------------------------------------------------
# FileSink
# -----------------------------------------------------------------------


class TestParseRotation:
    """_parse_rotation helper."""

    def test_none(self) -> None:
        assert _parse_rotation(None) is None

    def test_empty(self) -> None:
        assert _parse_rotation("") is None

    def test_seconds(self) -> None:
        assert _parse_rotation("30s") == 30.0

    def test_minutes(self) -> None:
        assert _parse_rotation("5m") == 300.0

    def test_hours(self) -> None:
        assert _parse_rotation("1h") == 3600.0

    def test_days(self) -> None:
        assert _parse_rotation("1d") == 86400.0

    def test_bare_number(self) -> None:
        assert _parse_rotation("120") == 120.0


class TestFileSink:
    """FileSink CSV and JSON Lines output."""

    @pytest.mark.asyncio
    async def test_csv_output(self, tmp_path: Path) -> None:
        sink = FileSink(path=str(tmp_path), format="csv", rate_hz=1.0)
        await sink.connect()
        await sink.write(_make_messages(5))
        await sink.flush()
        await sink.close()

        csv_files = list(tmp_path.glob("*.csv"))
        assert len(csv_files) == 1
        with csv_files[0].open(newline="", encoding="utf-8") as fh:
            rows = list(csv.DictReader(fh))
        assert len(rows) == 5
        assert rows[0]["topic"] == "sensor/sensor_0/reading"
        assert rows[0]["kind"] == "sensor_reading"
        assert json.loads(rows[0]["payload"])["id"] == "sensor_0"

    @pytest.mark.asyncio
    async def test_json_output(self, tmp_path: Path) -> None:
        sink = FileSink(path=str(tmp_path), format="json", rate_hz=1.0)
        await sink.connect()
        await sink.write(_make_messages(3))
        await sink.flush()
        await sink.close()

        jsonl_files = list(tmp_path.glob("*.jsonl"))
        assert len(jsonl_files) == 1
        lines = jsonl_files[0].read_text(encoding="utf-8").strip().splitlines()
        assert len(lines) == 3
        assert Message.from_dict(json.loads(lines[0])).payload.id == "sensor_0"

    @pytest.mark.asyncio
    async def test_rotation_opens_new_file(self, tmp_path: Path) -> None:
        sink = FileSink(path=str(tmp_path), format="csv", rotation="1s", rate_hz=1.0)
        await sink.connect()
        await sink.write(_make_messages(2))

        # Pretend time moved forward past rotation
        sink._file_start_time = time.time() - 2.0
        await sink.write(_make_messages(2))
        await sink.close()

        assert len(list(tmp_path.glob("*.csv"))) == 2

    def test_unknown_format_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unknown file format"):
            FileSink(path=str(tmp_path), format="xml")

    @pytest.mark.asyncio
    async def test_write_without_connect_raises(self, tmp_path: Path) -> None:
        sink = FileSink(path=str(tmp_path))
        with pytest.raises(RuntimeError, match="not connected"):
            await sink.write(_make_messages(1))

    @pytest.mark.asyncio
    async def test_close_idempotent(self, tmp_path: Path) -> None:
        sink = FileSink(path=str(tmp_path), format="csv", rate_hz=1.0)
        await sink.connect()
        await sink.close()
        await sink.close()

    @pytest.mark.asyncio
    async def test_creates_output_dir(self, tmp_path: Path) -> None:
        new_dir = tmp_path / "nested" / "output"
        sink = FileSink(path=str(new_dir), format="json", rate_hz=1.0)
        await sink.connect()
        assert new_dir.exists()
        await sink.close()
