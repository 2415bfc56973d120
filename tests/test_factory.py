"""Tests for smart_home_sim.sinks.factory - create_sink and register_sink."""

from __future__ import annotations

from pathlib import Path

import pytest

from smart_home_sim.sinks.base import Sink
from smart_home_sim.sinks.console import ConsoleSink
from smart_home_sim.sinks.factory import _SINK_REGISTRY, create_sink, register_sink
from smart_home_sim.sinks.file import FileSink

# -----------------------------------------------------------------------
# create_sink
# -----------------------------------------------------------------------


class TestCreateSink:
    """create_sink() creates typed sink instances from config dicts."""

    def test_create_console_sink(self) -> None:
        sink = create_sink({"type": "console", "fmt": "text", "rate_hz": 1.0})
        assert isinstance(sink, ConsoleSink)
        assert sink.sink_config.rate_hz == 1.0

    def test_create_file_sink(self, tmp_path: Path) -> None:
        sink = create_sink({"type": "file", "path": str(tmp_path), "format": "csv", "batch_size": 50})
        assert isinstance(sink, FileSink)
        assert sink.sink_config.batch_size == 50

    def test_config_dict_not_mutated(self) -> None:
        cfg = {"type": "console", "rate_hz": 1.0}
        create_sink(cfg)
        assert cfg["type"] == "console"

    def test_missing_type_raises(self) -> None:
        with pytest.raises(ValueError, match="type"):
            create_sink({"rate_hz": 1.0})

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown sink type"):
            create_sink({"type": "nonexistent_sink_xyz"})

    def test_case_insensitive_type(self) -> None:
        sink = create_sink({"type": "Console", "rate_hz": 1.0})
        assert isinstance(sink, Sink)


# -----------------------------------------------------------------------
# register_sink
# -----------------------------------------------------------------------


class TestRegisterSink:
    """register_sink() extends the factory registry."""

    def test_register_and_lookup(self) -> None:
        register_sink("test_sink_abc", "smart_home_sim.sinks.console", "ConsoleSink")
        try:
            sink = create_sink({"type": "test_sink_abc", "rate_hz": 1.0})
            assert isinstance(sink, ConsoleSink)
        finally:
            del _SINK_REGISTRY["test_sink_abc"]

    def test_register_normalises_name(self) -> None:
        register_sink("  My_Sink  ", "smart_home_sim.sinks.console", "ConsoleSink")
        assert "my_sink" in _SINK_REGISTRY
        del _SINK_REGISTRY["my_sink"]

    def test_builtin_types_registered(self) -> None:
        assert {"console", "callback", "file", "webhook"} <= set(_SINK_REGISTRY)
