"""Tests for smart_home_sim.sinks.__init__ - exports and lazy loading."""

from __future__ import annotations

import pytest

import smart_home_sim.sinks as sinks_pkg


class TestSinksPackage:
    """Tests for sinks package __all__ and lazy imports."""

    def test_direct_exports(self) -> None:
        for name in ("Sink", "SinkConfig", "SinkRunner", "ConsoleSink", "CallbackSink", "FileSink"):
            assert hasattr(sinks_pkg, name)
            assert name in sinks_pkg.__all__

    def test_webhook_not_in_all(self) -> None:
        assert "WebhookSink" not in sinks_pkg.__all__

    def test_lazy_import_webhook_sink(self) -> None:
        pytest.importorskip("httpx")
        from smart_home_sim.sinks.webhook import WebhookSink

        assert sinks_pkg.WebhookSink is WebhookSink

    def test_lazy_import_unknown_raises(self) -> None:
        with pytest.raises(AttributeError, match="has no attribute"):
            _ = sinks_pkg.NonExistentSink  # type: ignore[attr-defined]
