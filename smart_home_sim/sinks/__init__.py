"""Observability sinks fed from the broker's wildcard topic.

Import any sink you need directly from this package::

    from smart_home_sim.sinks import ConsoleSink, FileSink
"""

from __future__ import annotations

import importlib
from typing import Any

from smart_home_sim.sinks.base import Sink, SinkConfig, SinkRunner
from smart_home_sim.sinks.callback import CallbackSink
from smart_home_sim.sinks.console import ConsoleSink
from smart_home_sim.sinks.file import FileSink

__all__ = [
    "CallbackSink",
    "ConsoleSink",
    "FileSink",
    "Sink",
    "SinkConfig",
    "SinkRunner",
]


def __getattr__(name: str) -> Any:
    """Lazy-import sinks that require optional dependencies."""
    if name == "WebhookSink":
        return importlib.import_module("smart_home_sim.sinks.webhook").WebhookSink
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
