"""Sink factory - creates sink instances from configuration dicts.

Used by the config-driven (YAML) mode::

    sinks:
      - type: console
        rate_hz: 0.5
      - type: file
        path: ./output
        format: csv
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from smart_home_sim.sinks.base import Sink

__all__ = ["create_sink", "register_sink"]

logger = logging.getLogger("smart_home_sim.sinks.factory")

# Registry of type names -> (module_path, class_name); imported lazily so
# optional extras are only needed when used.
_SINK_REGISTRY: dict[str, tuple[str, str]] = {
    "console": ("smart_home_sim.sinks.console", "ConsoleSink"),
    "callback": ("smart_home_sim.sinks.callback", "CallbackSink"),
    "file": ("smart_home_sim.sinks.file", "FileSink"),
    "webhook": ("smart_home_sim.sinks.webhook", "WebhookSink"),
}


def create_sink(config: dict[str, Any]) -> Sink:
    """Create a sink from a config dict.

    The dict must contain a ``"type"`` key matching a registered sink
    name; every other key is forwarded to the sink constructor.

    Returns:
        A constructed :class:`Sink` (not yet connected).
    """
    config = dict(config)
    sink_type = config.pop("type", None)
    if sink_type is None:
        raise ValueError("Sink config must include a 'type' key")

    sink_type = str(sink_type).lower().strip()
    if sink_type not in _SINK_REGISTRY:
        raise ValueError(f"Unknown sink type '{sink_type}'.  Available: {sorted(_SINK_REGISTRY)}")

    module_path, class_name = _SINK_REGISTRY[sink_type]
    cls = getattr(importlib.import_module(module_path), class_name)

    logger.debug("Creating %s with config: %s", class_name, config)
    return cls(**config)


def register_sink(name: str, module_path: str, class_name: str) -> None:
    """Register a custom sink type for config-driven instantiation."""
    _SINK_REGISTRY[name.lower().strip()] = (module_path, class_name)
