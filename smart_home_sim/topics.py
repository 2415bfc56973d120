"""Topic strings used on the broker.

Topics are opaque exact-match keys; the broker never parses them.  The
helpers here only build the strings publishers and subscribers agree on.
"""

from __future__ import annotations

__all__ = [
    "AUTOMATION_TRIGGERED",
    "DEVICE_REGISTERED",
    "SENSOR_REGISTERED",
    "WILDCARD",
    "device_topic",
    "sensor_reading_topic",
]

#: Subscribing to this topic receives every publication.
WILDCARD = "*"

DEVICE_REGISTERED = "device/registered"
SENSOR_REGISTERED = "sensor/registered"
AUTOMATION_TRIGGERED = "automation/triggered"


def device_topic(device_id: str, channel: str = "state") -> str:
    """``device/<id>/<channel>`` - channel is ``state``, ``brightness``,
    ``mode``, ``target-temp``, ``fan-speed`` or ``heating``."""
    return f"device/{device_id}/{channel}"


def sensor_reading_topic(sensor_id: str) -> str:
    return f"sensor/{sensor_id}/reading"
