"""Common data models for the smart home simulator.

Defines the payload kinds carried on broker topics, the immutable
:class:`Message` envelope, and the read-only snapshots handed to
observers (UI glue, CLI, sinks).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

__all__ = [
    "ActivityEntry",
    "AutomationTriggeredPayload",
    "DeviceSnapshot",
    "DeviceStatePayload",
    "HistoryPoint",
    "Message",
    "Payload",
    "PowerEntry",
    "RegistrationPayload",
    "RuleSnapshot",
    "SensorReadingPayload",
    "SensorSnapshot",
]


class _Frozen(BaseModel):
    """Base for every model in this module - immutable once built."""

    model_config = {"frozen": True}

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return a plain ``dict`` representation (JSON-safe types)."""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        """Return a compact JSON string."""
        return self.model_dump_json()


# -----------------------------------------------------------------------
# Payloads (one kind per topic category)
# -----------------------------------------------------------------------


class DeviceStatePayload(_Frozen):
    """A device changed externally visible state.

    ``attribute`` names what changed (``"power"`` for on/off transitions,
    otherwise ``"brightness"``, ``"mode"``, ``"target_temperature"``,
    ``"fan_speed"`` or ``"heating"``) and ``value`` holds its new value.
    """

    kind: Literal["device_state"] = "device_state"
    id: str
    name: str
    is_on: bool
    power: float
    attribute: str = "power"
    value: bool | float | str | None = None


class SensorReadingPayload(_Frozen):
    """A sensor produced a new reading."""

    kind: Literal["sensor_reading"] = "sensor_reading"
    id: str
    name: str
    value: bool | float
    unit: str
    timestamp: float
    detected: bool | None = None


class AutomationTriggeredPayload(_Frozen):
    """An automation rule fired and executed its action."""

    kind: Literal["automation_triggered"] = "automation_triggered"
    rule: str
    action: str
    reason: str


class RegistrationPayload(_Frozen):
    """A device or sensor joined the broker."""

    kind: Literal["registration"] = "registration"
    participant: Literal["device", "sensor"]
    id: str
    name: str


Payload = Annotated[
    Union[DeviceStatePayload, SensorReadingPayload, AutomationTriggeredPayload, RegistrationPayload],
    Field(discriminator="kind"),
]


class Message(_Frozen):
    """A single publication routed by the broker.

    Attributes:
        topic: Exact-match topic string, e.g. ``"device/ac/state"``.
        payload: One of the payload kinds above.
        timestamp: Clock reading (seconds) at publish time.
    """

    topic: str
    payload: Payload
    timestamp: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Construct a ``Message`` from a plain dict."""
        return cls.model_validate(data)


# -----------------------------------------------------------------------
# Snapshots
# -----------------------------------------------------------------------


class DeviceSnapshot(_Frozen):
    """Flat copy of a device's state.  Type-specific fields are ``None``
    for device types that do not have them."""

    id: str
    name: str
    type: str
    is_on: bool
    power: float
    max_power: float
    brightness: int | None = None
    mode: str | None = None
    target_temperature: float | None = None
    fan_speed: str | None = None
    current_water_temp: float | None = None
    is_heating: bool | None = None


class HistoryPoint(_Frozen):
    value: bool | float
    timestamp: float


class SensorSnapshot(_Frozen):
    """Flat copy of a sensor's state with its most recent history."""

    id: str
    name: str
    type: str
    unit: str
    value: bool | float
    min_value: float
    max_value: float
    history: list[HistoryPoint] = Field(default_factory=list)
    detected: bool | None = None
    object_present: bool | None = None
    time_of_day: str | None = None
    is_low: bool | None = None


class RuleSnapshot(_Frozen):
    id: str
    name: str
    description: str
    enabled: bool
    last_triggered: float | None
    trigger_count: int


class ActivityEntry(_Frozen):
    """One triggered-rule record in the engine's activity log."""

    rule_id: str
    rule_name: str
    timestamp: float


class PowerEntry(_Frozen):
    """One row of the per-device power breakdown."""

    id: str
    name: str
    power: float
    is_on: bool
