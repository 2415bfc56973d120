"""Device and sensor catalog - the built-in home layout plus factories that
create instances from configuration dicts.

Used by the config-driven (YAML) mode to describe a home declaratively::

    devices:
      - type: light
        id: porch
        name: Porch Light
        brightness: 40
      - type: ac
        id: ac
        name: Air Conditioner
        target_temperature: 22

    sensors:
      - type: temperature
        baseline: 23
      - type: motion
        motion_probability: 0.4
"""

from __future__ import annotations

import logging
import random
from typing import Any

from smart_home_sim.devices import AirConditioner, Device, Light, WaterHeater
from smart_home_sim.sensors import (
    DistanceSensor,
    HumiditySensor,
    LightSensor,
    MotionSensor,
    PowerSensor,
    Sensor,
    TemperatureSensor,
)

__all__ = [
    "DEFAULT_DEVICES",
    "DEFAULT_SENSORS",
    "create_device",
    "create_sensor",
    "default_devices",
    "default_sensors",
    "register_device_type",
    "register_sensor_type",
]

logger = logging.getLogger("smart_home_sim.catalog")

# Registry of type names -> class
_DEVICE_REGISTRY: dict[str, type[Device]] = {
    "light": Light,
    "ac": AirConditioner,
    "air_conditioner": AirConditioner,
    "water_heater": WaterHeater,
}

_SENSOR_REGISTRY: dict[str, type[Sensor]] = {
    "temperature": TemperatureSensor,
    "motion": MotionSensor,
    "humidity": HumiditySensor,
    "power": PowerSensor,
    "distance": DistanceSensor,
    "light": LightSensor,
}

DEFAULT_DEVICES: list[dict[str, Any]] = [
    {"type": "light", "id": "light1", "name": "Living Room Light"},
    {"type": "light", "id": "light2", "name": "Bedroom Light"},
    {"type": "light", "id": "light3", "name": "Kitchen Light"},
    {"type": "ac", "id": "ac", "name": "Air Conditioner"},
    {"type": "water_heater", "id": "water_heater", "name": "Water Heater"},
]

DEFAULT_SENSORS: list[dict[str, Any]] = [
    {"type": "temperature"},
    {"type": "motion"},
    {"type": "humidity"},
    {"type": "power"},
    {"type": "distance"},
    {"type": "light"},
]


def _pop_type(config: dict[str, Any], what: str, registry: dict[str, Any]) -> str:
    type_name = config.pop("type", None)
    if type_name is None:
        raise ValueError(f"{what.capitalize()} config must include a 'type' key")
    type_name = str(type_name).lower().strip()
    if type_name not in registry:
        raise ValueError(f"Unknown {what} type '{type_name}'.  Available: {sorted(registry)}")
    return type_name


def create_device(config: dict[str, Any]) -> Device:
    """Create a device from a config dict.

    The dict needs ``type`` and ``id``; ``name`` defaults to the id and
    every other key is forwarded to the device constructor.
    """
    config = dict(config)  # shallow copy
    type_name = _pop_type(config, "device", _DEVICE_REGISTRY)
    if "id" not in config:
        raise ValueError("Device config must include an 'id' key")
    device_id = str(config.pop("id"))
    name = str(config.pop("name", device_id))

    cls = _DEVICE_REGISTRY[type_name]
    logger.debug("Creating %s '%s' with config: %s", cls.__name__, device_id, config)
    return cls(device_id, name, **config)


def create_sensor(config: dict[str, Any], *, rng: random.Random | None = None) -> Sensor:
    """Create a sensor from a config dict.

    The dict needs ``type``; ``id`` and ``name`` fall back to the sensor
    class defaults and every other key is forwarded to the constructor.
    """
    config = dict(config)
    type_name = _pop_type(config, "sensor", _SENSOR_REGISTRY)
    if "id" in config:
        config["sensor_id"] = str(config.pop("id"))

    cls = _SENSOR_REGISTRY[type_name]
    logger.debug("Creating %s with config: %s", cls.__name__, config)
    return cls(rng=rng, **config)


def default_devices() -> list[Device]:
    """Three lights, an air conditioner and a water heater."""
    return [create_device(cfg) for cfg in DEFAULT_DEVICES]


def default_sensors(rng: random.Random | None = None) -> list[Sensor]:
    """One sensor of every built-in kind, sharing *rng* if given."""
    return [create_sensor(cfg, rng=rng) for cfg in DEFAULT_SENSORS]


def register_device_type(name: str, cls: type[Device]) -> None:
    """Register a custom device class for config-driven instantiation."""
    _DEVICE_REGISTRY[name.lower().strip()] = cls


def register_sensor_type(name: str, cls: type[Sensor]) -> None:
    """Register a custom sensor class for config-driven instantiation."""
    _SENSOR_REGISTRY[name.lower().strip()] = cls
