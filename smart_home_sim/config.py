"""Configuration loader for the smart home YAML format.

Parses YAML files with the following top-level sections::

    simulation:   # tick cadence, run length, seed, log level
    devices:      # optional device layout (defaults to the built-in home)
    sensors:      # optional sensor layout (defaults to the built-in home)
    automation:   # rule thresholds and the ids each rule is bound to
    sinks:        # list of sink configs with throughput params

Example:

.. code-block:: yaml

    simulation:
      tick_interval_s: 2.0
      speed: 10.0
      duration_s: 60
      seed: 42

    automation:
      cooling_temperature: 25
      disabled_rules: [humidity-control]

    sinks:
      - type: console
        rate_hz: 1.0
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

__all__ = ["AutomationConfig", "HomeYAMLConfig", "load_yaml_config"]

logger = logging.getLogger("smart_home_sim.config")


class AutomationConfig(BaseModel):
    """Thresholds and bindings for the built-in automation rules.

    Attributes:
        cooling_temperature: Cooling-on fires above this temperature (°C).
        cooling_off_delay_s: Seconds without motion before the AC is switched off.
        lights_on_lux: Lights-on fires below this ambient light level.
        lights_off_delay_s: Seconds without motion before the lights are switched off.
        humidity_threshold: Humidity rule fires above this relative humidity (%).
        ac_id: Device id of the air conditioner the HVAC rules drive.
        lights: Light ids checked by the lighting rules and switched off together.
        auto_on_lights: Subset of ``lights`` switched on by the lights-on rule.
        disabled_rules: Rule ids that start disabled.
    """

    cooling_temperature: float = 26.0
    cooling_off_delay_s: float = 300.0
    lights_on_lux: float = 300.0
    lights_off_delay_s: float = 120.0
    humidity_threshold: float = 70.0

    ac_id: str = "ac"
    lights: list[str] = Field(default_factory=lambda: ["light1", "light2", "light3"])
    auto_on_lights: list[str] = Field(default_factory=lambda: ["light1", "light2"])
    temperature_sensor: str = "temperature"
    motion_sensor: str = "motion"
    humidity_sensor: str = "humidity"
    light_sensor: str = "light"

    disabled_rules: list[str] = Field(default_factory=list)


class HomeYAMLConfig(BaseModel):
    """Parsed representation of the full YAML configuration.

    Attributes:
        tick_interval_s: Simulated seconds per tick.
        speed: Real-time multiplier for :meth:`SmartHome.run` (``10`` runs
               ten ticks in the wall-clock time of one tick interval).
        duration_s: Optional run duration in wall-clock seconds.
        max_ticks: Optional number of ticks after which the run stops.
        seed: Optional seed for every sensor's random source.
        log_level: Logging level string.
        devices: Device dicts for the catalog factory, ``None`` for the
                 built-in layout.
        sensors: Sensor dicts for the catalog factory, ``None`` for the
                 built-in layout.
        automation: Rule thresholds and bindings.
        sink_configs: Raw dicts passed to the sink factory.
    """

    tick_interval_s: float = 2.0
    speed: float = 1.0
    duration_s: float | None = None
    max_ticks: int | None = None
    seed: int | None = None
    log_level: str = "INFO"
    devices: list[dict[str, Any]] | None = None
    sensors: list[dict[str, Any]] | None = None
    automation: AutomationConfig = Field(default_factory=AutomationConfig)
    sink_configs: list[dict[str, Any]] = Field(default_factory=list)


def load_yaml_config(path: str | Path) -> HomeYAMLConfig:
    """Load and validate a YAML configuration file.

    Returns a :class:`HomeYAMLConfig` ready to be passed to
    :meth:`SmartHome.from_config`.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    # --- simulation section ---
    sim_section = raw.get("simulation") or {}
    duration_s = sim_section.get("duration_s")
    max_ticks = sim_section.get("max_ticks")
    seed = sim_section.get("seed")

    config = HomeYAMLConfig(
        tick_interval_s=float(sim_section.get("tick_interval_s", 2.0)),
        speed=float(sim_section.get("speed", 1.0)),
        duration_s=float(duration_s) if duration_s is not None else None,
        max_ticks=int(max_ticks) if max_ticks is not None else None,
        seed=int(seed) if seed is not None else None,
        log_level=str(sim_section.get("log_level", "INFO")).upper(),
        devices=raw.get("devices"),
        sensors=raw.get("sensors"),
        automation=AutomationConfig.model_validate(raw.get("automation") or {}),
        sink_configs=raw.get("sinks") or [],
    )

    logger.info(
        "Loaded config: %s devices, %s sensors, %d sinks",
        len(config.devices) if config.devices is not None else "default",
        len(config.sensors) if config.sensors is not None else "default",
        len(config.sink_configs),
    )
    return config
