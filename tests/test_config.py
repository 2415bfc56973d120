"""Tests for smart_home_sim.config - YAML config loading and parsing."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from smart_home_sim.config import AutomationConfig, HomeYAMLConfig, load_yaml_config

# -----------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------


class TestAutomationConfig:
    """AutomationConfig defaults."""

    def test_defaults(self) -> None:
        cfg = AutomationConfig()
        assert cfg.cooling_temperature == 26.0
        assert cfg.cooling_off_delay_s == 300.0
        assert cfg.lights_on_lux == 300.0
        assert cfg.lights_off_delay_s == 120.0
        assert cfg.humidity_threshold == 70.0
        assert cfg.lights == ["light1", "light2", "light3"]
        assert cfg.auto_on_lights == ["light1", "light2"]
        assert cfg.disabled_rules == []

    def test_rejects_bad_types(self) -> None:
        with pytest.raises(ValidationError):
            AutomationConfig(cooling_temperature="hot")


class TestHomeYAMLConfig:
    """HomeYAMLConfig defaults and construction."""

    def test_defaults(self) -> None:
        cfg = HomeYAMLConfig()
        assert cfg.tick_interval_s == 2.0
        assert cfg.speed == 1.0
        assert cfg.duration_s is None
        assert cfg.max_ticks is None
        assert cfg.seed is None
        assert cfg.log_level == "INFO"
        assert cfg.devices is None
        assert cfg.sensors is None
        assert cfg.sink_configs == []


# -----------------------------------------------------------------------
# load_yaml_config
# -----------------------------------------------------------------------


class TestLoadYAMLConfig:
    """load_yaml_config() parsing from temporary YAML files."""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_yaml_config(tmp_path / "nonexistent.yaml")

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "home.yaml"
        cfg_file.write_text("", encoding="utf-8")
        cfg = load_yaml_config(cfg_file)
        assert cfg == HomeYAMLConfig()

    def test_simulation_section(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "home.yaml"
        cfg_file.write_text(
            """\
simulation:
  tick_interval_s: 1
  speed: 10
  duration_s: 30
  max_ticks: 500
  seed: 7
  log_level: debug
""",
            encoding="utf-8",
        )
        cfg = load_yaml_config(cfg_file)
        assert cfg.tick_interval_s == 1.0
        assert cfg.speed == 10.0
        assert cfg.duration_s == 30.0
        assert cfg.max_ticks == 500
        assert cfg.seed == 7
        assert cfg.log_level == "DEBUG"

    def test_full_config(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "home.yaml"
        cfg_file.write_text(
            """\
devices:
  - type: light
    id: porch
    name: Porch Light
  - type: ac
    id: ac
sensors:
  - type: temperature
    baseline: 22
  - type: motion
automation:
  cooling_temperature: 24
  lights: [porch]
  auto_on_lights: [porch]
  disabled_rules: [humidity-control]
sinks:
  - type: console
    rate_hz: 2.0
  - type: file
    path: ./out
    format: csv
""",
            encoding="utf-8",
        )
        cfg = load_yaml_config(cfg_file)
        assert cfg.devices is not None and len(cfg.devices) == 2
        assert cfg.devices[0]["id"] == "porch"
        assert cfg.sensors is not None and cfg.sensors[0]["baseline"] == 22
        assert cfg.automation.cooling_temperature == 24.0
        assert cfg.automation.lights == ["porch"]
        assert cfg.automation.disabled_rules == ["humidity-control"]
        assert [s["type"] for s in cfg.sink_configs] == ["console", "file"]

    def test_invalid_automation_raises(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "home.yaml"
        cfg_file.write_text("automation:\n  humidity_threshold: damp\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_yaml_config(cfg_file)
