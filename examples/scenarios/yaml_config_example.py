#!/usr/bin/env python3
"""YAML config-driven example -- describe the whole home (devices, sensors,
rule thresholds, sinks) in a YAML file and build it with one call.

Directly runnable (uses Console + File sinks only).

Usage::

    python examples/scenarios/yaml_config_example.py

Equivalent CLI::

    smart-home-sim run --config examples/configs/home_config.yaml
"""

from __future__ import annotations

import logging
from pathlib import Path


def main() -> None:
    print("=== YAML Config-Driven Example ===\n")

    config_path = Path(__file__).parent.parent / "configs" / "home_config.yaml"
    if not config_path.exists():
        print(f"  Config file not found: {config_path}")
        return

    print(f"  Config file: {config_path}\n")

    from smart_home_sim.config import load_yaml_config

    cfg = load_yaml_config(config_path)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    print(f"  Tick:            {cfg.tick_interval_s}s x{cfg.speed}")
    print(f"  Devices:         {len(cfg.devices or [])}")
    print(f"  Sensors:         {len(cfg.sensors or [])}")
    print(f"  Disabled rules:  {cfg.automation.disabled_rules}")
    for i, sc in enumerate(cfg.sink_configs, 1):
        print(f"    Sink {i}: type={sc.get('type')}, rate_hz={sc.get('rate_hz')}")
    print()

    from smart_home_sim import SmartHome

    home = SmartHome.from_config(cfg)
    home.run(duration_s=cfg.duration_s, max_ticks=cfg.max_ticks)

    print(f"\n  Ticks: {home.tick_count}   Power now: {home.total_power():.0f} W")
    for entry in home.activity_log():
        print(f"  {entry.timestamp:.0f}  {entry.rule_name}")


if __name__ == "__main__":
    main()
