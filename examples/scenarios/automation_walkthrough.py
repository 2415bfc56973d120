#!/usr/bin/env python3
"""Automation walkthrough -- drive the rules by hand with manual sensor
overrides and watch each one fire.

No run loop and no sinks: every step calls ``tick()`` directly and prints
what the broker published.

Usage::

    python examples/scenarios/automation_walkthrough.py
"""

from __future__ import annotations

from smart_home_sim import SmartHome
from smart_home_sim.sensors import HumiditySensor, LightSensor, MotionSensor, TemperatureSensor
from smart_home_sim.sinks.console import describe


class _Frozen:
    """Sensors that keep whatever value they are given."""

    def simulate(self) -> None:
        pass


class StillTemperature(_Frozen, TemperatureSensor):
    pass


class StillMotion(_Frozen, MotionSensor):
    pass


class StillHumidity(_Frozen, HumiditySensor):
    pass


class StillLight(_Frozen, LightSensor):
    pass


def show(title: str, home: SmartHome) -> None:
    print(f"--- {title}")
    for msg in home.tick():
        if msg.topic.startswith("sensor/"):
            continue
        print(f"  [{msg.topic}] {describe(msg.payload)}")
    print(f"  power: {home.total_power():.0f} W\n")


def main() -> None:
    home = SmartHome(sensors=[StillTemperature(), StillMotion(), StillHumidity(), StillLight()])
    show("registration", home)

    home.set_sensor_value("temperature", 28.5)
    home.set_sensor_value("motion", True)
    show("hot and occupied -> cooling on", home)

    home.set_sensor_value("light", 120)
    show("dark -> two lights on", home)

    home.set_sensor_value("humidity", 76)
    show("humid -> dehumidify", home)
    home.set_sensor_value("humidity", 50)

    home.set_sensor_value("motion", False)
    for _ in range(59):
        home.tick()
    show("two minutes without motion -> lights off", home)

    for _ in range(89):
        home.tick()
    show("five minutes without motion -> AC off", home)

    print("Rules:")
    for rule in home.rule_states():
        print(f"  {rule.id:<18} triggered {rule.trigger_count}x")


if __name__ == "__main__":
    main()
