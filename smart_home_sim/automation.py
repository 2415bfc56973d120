"""Automation engine - condition/action rules evaluated once per tick.

Rules read live sensor and device state through the broker's registries,
mutate devices when they fire, and announce themselves on
``automation/triggered``.  The engine runs every enabled rule in
insertion order and keeps a bounded activity log of what fired.
"""

from __future__ import annotations

import collections
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence

from smart_home_sim.broker import Broker
from smart_home_sim.config import AutomationConfig
from smart_home_sim.devices import ACMode, AirConditioner, FanSpeed, Light
from smart_home_sim.models import ActivityEntry, AutomationTriggeredPayload, RuleSnapshot
from smart_home_sim.topics import AUTOMATION_TRIGGERED

__all__ = [
    "AutomationEngine",
    "CoolingOffRule",
    "CoolingOnRule",
    "HumidityRule",
    "LightsOffRule",
    "LightsOnRule",
    "NoMotionRule",
    "Rule",
    "build_default_rules",
]

logger = logging.getLogger("smart_home_sim.automation")


def _minutes(seconds: float) -> str:
    return f"{seconds / 60:g}"


# -----------------------------------------------------------------------
# Rule base classes
# -----------------------------------------------------------------------


class Rule(ABC):
    """A single condition -> action unit.

    Subclasses implement :meth:`evaluate` (may update private counters)
    and :meth:`execute`.  :meth:`run` ties them together and keeps the
    trigger bookkeeping.
    """

    def __init__(self, rule_id: str, name: str, description: str, broker: Broker) -> None:
        self.id = rule_id
        self.name = name
        self.description = description
        self.enabled = True
        self.last_triggered: float | None = None
        self.trigger_count = 0
        self._broker = broker

    @abstractmethod
    def evaluate(self, elapsed: float) -> bool:
        """Return ``True`` when the action should fire.

        *elapsed* is the simulated time since the previous evaluation.
        """

    @abstractmethod
    def execute(self) -> None:
        """Perform the action."""

    def run(self, now: float, elapsed: float) -> bool:
        if not self.enabled:
            return False
        if not self.evaluate(elapsed):
            return False
        self.execute()
        self.last_triggered = now
        self.trigger_count += 1
        return True

    def snapshot(self) -> RuleSnapshot:
        return RuleSnapshot(
            id=self.id,
            name=self.name,
            description=self.description,
            enabled=self.enabled,
            last_triggered=self.last_triggered,
            trigger_count=self.trigger_count,
        )

    # -- registry lookups (unknown ids resolve to None) --

    def _sensor_value(self, sensor_id: str) -> float | bool | None:
        sensor = self._broker.get_sensor(sensor_id)
        return sensor.value if sensor is not None else None

    def _air_conditioner(self, device_id: str) -> AirConditioner | None:
        device = self._broker.get_device(device_id)
        return device if isinstance(device, AirConditioner) else None

    def _lights(self, device_ids: Sequence[str]) -> list[Light]:
        lights = [self._broker.get_device(i) for i in device_ids]
        return [light for light in lights if isinstance(light, Light)]

    def _notify(self, action: str, reason: str) -> None:
        self._broker.publish(AUTOMATION_TRIGGERED, AutomationTriggeredPayload(rule=self.id, action=action, reason=reason))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, enabled={self.enabled})"


class NoMotionRule(Rule):
    """Fires after motion has been absent for ``threshold_s`` seconds.

    The accumulator only grows while motion is absent *and* the targets
    are active, and drops to zero the moment either stops holding.  It is
    also reset after every firing.
    """

    def __init__(
        self,
        rule_id: str,
        name: str,
        description: str,
        broker: Broker,
        *,
        threshold_s: float,
        motion_sensor: str,
    ) -> None:
        super().__init__(rule_id, name, description, broker)
        self.threshold_s = threshold_s
        self.motion_sensor = motion_sensor
        self._no_motion_duration = 0.0

    @property
    def no_motion_duration(self) -> float:
        return self._no_motion_duration

    @abstractmethod
    def _targets_active(self) -> bool:
        """Whether there is anything left to switch off."""

    @abstractmethod
    def _switch_off(self) -> str:
        """Switch the targets off and return a description of the action."""

    def evaluate(self, elapsed: float) -> bool:
        motion = self._sensor_value(self.motion_sensor)
        if motion is not None and not motion and self._targets_active():
            self._no_motion_duration += elapsed
            # float sums of the tick interval can land a hair under the threshold
            return self._no_motion_duration >= self.threshold_s or math.isclose(
                self._no_motion_duration, self.threshold_s
            )
        self._no_motion_duration = 0.0
        return False

    def execute(self) -> None:
        action = self._switch_off()
        self._no_motion_duration = 0.0
        self._notify(action, f"No motion for {_minutes(self.threshold_s)} minutes")

# -----------------------------------------------------------------------
# Built-in rules
# -----------------------------------------------------------------------


class CoolingOnRule(Rule):
    """Turn the AC on in cool mode when it is hot and someone is home."""

    def __init__(
        self,
        broker: Broker,
        *,
        threshold: float = 26.0,
        temperature_sensor: str = "temperature",
        motion_sensor: str = "motion",
        ac: str = "ac",
    ) -> None:
        super().__init__(
            "hvac-cooling",
            "HVAC Cooling",
            f"Turn on AC when temperature > {threshold:g}°C and motion is detected",
            broker,
        )
        self.threshold = threshold
        self.temperature_sensor = temperature_sensor
        self.motion_sensor = motion_sensor
        self.ac = ac

    def evaluate(self, elapsed: float) -> bool:
        temp = self._sensor_value(self.temperature_sensor)
        motion = self._sensor_value(self.motion_sensor)
        ac = self._air_conditioner(self.ac)
        if temp is None or ac is None:
            return False
        return temp > self.threshold and bool(motion) and not ac.is_on

    def execute(self) -> None:
        ac = self._air_conditioner(self.ac)
        if ac is None:
            return
        ac.set_mode(ACMode.COOL)
        ac.turn_on()
        temp = float(self._sensor_value(self.temperature_sensor) or 0.0)
        self._notify("AC turned on (cooling mode)", f"Temperature: {temp:.1f}°C, Motion: detected")


class CoolingOffRule(NoMotionRule):
    """Turn the AC off after a stretch without motion."""

    def __init__(
        self,
        broker: Broker,
        *,
        threshold_s: float = 300.0,
        motion_sensor: str = "motion",
        ac: str = "ac",
    ) -> None:
        super().__init__(
            "hvac-off",
            "HVAC Auto-Off",
            f"Turn off AC after {_minutes(threshold_s)} minutes of no motion",
            broker,
            threshold_s=threshold_s,
            motion_sensor=motion_sensor,
        )
        self.ac = ac

    def _targets_active(self) -> bool:
        ac = self._air_conditioner(self.ac)
        return ac is not None and ac.is_on

    def _switch_off(self) -> str:
        ac = self._air_conditioner(self.ac)
        if ac is not None:
            ac.turn_off()
        return "AC turned off"


class LightsOnRule(Rule):
    """Turn lights on when it is dark, someone moves and every light is off.

    Only the ``switch_on`` subset is switched on (by default the first two
    of ``lights``); :class:`LightsOffRule` switches all of them off.
    """

    def __init__(
        self,
        broker: Broker,
        *,
        threshold: float = 300.0,
        light_sensor: str = "light",
        motion_sensor: str = "motion",
        lights: Sequence[str] = ("light1", "light2", "light3"),
        switch_on: Sequence[str] | None = None,
    ) -> None:
        super().__init__(
            "lighting-on",
            "Auto Lights On",
            f"Turn on lights when ambient light < {threshold:g} lux and motion is detected",
            broker,
        )
        self.threshold = threshold
        self.light_sensor = light_sensor
        self.motion_sensor = motion_sensor
        self.lights = list(lights)
        self.switch_on = list(switch_on) if switch_on is not None else self.lights[:2]

    def evaluate(self, elapsed: float) -> bool:
        ambient = self._sensor_value(self.light_sensor)
        motion = self._sensor_value(self.motion_sensor)
        lights = self._lights(self.lights)
        if ambient is None or not lights:
            return False
        return ambient < self.threshold and bool(motion) and not any(light.is_on for light in lights)

    def execute(self) -> None:
        for light in self._lights(self.switch_on):
            light.turn_on()
        ambient = float(self._sensor_value(self.light_sensor) or 0.0)
        self._notify("Lights turned on", f"Ambient light: {ambient:.0f} lux, Motion: detected")


class LightsOffRule(NoMotionRule):
    """Turn every light off after a stretch without motion."""

    def __init__(
        self,
        broker: Broker,
        *,
        threshold_s: float = 120.0,
        motion_sensor: str = "motion",
        lights: Sequence[str] = ("light1", "light2", "light3"),
    ) -> None:
        super().__init__(
            "lighting-off",
            "Auto Lights Off",
            f"Turn off lights after {_minutes(threshold_s)} minutes of no motion",
            broker,
            threshold_s=threshold_s,
            motion_sensor=motion_sensor,
        )
        self.lights = list(lights)

    def _targets_active(self) -> bool:
        return any(light.is_on for light in self._lights(self.lights))

    def _switch_off(self) -> str:
        for light in self._lights(self.lights):
            light.turn_off()
        return "Lights turned off"


class HumidityRule(Rule):
    """Dehumidify: force cool mode and high fan while humidity is high.

    Fires on every evaluation while the condition holds.
    """

    def __init__(
        self,
        broker: Broker,
        *,
        threshold: float = 70.0,
        humidity_sensor: str = "humidity",
        ac: str = "ac",
    ) -> None:
        super().__init__(
            "humidity-control",
            "Humidity Control",
            "Adjust AC mode based on humidity levels",
            broker,
        )
        self.threshold = threshold
        self.humidity_sensor = humidity_sensor
        self.ac = ac

    def evaluate(self, elapsed: float) -> bool:
        humidity = self._sensor_value(self.humidity_sensor)
        ac = self._air_conditioner(self.ac)
        if humidity is None or ac is None:
            return False
        return humidity > self.threshold and ac.is_on

    def execute(self) -> None:
        ac = self._air_conditioner(self.ac)
        if ac is None:
            return
        ac.set_mode(ACMode.COOL)
        ac.set_fan_speed(FanSpeed.HIGH)
        humidity = float(self._sensor_value(self.humidity_sensor) or 0.0)
        self._notify("AC set to high fan for dehumidification", f"Humidity: {humidity:.1f}%")


def build_default_rules(broker: Broker, config: AutomationConfig | None = None) -> list[Rule]:
    """Create the five built-in rules bound to the ids in *config*."""
    cfg = config or AutomationConfig()
    rules: list[Rule] = [
        CoolingOnRule(
            broker,
            threshold=cfg.cooling_temperature,
            temperature_sensor=cfg.temperature_sensor,
            motion_sensor=cfg.motion_sensor,
            ac=cfg.ac_id,
        ),
        CoolingOffRule(broker, threshold_s=cfg.cooling_off_delay_s, motion_sensor=cfg.motion_sensor, ac=cfg.ac_id),
        LightsOnRule(
            broker,
            threshold=cfg.lights_on_lux,
            light_sensor=cfg.light_sensor,
            motion_sensor=cfg.motion_sensor,
            lights=cfg.lights,
            switch_on=cfg.auto_on_lights,
        ),
        LightsOffRule(broker, threshold_s=cfg.lights_off_delay_s, motion_sensor=cfg.motion_sensor, lights=cfg.lights),
        HumidityRule(broker, threshold=cfg.humidity_threshold, humidity_sensor=cfg.humidity_sensor, ac=cfg.ac_id),
    ]
    for rule in rules:
        if rule.id in cfg.disabled_rules:
            rule.enabled = False
    return rules


# -----------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------


class AutomationEngine:
    """Owns the rules and evaluates them once per tick.

    Parameters:
        broker: Source of live sensor/device state and of timestamps.
        tick_interval: Simulated seconds between evaluations, fed to the
                       hysteresis accumulators of delay-based rules.
    """

    ACTIVITY_LOG_SIZE = 50

    def __init__(self, broker: Broker, tick_interval: float = 2.0) -> None:
        self._broker = broker
        self.tick_interval = tick_interval
        self._rules: dict[str, Rule] = {}
        self._activity: collections.deque[ActivityEntry] = collections.deque(maxlen=self.ACTIVITY_LOG_SIZE)

    # ------------------------------------------------------------------
    # Rule management (unknown ids are no-ops)
    # ------------------------------------------------------------------

    def add_rule(self, rule: Rule) -> bool:
        if rule.id in self._rules:
            logger.warning("Duplicate rule id '%s' - rule not added", rule.id)
            return False
        self._rules[rule.id] = rule
        logger.debug("Added rule %s", rule.id)
        return True

    def remove_rule(self, rule_id: str) -> bool:
        return self._rules.pop(rule_id, None) is not None

    def get_rule(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def enable_rule(self, rule_id: str) -> bool:
        rule = self._rules.get(rule_id)
        if rule is None:
            return False
        rule.enabled = True
        return True

    def disable_rule(self, rule_id: str) -> bool:
        rule = self._rules.get(rule_id)
        if rule is None:
            return False
        rule.enabled = False
        return True

    def toggle_rule(self, rule_id: str) -> bool | None:
        """Flip a rule's ``enabled`` flag.  Returns the new flag, or
        ``None`` for an unknown id."""
        rule = self._rules.get(rule_id)
        if rule is None:
            return None
        rule.enabled = not rule.enabled
        logger.info("Rule %s %s", rule_id, "enabled" if rule.enabled else "disabled")
        return rule.enabled

    @property
    def rule_ids(self) -> list[str]:
        return list(self._rules)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, elapsed: float | None = None) -> list[str]:
        """Run every rule once, in insertion order.

        Returns the ids of the rules that fired.
        """
        elapsed = self.tick_interval if elapsed is None else elapsed
        triggered: list[str] = []
        for rule_id, rule in list(self._rules.items()):
            now = self._broker.now()
            if rule.run(now, elapsed):
                self._activity.append(ActivityEntry(rule_id=rule_id, rule_name=rule.name, timestamp=now))
                triggered.append(rule_id)
                logger.info("Rule %s triggered (count=%d)", rule_id, rule.trigger_count)
        if triggered:
            logger.debug("Evaluated %d rules, %d triggered", len(self._rules), len(triggered))
        return triggered

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def rules(self) -> list[RuleSnapshot]:
        return [rule.snapshot() for rule in self._rules.values()]

    def activity_log(self, limit: int | None = 20) -> list[ActivityEntry]:
        """Most recent activity entries, oldest first (``None`` = all retained)."""
        entries = list(self._activity)
        if limit is None:
            return entries
        return entries[-limit:] if limit > 0 else []
