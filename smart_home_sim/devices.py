"""Controllable device models.

The device taxonomy is closed: :class:`Light`, :class:`AirConditioner`
and :class:`WaterHeater`.  Each computes its instantaneous power draw from
its current state and announces every externally visible change through
the broker it is bound to.  Mutators that would not change anything
return ``False`` and publish nothing.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from smart_home_sim.models import DeviceSnapshot, DeviceStatePayload
from smart_home_sim.topics import device_topic

if TYPE_CHECKING:
    from smart_home_sim.broker import Broker

__all__ = [
    "ACMode",
    "AirConditioner",
    "Device",
    "DeviceKind",
    "FanSpeed",
    "Light",
    "WaterHeater",
]

logger = logging.getLogger("smart_home_sim.devices")


class DeviceKind(StrEnum):
    """Device types known to the simulator."""

    LIGHT = "light"
    AIR_CONDITIONER = "ac"
    WATER_HEATER = "water_heater"


class ACMode(StrEnum):
    COOL = "cool"
    HEAT = "heat"
    AUTO = "auto"
    FAN = "fan"


class FanSpeed(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    AUTO = "auto"


class Device:
    """Base class holding identity, on/off state and the broker binding.

    Parameters:
        device_id: Registry key, unique per broker.
        name: Human readable label.
        max_power: Rated power draw in watts.
    """

    kind: ClassVar[DeviceKind]

    def __init__(self, device_id: str, name: str, max_power: float) -> None:
        self.id = device_id
        self.name = name
        self.max_power = float(max_power)
        self._is_on = False
        self._broker: Broker | None = None

    # ------------------------------------------------------------------
    # Broker binding
    # ------------------------------------------------------------------

    def bind(self, broker: Broker) -> None:
        """Attach the broker used for outbound publications."""
        self._broker = broker

    @property
    def broker(self) -> Broker | None:
        return self._broker

    # ------------------------------------------------------------------
    # Power state
    # ------------------------------------------------------------------

    @property
    def is_on(self) -> bool:
        return self._is_on

    def turn_on(self) -> bool:
        if self._is_on:
            return False
        self._is_on = True
        self._on_power_change()
        return True

    def turn_off(self) -> bool:
        if not self._is_on:
            return False
        self._is_on = False
        self._on_power_change()
        return True

    def toggle(self) -> bool:
        """Flip the on/off state.  Returns the new state."""
        if self._is_on:
            self.turn_off()
        else:
            self.turn_on()
        return self._is_on

    def power(self) -> float:
        """Instantaneous power draw in watts."""
        return self.max_power if self._is_on else 0.0

    def update(self) -> None:
        """Advance internal physics by one tick.  Most devices have none."""

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def snapshot(self) -> DeviceSnapshot:
        return DeviceSnapshot(
            id=self.id,
            name=self.name,
            type=self.kind.value,
            is_on=self._is_on,
            power=self.power(),
            max_power=self.max_power,
            **self._snapshot_fields(),
        )

    def _snapshot_fields(self) -> dict[str, object]:
        return {}

    def _on_power_change(self) -> None:
        logger.info("%s turned %s", self.id, "on" if self._is_on else "off")
        self._publish("state", "power", self._is_on)

    def _publish(self, channel: str, attribute: str, value: bool | float | str | None) -> None:
        if self._broker is None:
            return
        self._broker.publish(
            device_topic(self.id, channel),
            DeviceStatePayload(
                id=self.id,
                name=self.name,
                is_on=self._is_on,
                power=self.power(),
                attribute=attribute,
                value=value,
            ),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, is_on={self._is_on})"


class Light(Device):
    """Dimmable light; draws ``max_power * brightness / 100`` when on."""

    kind = DeviceKind.LIGHT

    def __init__(self, device_id: str, name: str, max_power: float = 60.0, brightness: int = 100) -> None:
        super().__init__(device_id, name, max_power)
        self.brightness = self._clamp(brightness)

    @staticmethod
    def _clamp(level: float) -> int:
        return int(max(0, min(100, round(level))))

    def set_brightness(self, level: float) -> bool:
        level = self._clamp(level)
        if level == self.brightness:
            return False
        self.brightness = level
        self._publish("brightness", "brightness", level)
        return True

    def power(self) -> float:
        if not self._is_on:
            return 0.0
        return self.max_power * self.brightness / 100

    def _snapshot_fields(self) -> dict[str, object]:
        return {"brightness": self.brightness}


class AirConditioner(Device):
    """Air conditioner with mode, target temperature and fan speed."""

    kind = DeviceKind.AIR_CONDITIONER

    MIN_TARGET: ClassVar[float] = 16.0
    MAX_TARGET: ClassVar[float] = 30.0

    _MODE_MULTIPLIER: ClassVar[dict[ACMode, float]] = {
        ACMode.COOL: 1.0,
        ACMode.HEAT: 1.2,
        ACMode.AUTO: 0.8,
        ACMode.FAN: 0.1,
    }

    def __init__(
        self,
        device_id: str,
        name: str,
        max_power: float = 1500.0,
        mode: str = ACMode.COOL,
        target_temperature: float = 24.0,
        fan_speed: str = FanSpeed.AUTO,
    ) -> None:
        super().__init__(device_id, name, max_power)
        self.mode = ACMode(mode)
        self.target_temperature = self._clamp(target_temperature)
        self.fan_speed = FanSpeed(fan_speed)

    @classmethod
    def _clamp(cls, temp: float) -> float:
        return float(max(cls.MIN_TARGET, min(cls.MAX_TARGET, temp)))

    def set_mode(self, mode: str) -> bool:
        try:
            new_mode = ACMode(mode)
        except ValueError:
            logger.debug("%s: ignoring unknown mode %r", self.id, mode)
            return False
        if new_mode == self.mode:
            return False
        self.mode = new_mode
        self._publish("mode", "mode", new_mode.value)
        return True

    def set_target_temperature(self, temp: float) -> bool:
        temp = self._clamp(temp)
        if temp == self.target_temperature:
            return False
        self.target_temperature = temp
        self._publish("target-temp", "target_temperature", temp)
        return True

    def set_fan_speed(self, speed: str) -> bool:
        try:
            new_speed = FanSpeed(speed)
        except ValueError:
            logger.debug("%s: ignoring unknown fan speed %r", self.id, speed)
            return False
        if new_speed == self.fan_speed:
            return False
        self.fan_speed = new_speed
        self._publish("fan-speed", "fan_speed", new_speed.value)
        return True

    def power(self) -> float:
        if not self._is_on:
            return 0.0
        return self.max_power * self._MODE_MULTIPLIER[self.mode]

    def _snapshot_fields(self) -> dict[str, object]:
        return {
            "mode": self.mode.value,
            "target_temperature": self.target_temperature,
            "fan_speed": self.fan_speed.value,
        }


class WaterHeater(Device):
    """Storage water heater.

    While on and below target the water warms by :attr:`HEAT_STEP` per
    tick at full rated power; at or above target it idles on
    :attr:`STANDBY_POWER`.  While off it cools toward
    :attr:`AMBIENT_TEMP` by :attr:`COOL_STEP` per tick and draws nothing.
    """

    kind = DeviceKind.WATER_HEATER

    MIN_TARGET: ClassVar[float] = 30.0
    MAX_TARGET: ClassVar[float] = 70.0
    HEAT_STEP: ClassVar[float] = 0.5
    COOL_STEP: ClassVar[float] = 0.1
    AMBIENT_TEMP: ClassVar[float] = 25.0
    STANDBY_POWER: ClassVar[float] = 50.0

    def __init__(
        self,
        device_id: str,
        name: str,
        max_power: float = 2000.0,
        target_temperature: float = 50.0,
        current_water_temp: float = 25.0,
    ) -> None:
        super().__init__(device_id, name, max_power)
        self.target_temperature = self._clamp(target_temperature)
        self.current_water_temp = float(current_water_temp)
        self.is_heating = False

    @classmethod
    def _clamp(cls, temp: float) -> float:
        return float(max(cls.MIN_TARGET, min(cls.MAX_TARGET, temp)))

    def set_target_temperature(self, temp: float) -> bool:
        temp = self._clamp(temp)
        if temp == self.target_temperature:
            return False
        self.target_temperature = temp
        self._publish("target-temp", "target_temperature", temp)
        return True

    def update(self) -> None:
        was_heating = self.is_heating
        if self._is_on:
            if self.current_water_temp < self.target_temperature:
                self.current_water_temp += self.HEAT_STEP
                self.is_heating = True
            else:
                self.is_heating = False
        else:
            if self.current_water_temp > self.AMBIENT_TEMP:
                self.current_water_temp = max(self.AMBIENT_TEMP, self.current_water_temp - self.COOL_STEP)
            self.is_heating = False

        if self.is_heating != was_heating:
            self._publish("heating", "heating", self.is_heating)

    def power(self) -> float:
        if not self._is_on:
            return 0.0
        return self.max_power if self.is_heating else self.STANDBY_POWER

    def _snapshot_fields(self) -> dict[str, object]:
        return {
            "target_temperature": self.target_temperature,
            "current_water_temp": round(self.current_water_temp, 1),
            "is_heating": self.is_heating,
        }
