"""Sensor models for the simulated home.

Each sensor keeps a bounded value, a rolling history of the last
:attr:`Sensor.HISTORY_SIZE` readings and a type-specific ``simulate()``
transition that is called once per tick.  Every write goes through
:meth:`Sensor.set_value`, which clamps, records history and publishes a
reading on ``sensor/<id>/reading`` - simulated updates and manual
overrides take the same path.
"""

from __future__ import annotations

import collections
import logging
import random
import time
from collections.abc import Callable
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from smart_home_sim.devices import AirConditioner, ACMode, DeviceKind, Light
from smart_home_sim.models import HistoryPoint, SensorReadingPayload, SensorSnapshot
from smart_home_sim.topics import sensor_reading_topic

if TYPE_CHECKING:
    from smart_home_sim.broker import Broker

__all__ = [
    "DistanceSensor",
    "HumiditySensor",
    "LightSensor",
    "MotionSensor",
    "PowerSensor",
    "Sensor",
    "SensorKind",
    "TemperatureSensor",
]

logger = logging.getLogger("smart_home_sim.sensors")


class SensorKind(StrEnum):
    """Sensor types known to the simulator."""

    TEMPERATURE = "temperature"
    MOTION = "motion"
    HUMIDITY = "humidity"
    POWER = "power"
    DISTANCE = "distance"
    LIGHT = "light"


class Sensor:
    """Base class for all sensors.

    Parameters:
        sensor_id: Registry key, unique per broker.
        name: Human readable label.
        unit: Engineering unit string.
        min_value / max_value: Inclusive bounds every write is clamped to.
        value: Initial value (defaults to the midpoint of the range).
        rng: Random source for ``simulate()``; pass a seeded
             ``random.Random`` for reproducible runs.
    """

    kind: ClassVar[SensorKind]

    HISTORY_SIZE: ClassVar[int] = 60
    SNAPSHOT_HISTORY: ClassVar[int] = 20

    def __init__(
        self,
        sensor_id: str,
        name: str,
        unit: str,
        min_value: float,
        max_value: float,
        value: float | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.id = sensor_id
        self.name = name
        self.unit = unit
        self.min_value = float(min_value)
        self.max_value = float(max_value)
        self._value: float | bool = float(value) if value is not None else (self.min_value + self.max_value) / 2
        self._history: collections.deque[HistoryPoint] = collections.deque(maxlen=self.HISTORY_SIZE)
        self._rng = rng or random.Random()
        self._broker: Broker | None = None

    def bind(self, broker: Broker) -> None:
        """Attach the broker used for outbound publications."""
        self._broker = broker

    @property
    def broker(self) -> Broker | None:
        return self._broker

    @property
    def value(self) -> float | bool:
        return self._value

    @property
    def history(self) -> list[HistoryPoint]:
        """All retained readings, oldest first."""
        return list(self._history)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_value(self, new_value: float) -> float | bool:
        """Clamp *new_value* to the sensor range, record it and publish it."""
        self._value = max(self.min_value, min(self.max_value, float(new_value)))
        self._record()
        return self._value

    def simulate(self) -> None:
        """Produce the next reading.  Overridden by every concrete sensor."""

    def _record(self) -> None:
        now = self._now()
        self._history.append(HistoryPoint(value=self._value, timestamp=now))
        if self._broker is not None:
            self._broker.publish(sensor_reading_topic(self.id), self._reading(now))

    def _reading(self, now: float) -> SensorReadingPayload:
        return SensorReadingPayload(id=self.id, name=self.name, value=self._value, unit=self.unit, timestamp=now)

    def _now(self) -> float:
        return self._broker.now() if self._broker is not None else time.time()

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def snapshot(self) -> SensorSnapshot:
        return SensorSnapshot(
            id=self.id,
            name=self.name,
            type=self.kind.value,
            unit=self.unit,
            value=self._value,
            min_value=self.min_value,
            max_value=self.max_value,
            history=list(self._history)[-self.SNAPSHOT_HISTORY :],
            **self._snapshot_fields(),
        )

    def _snapshot_fields(self) -> dict[str, object]:
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, value={self._value!r})"


class TemperatureSensor(Sensor):
    """Damped random walk with mean reversion toward ``baseline``.

    Every running air conditioner pulls the reading down by
    :attr:`AC_BIAS` per tick in cool mode and up by the same amount in
    heat mode.
    """

    kind = SensorKind.TEMPERATURE

    AC_BIAS: ClassVar[float] = 0.3

    def __init__(
        self,
        sensor_id: str = "temperature",
        name: str = "Temperature",
        *,
        unit: str = "°C",
        min_value: float = 15.0,
        max_value: float = 40.0,
        value: float = 25.0,
        baseline: float = 25.0,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(sensor_id, name, unit, min_value, max_value, value, rng=rng)
        self.baseline = baseline
        self.trend = 0.0

    def simulate(self) -> None:
        self.trend += (self._rng.random() - 0.5) * 0.3
        self.trend *= 0.95

        new_value = self._value + self.trend + (self._rng.random() - 0.5) * 0.2
        new_value += (self.baseline - new_value) * 0.02
        new_value += self._ac_bias()

        self.set_value(new_value)

    def _ac_bias(self) -> float:
        if self._broker is None:
            return 0.0
        bias = 0.0
        for ac in self._broker.devices_of_kind(DeviceKind.AIR_CONDITIONER):
            if not isinstance(ac, AirConditioner) or not ac.is_on:
                continue
            if ac.mode == ACMode.COOL:
                bias -= self.AC_BIAS
            elif ac.mode == ACMode.HEAT:
                bias += self.AC_BIAS
        return bias


class MotionSensor(Sensor):
    """Binary presence sensor.

    While motion is detected there is a 15% chance per tick that it
    clears; otherwise motion starts with probability
    ``motion_probability * 0.1`` per tick.
    """

    kind = SensorKind.MOTION

    def __init__(
        self,
        sensor_id: str = "motion",
        name: str = "Motion",
        *,
        unit: str = "",
        value: bool = False,
        motion_probability: float = 0.7,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(sensor_id, name, unit, 0, 1, rng=rng)
        self._value = bool(value)
        self.motion_probability = motion_probability
        self.last_motion_time: float | None = None

    @property
    def detected(self) -> bool:
        return bool(self._value)

    def set_value(self, detected: bool | float) -> bool:
        """Set motion from a bool or a number (non-zero means motion).

        Anything else is ignored and the current state returned.
        """
        if not isinstance(detected, (bool, int, float)):
            logger.warning("Ignoring non-boolean motion value %r for sensor %s", detected, self.id)
            return bool(self._value)
        self._value = bool(detected)
        self._record()
        return self._value

    def simulate(self) -> None:
        if self._value:
            if self._rng.random() > 0.85:
                self.set_value(False)
        elif self._rng.random() < self.motion_probability * 0.1:
            self.set_value(True)
            self.last_motion_time = self._now()

    def _reading(self, now: float) -> SensorReadingPayload:
        return SensorReadingPayload(
            id=self.id,
            name=self.name,
            value=self._value,
            unit=self.unit,
            timestamp=now,
            detected=bool(self._value),
        )

    def _snapshot_fields(self) -> dict[str, object]:
        return {"detected": bool(self._value)}


class HumiditySensor(Sensor):
    """Random walk with mean reversion toward :attr:`MEAN`."""

    kind = SensorKind.HUMIDITY

    MEAN: ClassVar[float] = 50.0

    def __init__(
        self,
        sensor_id: str = "humidity",
        name: str = "Humidity",
        *,
        unit: str = "%",
        min_value: float = 20.0,
        max_value: float = 80.0,
        value: float = 50.0,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(sensor_id, name, unit, min_value, max_value, value, rng=rng)

    def simulate(self) -> None:
        change = (self._rng.random() - 0.5) * 2
        change += (self.MEAN - self._value) * 0.01
        self.set_value(self._value + change)


class PowerSensor(Sensor):
    """Reads back the broker's total power draw - no randomness."""

    kind = SensorKind.POWER

    def __init__(
        self,
        sensor_id: str = "power",
        name: str = "Power Consumption",
        *,
        unit: str = "W",
        min_value: float = 0.0,
        max_value: float = 5000.0,
        value: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(sensor_id, name, unit, min_value, max_value, value, rng=rng)

    def simulate(self) -> None:
        if self._broker is not None:
            self.set_value(self._broker.total_power())


class DistanceSensor(Sensor):
    """Ultrasonic-style distance sensor.

    An object appears or leaves with 5% probability per tick; the reading
    moves 20% of the way toward 50-100 cm while present and 300-400 cm
    while absent.
    """

    kind = SensorKind.DISTANCE

    TOGGLE_PROBABILITY: ClassVar[float] = 0.05
    SMOOTHING: ClassVar[float] = 0.2

    def __init__(
        self,
        sensor_id: str = "distance",
        name: str = "Distance",
        *,
        unit: str = "cm",
        min_value: float = 0.0,
        max_value: float = 500.0,
        value: float = 200.0,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(sensor_id, name, unit, min_value, max_value, value, rng=rng)
        self.object_present = False

    def simulate(self) -> None:
        if self._rng.random() < self.TOGGLE_PROBABILITY:
            self.object_present = not self.object_present

        if self.object_present:
            target = 50 + self._rng.random() * 50
        else:
            target = 300 + self._rng.random() * 100

        self.set_value(self._value + (target - self._value) * self.SMOOTHING)

    def _snapshot_fields(self) -> dict[str, object]:
        return {"object_present": self._value < 100}


def _wall_clock_hour() -> int:
    return datetime.now().hour


class LightSensor(Sensor):
    """Ambient light in lux.

    The outdoor baseline follows the hour of day (day 06-18, evening
    18-21, night otherwise); every powered light adds
    :attr:`LIGHT_CONTRIBUTION` lux scaled by its brightness.  The reading
    moves 10% of the way toward that target each tick.
    """

    kind = SensorKind.LIGHT

    LIGHT_CONTRIBUTION: ClassVar[float] = 50.0
    SMOOTHING: ClassVar[float] = 0.1
    LOW_LIGHT: ClassVar[float] = 300.0

    def __init__(
        self,
        sensor_id: str = "light",
        name: str = "Ambient Light",
        *,
        unit: str = "lux",
        min_value: float = 0.0,
        max_value: float = 1000.0,
        value: float = 300.0,
        hour_source: Callable[[], int] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(sensor_id, name, unit, min_value, max_value, value, rng=rng)
        self._hour_source = hour_source or _wall_clock_hour
        self.time_of_day = "day"

    def simulate(self) -> None:
        hour = self._hour_source()
        if 6 <= hour < 18:
            base = 500 + self._rng.random() * 300
            self.time_of_day = "day"
        elif 18 <= hour < 21:
            base = 150 + self._rng.random() * 100
            self.time_of_day = "evening"
        else:
            base = 20 + self._rng.random() * 30
            self.time_of_day = "night"

        base += self._indoor_light()
        self.set_value(self._value + (base - self._value) * self.SMOOTHING)

    def _indoor_light(self) -> float:
        if self._broker is None:
            return 0.0
        return sum(
            self.LIGHT_CONTRIBUTION * light.brightness / 100
            for light in self._broker.devices_of_kind(DeviceKind.LIGHT)
            if isinstance(light, Light) and light.is_on
        )

    def _snapshot_fields(self) -> dict[str, object]:
        return {"time_of_day": self.time_of_day, "is_low": self._value < self.LOW_LIGHT}
