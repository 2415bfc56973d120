"""Broker - the in-process publish/subscribe router.

The broker is the only channel through which sensors, devices, the
automation engine and outside observers talk to each other.  It also
keeps the device and sensor registries and a bounded message log.

Delivery is synchronous: :meth:`Broker.publish` returns only after every
subscriber has run.  Subscribers may publish from inside their callback;
each publish iterates a copy of the subscriber list taken when it
starts, so subscriptions added during delivery only see later messages.
"""

from __future__ import annotations

import collections
import logging
import time
from collections.abc import Callable

from smart_home_sim.devices import Device, DeviceKind
from smart_home_sim.models import (
    DeviceSnapshot,
    Message,
    Payload,
    PowerEntry,
    RegistrationPayload,
    SensorSnapshot,
)
from smart_home_sim.sensors import Sensor
from smart_home_sim.topics import DEVICE_REGISTERED, SENSOR_REGISTERED, WILDCARD

__all__ = ["Broker", "MessageCallback"]

logger = logging.getLogger("smart_home_sim.broker")

MessageCallback = Callable[[Message], None]


class Broker:
    """Topic-keyed router plus device/sensor registry.

    Parameters:
        clock: Zero-argument callable returning the current time in
               seconds.  Used to stamp every message.  Defaults to
               ``time.time``; the simulator passes its simulated clock.
    """

    MESSAGE_LOG_SIZE = 100

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.time
        self._subscribers: dict[str, list[MessageCallback]] = {}
        self._devices: dict[str, Device] = {}
        self._sensors: dict[str, Sensor] = {}
        self._message_log: collections.deque[Message] = collections.deque(maxlen=self.MESSAGE_LOG_SIZE)

    def now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------
    # Publish / subscribe
    # ------------------------------------------------------------------

    def subscribe(self, topic: str, callback: MessageCallback) -> None:
        """Deliver every message published on *topic* to *callback*.

        Use :data:`~smart_home_sim.topics.WILDCARD` to receive everything.
        """
        self._subscribers.setdefault(topic, []).append(callback)
        logger.debug("Subscribed %s to %s", getattr(callback, "__name__", callback), topic)

    def unsubscribe(self, topic: str, callback: MessageCallback) -> bool:
        """Remove *callback* from *topic*.  Returns ``False`` if it was not subscribed."""
        callbacks = self._subscribers.get(topic)
        if not callbacks or callback not in callbacks:
            return False
        callbacks.remove(callback)
        if not callbacks:
            del self._subscribers[topic]
        return True

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, payload: Payload) -> Message:
        """Log the message, then deliver it to *topic* subscribers followed
        by wildcard subscribers, each in subscription order."""
        message = Message(topic=topic, payload=payload, timestamp=self._clock())
        self._message_log.append(message)
        logger.debug("Publishing %s (%s)", topic, payload.kind)

        callbacks = list(self._subscribers.get(topic, ()))
        if topic != WILDCARD:
            callbacks.extend(self._subscribers.get(WILDCARD, ()))

        for callback in callbacks:
            try:
                callback(message)
            except Exception as exc:
                logger.error(
                    "Error in subscriber %s for topic %s: %s",
                    getattr(callback, "__name__", callback),
                    topic,
                    exc,
                    exc_info=True,
                )
        return message

    def message_log(self, limit: int | None = 20) -> list[Message]:
        """Most recent messages, oldest first (``None`` = all retained)."""
        messages = list(self._message_log)
        if limit is None:
            return messages
        return messages[-limit:] if limit > 0 else []

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, participant: Device | Sensor) -> bool:
        """Add a device or sensor, bind it to this broker and announce it.

        A second registration under an already used id is refused with a
        warning; the first instance stays registered.
        """
        if isinstance(participant, Device):
            registry: dict[str, Device] | dict[str, Sensor] = self._devices
            kind, topic = "device", DEVICE_REGISTERED
        elif isinstance(participant, Sensor):
            registry = self._sensors
            kind, topic = "sensor", SENSOR_REGISTERED
        else:
            raise TypeError(f"Cannot register {type(participant).__name__}: not a Device or Sensor")

        if participant.id in registry:
            logger.warning("Duplicate %s id '%s' - registration ignored", kind, participant.id)
            return False

        registry[participant.id] = participant  # type: ignore[assignment]
        participant.bind(self)
        self.publish(topic, RegistrationPayload(participant=kind, id=participant.id, name=participant.name))
        logger.info("Registered %s '%s' (%s)", kind, participant.id, participant.name)
        return True

    def get_device(self, device_id: str) -> Device | None:
        return self._devices.get(device_id)

    def get_sensor(self, sensor_id: str) -> Sensor | None:
        return self._sensors.get(sensor_id)

    def devices(self) -> list[Device]:
        return list(self._devices.values())

    def sensors(self) -> list[Sensor]:
        return list(self._sensors.values())

    def devices_of_kind(self, kind: DeviceKind) -> list[Device]:
        return [d for d in self._devices.values() if d.kind == kind]

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def device_states(self) -> list[DeviceSnapshot]:
        return [d.snapshot() for d in self._devices.values()]

    def sensor_states(self) -> list[SensorSnapshot]:
        return [s.snapshot() for s in self._sensors.values()]

    def sensor_readings(self) -> dict[str, dict[str, object]]:
        """``{sensor_id: {"name", "value", "unit"}}`` for every sensor."""
        return {
            sensor_id: {"name": s.name, "value": s.value, "unit": s.unit}
            for sensor_id, s in self._sensors.items()
        }

    def total_power(self) -> float:
        return sum(d.power() for d in self._devices.values())

    def power_breakdown(self) -> list[PowerEntry]:
        return [
            PowerEntry(id=d.id, name=d.name, power=d.power(), is_on=d.is_on)
            for d in self._devices.values()
        ]
