"""SmartHome - top-level orchestrator that owns the broker, the automation
engine and the tick loop, and exposes the command/query surface used by
UI or CLI glue.
"""

from __future__ import annotations

import asyncio
import collections
import contextlib
import logging
import random
import signal
import threading
import time
from collections.abc import Callable
from typing import Any

from smart_home_sim.automation import AutomationEngine, Rule, build_default_rules
from smart_home_sim.broker import Broker, MessageCallback
from smart_home_sim.catalog import create_device, create_sensor, default_devices, default_sensors
from smart_home_sim.config import AutomationConfig, HomeYAMLConfig
from smart_home_sim.devices import AirConditioner, Device, Light, WaterHeater
from smart_home_sim.models import (
    ActivityEntry,
    DeviceSnapshot,
    Message,
    PowerEntry,
    RuleSnapshot,
    SensorSnapshot,
)
from smart_home_sim.sensors import Sensor
from smart_home_sim.sinks.base import Sink, SinkRunner
from smart_home_sim.sinks.callback import CallbackSink
from smart_home_sim.topics import WILDCARD

__all__ = ["SimulationClock", "SmartHome"]

logger = logging.getLogger("smart_home_sim")


class SimulationClock:
    """Monotonic simulated clock advanced explicitly by the tick loop.

    Parameters:
        start: Initial reading in epoch seconds (defaults to ``time.time()``).
    """

    def __init__(self, start: float | None = None) -> None:
        self._now = time.time() if start is None else float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("SimulationClock cannot move backwards")
        self._now += seconds
        return self._now


class SmartHome:
    """High-level API for simulating a connected home.

    Example::

        from smart_home_sim import SmartHome
        from smart_home_sim.sinks import ConsoleSink

        home = SmartHome(seed=7, speed=20.0)
        home.add_sink(ConsoleSink(rate_hz=1.0))
        home.run(duration_s=30)

    Parameters:
        devices:
            Devices to register (default: three lights, an AC and a
            water heater).
        sensors:
            Sensors to register (default: one of every built-in kind).
        automation:
            Thresholds and bindings for the built-in rules.
        rules:
            Replace the built-in rules entirely.
        tick_interval_s:
            Simulated seconds per tick; also the hysteresis step.
        speed:
            Real-time multiplier used by :meth:`run`.
        seed:
            Seed for the default sensors' random source.
        clock:
            Clock to use instead of a fresh :class:`SimulationClock`.
    """

    PENDING_SIZE = 10_000

    def __init__(
        self,
        *,
        devices: list[Device] | None = None,
        sensors: list[Sensor] | None = None,
        automation: AutomationConfig | None = None,
        rules: list[Rule] | None = None,
        tick_interval_s: float = 2.0,
        speed: float = 1.0,
        seed: int | None = None,
        clock: SimulationClock | None = None,
    ) -> None:
        if tick_interval_s <= 0:
            raise ValueError("tick_interval_s must be positive")
        if speed <= 0:
            raise ValueError("speed must be positive")

        self.clock = clock or SimulationClock()
        self.tick_interval_s = tick_interval_s
        self.speed = speed
        self.broker = Broker(clock=self.clock.now)
        self.engine = AutomationEngine(self.broker, tick_interval=tick_interval_s)

        self._pending: collections.deque[Message] = collections.deque(maxlen=self.PENDING_SIZE)
        self.broker.subscribe(WILDCARD, self._collect)

        for device in devices if devices is not None else default_devices():
            self.broker.register(device)
        for sensor in sensors if sensors is not None else default_sensors(random.Random(seed)):
            self.broker.register(sensor)
        for rule in rules if rules is not None else build_default_rules(self.broker, automation):
            self.engine.add_rule(rule)

        self._runners: list[SinkRunner] = []
        self._paused = False
        self._running = False
        self.tick_count = 0

        logger.info(
            "SmartHome initialised: %d devices, %d sensors, %d rules",
            len(self.broker.devices()),
            len(self.broker.sensors()),
            len(self.engine.rule_ids),
        )

    # ------------------------------------------------------------------
    # Alternative constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: HomeYAMLConfig) -> SmartHome:
        """Build a home (devices, sensors, rules and sinks) from a parsed
        YAML configuration."""
        from smart_home_sim.sinks.factory import create_sink

        rng = random.Random(config.seed)
        devices = [create_device(d) for d in config.devices] if config.devices is not None else None
        if config.sensors is not None:
            sensors = [create_sensor(s, rng=rng) for s in config.sensors]
        else:
            sensors = default_sensors(rng)

        home = cls(
            devices=devices,
            sensors=sensors,
            automation=config.automation,
            tick_interval_s=config.tick_interval_s,
            speed=config.speed,
            seed=config.seed,
        )
        for sink_dict in config.sink_configs:
            home.add_sink(create_sink(sink_dict))
        return home

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> list[Message]:
        """Advance the simulation by one tick.

        Sensors are simulated first (in registration order), then device
        physics, then every automation rule.  Returns the messages
        published since the previous tick, at most ``PENDING_SIZE`` of them.
        While paused nothing advances and messages published in the
        meantime are discarded.
        """
        if self._paused:
            if self._pending:
                logger.debug("Paused - discarding %d pending messages", len(self._pending))
                self._pending.clear()
            return []

        self.clock.advance(self.tick_interval_s)
        for sensor in self.broker.sensors():
            sensor.simulate()
        for device in self.broker.devices():
            device.update()
        self.engine.evaluate(self.tick_interval_s)

        self.tick_count += 1
        if self.tick_count % 100 == 0:
            logger.debug("Tick %d - total power %.0f W", self.tick_count, self.broker.total_power())

        messages = list(self._pending)
        self._pending.clear()
        return messages

    def _collect(self, message: Message) -> None:
        self._pending.append(message)

    # ------------------------------------------------------------------
    # Simulation control
    # ------------------------------------------------------------------

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def toggle_simulation(self) -> bool:
        """Pause or resume ticking.  Returns ``True`` when now running."""
        self._paused = not self._paused
        logger.info("Simulation %s", "paused" if self._paused else "resumed")
        return not self._paused

    def stop(self) -> None:
        """Ask a running :meth:`run` / :meth:`run_async` loop to finish."""
        self._running = False

    # ------------------------------------------------------------------
    # Inbound commands
    # ------------------------------------------------------------------

    def toggle_device(self, device_id: str) -> bool | None:
        """Flip a device on/off.  Returns the new state, ``None`` if unknown."""
        device = self.broker.get_device(device_id)
        return device.toggle() if device is not None else None

    def set_device_params(self, device_id: str, **params: Any) -> bool | None:
        """Apply ``mode``, ``target_temperature``, ``fan_speed`` and/or
        ``brightness`` to a device.

        Returns ``True`` if anything changed, ``None`` for an unknown id.
        Parameters the device does not support are ignored.
        """
        device = self.broker.get_device(device_id)
        if device is None:
            return None

        setters: dict[str, Callable[[Any], bool]] = {}
        if isinstance(device, Light):
            setters["brightness"] = device.set_brightness
        if isinstance(device, AirConditioner):
            setters["mode"] = device.set_mode
            setters["fan_speed"] = device.set_fan_speed
        if isinstance(device, (AirConditioner, WaterHeater)):
            setters["target_temperature"] = device.set_target_temperature

        changed = False
        for key, value in params.items():
            setter = setters.get(key)
            if setter is None:
                logger.debug("%s: ignoring unsupported parameter %s", device_id, key)
                continue
            changed = setter(value) or changed
        return changed

    def adjust_target_temperature(self, device_id: str, delta: float) -> float | None:
        """Nudge a thermostat set point by *delta*.  Returns the new target."""
        device = self.broker.get_device(device_id)
        if not isinstance(device, (AirConditioner, WaterHeater)):
            return None
        device.set_target_temperature(device.target_temperature + delta)
        return device.target_temperature

    def set_sensor_value(self, sensor_id: str, value: float | bool) -> float | bool | None:
        """Manual override - same clamp/record/publish path as simulation."""
        sensor = self.broker.get_sensor(sensor_id)
        return sensor.set_value(value) if sensor is not None else None

    def toggle_rule(self, rule_id: str) -> bool | None:
        return self.engine.toggle_rule(rule_id)

    def enable_rule(self, rule_id: str) -> bool:
        return self.engine.enable_rule(rule_id)

    def disable_rule(self, rule_id: str) -> bool:
        return self.engine.disable_rule(rule_id)

    # ------------------------------------------------------------------
    # Outbound snapshots
    # ------------------------------------------------------------------

    def device_states(self) -> list[DeviceSnapshot]:
        return self.broker.device_states()

    def sensor_states(self) -> list[SensorSnapshot]:
        return self.broker.sensor_states()

    def rule_states(self) -> list[RuleSnapshot]:
        return self.engine.rules()

    def activity_log(self, limit: int | None = 20) -> list[ActivityEntry]:
        return self.engine.activity_log(limit)

    def message_log(self, limit: int | None = 20) -> list[Message]:
        return self.broker.message_log(limit)

    def total_power(self) -> float:
        return self.broker.total_power()

    def power_breakdown(self) -> list[PowerEntry]:
        return self.broker.power_breakdown()

    def subscribe(self, topic: str, callback: MessageCallback) -> None:
        """Live updates - see :meth:`Broker.subscribe`."""
        self.broker.subscribe(topic, callback)

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def add_sink(
        self,
        sink: Sink | Callable[[list[Message]], Any],
        *,
        rate_hz: float | None = None,
        batch_size: int | None = None,
    ) -> None:
        """Register a sink (or plain callable) that receives every broker
        message while :meth:`run` is active."""
        if not isinstance(sink, Sink):
            sink = CallbackSink(sink, rate_hz=rate_hz, batch_size=batch_size or 100)
        else:
            if rate_hz is not None:
                sink.sink_config.rate_hz = rate_hz
            if batch_size is not None:
                sink.sink_config.batch_size = batch_size
        self._runners.append(SinkRunner(sink))

    @property
    def sink_count(self) -> int:
        return len(self._runners)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, duration_s: float | None = None, max_ticks: int | None = None) -> None:
        """Blocking entry point - starts the event loop.

        Inside an already running loop (Jupyter, IPython) the loop runs
        in a dedicated thread.

        Parameters:
            duration_s: Stop after this many wall-clock seconds.
            max_ticks: Stop after this many ticks.
            Both ``None`` means run until Ctrl-C.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                asyncio.run(self.run_async(duration_s=duration_s, max_ticks=max_ticks))
            except KeyboardInterrupt:
                logger.info("Interrupted by user")
            return

        errors: list[BaseException] = []

        def _target() -> None:
            try:
                asyncio.run(self.run_async(duration_s=duration_s, max_ticks=max_ticks))
            except KeyboardInterrupt:
                logger.info("Interrupted by user")
            except BaseException as exc:
                errors.append(exc)

        thread = threading.Thread(target=_target, daemon=True)
        thread.start()
        thread.join()
        if errors:
            raise errors[0]

    async def run_async(self, duration_s: float | None = None, max_ticks: int | None = None) -> None:
        """Async entry point - ticks every ``tick_interval_s / speed``
        wall-clock seconds until the duration or tick budget runs out."""
        logger.info(
            "Starting simulation: %d devices, %d sensors, %d sinks, tick %.1fs x%.1f",
            len(self.broker.devices()),
            len(self.broker.sensors()),
            len(self._runners),
            self.tick_interval_s,
            self.speed,
        )

        for runner in self._runners:
            await runner.start()

        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()
        # NotImplementedError on Windows, RuntimeError outside the main thread.
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, stop_event.set)

        interval = self.tick_interval_s / self.speed
        start_time = loop.time()
        ticks = 0
        self._running = True
        try:
            while self._running:
                if duration_s is not None and loop.time() - start_time >= duration_s:
                    logger.info("Duration reached (%.1fs) - stopping", duration_s)
                    break
                if max_ticks is not None and ticks >= max_ticks:
                    logger.info("Tick budget reached (%d) - stopping", max_ticks)
                    break
                if stop_event.is_set():
                    logger.info("Stop signal received - shutting down")
                    break

                tick_start = loop.time()
                messages = self.tick()
                ticks += 1
                for runner in self._runners:
                    await runner.enqueue(messages)

                await asyncio.sleep(max(0.0, interval - (loop.time() - tick_start)))
        except asyncio.CancelledError:
            logger.info("Simulation cancelled")
        finally:
            self._running = False
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.remove_signal_handler(sig)
            for runner in self._runners:
                await runner.stop()
            logger.info("Simulation stopped after %d ticks", ticks)
