"""Smart Home Simulator - sensors, devices, a publish/subscribe broker and
an automation rule engine for a small simulated connected home.

Quick start::

    from smart_home_sim import SmartHome
    from smart_home_sim.sinks import ConsoleSink

    home = SmartHome(seed=1, speed=10.0)
    home.add_sink(ConsoleSink(rate_hz=1.0))
    home.run(duration_s=10)
"""

from __future__ import annotations

from smart_home_sim.automation import AutomationEngine, Rule
from smart_home_sim.broker import Broker
from smart_home_sim.config import AutomationConfig, HomeYAMLConfig
from smart_home_sim.models import Message
from smart_home_sim.simulator import SimulationClock, SmartHome
from smart_home_sim.topics import WILDCARD

__all__ = [
    "WILDCARD",
    "AutomationConfig",
    "AutomationEngine",
    "Broker",
    "HomeYAMLConfig",
    "Message",
    "Rule",
    "SimulationClock",
    "SmartHome",
]

__version__ = "0.1.0"
