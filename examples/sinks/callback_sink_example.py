#!/usr/bin/env python3
"""CallbackSink examples -- 3 cases demonstrating lambda shortcuts, async
callbacks, and a running energy tally built from broker messages.

Directly runnable (no external services required).

Usage::

    python examples/sinks/callback_sink_example.py           # Case 1 (default)
    python examples/sinks/callback_sink_example.py --case 2   # Async callback
    python examples/sinks/callback_sink_example.py --case 3   # Energy tally
"""

from __future__ import annotations

import argparse

# ---------------------------------------------------------------------------
# Case 1: Lambda shorthand -- simplest possible sink
# ---------------------------------------------------------------------------


def run_case_1() -> None:
    """A lambda that prints batch sizes.

    Knobs demonstrated:
      - lambda as sink   -> no class needed, just a callable
      - rate_hz=1.0      -> flush once per second
      - batch_size=50    -> up to 50 messages per call
    """
    from smart_home_sim import SmartHome

    print("=== Case 1: Lambda shorthand ===\n")

    home = SmartHome(speed=10.0)
    home.add_sink(lambda messages: print(f"  Received {len(messages)} messages"), rate_hz=1.0, batch_size=50)
    home.run(duration_s=5)


# ---------------------------------------------------------------------------
# Case 2: Async callback -- auto-detected by CallbackSink
# ---------------------------------------------------------------------------


def run_case_2() -> None:
    """Async callback that only reports automation activity."""
    import asyncio

    from smart_home_sim import SmartHome
    from smart_home_sim.sinks.callback import CallbackSink

    print("=== Case 2: Async callback ===\n")

    async def on_batch(messages):
        await asyncio.sleep(0.01)
        for msg in messages:
            if msg.payload.kind == "automation_triggered":
                print(f"  [async] {msg.payload.rule}: {msg.payload.action}")

    home = SmartHome(speed=50.0, seed=4)
    home.add_sink(CallbackSink(on_batch, rate_hz=2.0, batch_size=200))
    home.run(duration_s=8)


# ---------------------------------------------------------------------------
# Case 3: Energy tally -- stateful callback
# ---------------------------------------------------------------------------


def run_case_3() -> None:
    """Integrate the power sensor readings into watt-hours."""
    from smart_home_sim import SmartHome

    print("=== Case 3: Energy tally ===\n")

    home = SmartHome(speed=100.0, seed=9)
    last = {"ts": None, "watts": 0.0}
    total = {"wh": 0.0}

    def tally(messages):
        for msg in messages:
            if msg.topic != "sensor/power/reading":
                continue
            if last["ts"] is not None:
                total["wh"] += last["watts"] * (msg.timestamp - last["ts"]) / 3600
            last["ts"], last["watts"] = msg.timestamp, float(msg.payload.value)
        print(f"  energy so far: {total['wh']:8.2f} Wh   (now {last['watts']:.0f} W)")

    home.add_sink(tally, rate_hz=1.0, batch_size=1000)
    home.run(duration_s=6)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(description="CallbackSink examples")
    parser.add_argument("--case", type=int, default=1, choices=[1, 2, 3], help="Which example case to run (default: 1)")
    args = parser.parse_args()

    cases = {1: run_case_1, 2: run_case_2, 3: run_case_3}
    cases[args.case]()


if __name__ == "__main__":
    main()
