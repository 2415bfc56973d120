"""CLI entry point for the Smart Home Simulator.

Usage::

    smart-home-sim run --duration 30 --speed 10
    smart-home-sim run --ticks 500 --seed 7 -s console -s file -o ./data
    smart-home-sim run --config home.yaml
    smart-home-sim list-devices
    smart-home-sim list-sensors
    smart-home-sim list-rules
    smart-home-sim list-sinks
    smart-home-sim init-config --output home.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap

# ---------------------------------------------------------------------------
# Extras mapping for list-sinks display
# ---------------------------------------------------------------------------
_SINK_EXTRAS: dict[str, str | None] = {
    "console": None,
    "callback": None,
    "file": None,
    "webhook": "webhook",
}

# ---------------------------------------------------------------------------
# Sample YAML config template for init-config
# ---------------------------------------------------------------------------
_SAMPLE_CONFIG = """\
# Smart Home Simulator configuration

simulation:
  tick_interval_s: 2.0                # simulated seconds per tick
  speed: 1.0                          # 10.0 runs ten times faster than real time
  # duration_s: 60                    # optional: stop after N wall-clock seconds
  # max_ticks: 1000                   # optional: stop after N ticks
  # seed: 42                          # optional: reproducible sensor noise
  # log_level: INFO                   # DEBUG, INFO, WARNING, ERROR

# Optional: replace the built-in layout (3 lights, AC, water heater)
# devices:
#   - type: light
#     id: light1
#     name: Living Room Light
#     brightness: 80
#   - type: ac
#     id: ac
#     name: Air Conditioner
#     target_temperature: 22
#   - type: water_heater
#     id: water_heater
#     name: Water Heater

# Optional: replace the built-in sensors (temperature, motion, humidity,
# power, distance, light)
# sensors:
#   - type: temperature
#     baseline: 24
#   - type: motion
#     motion_probability: 0.5

automation:
  cooling_temperature: 26             # HVAC cooling above this (°C)
  cooling_off_delay_s: 300            # AC off after this long without motion
  lights_on_lux: 300                  # lights on below this ambient level
  lights_off_delay_s: 120             # lights off after this long without motion
  humidity_threshold: 70              # dehumidify above this (%)
  # disabled_rules: [humidity-control]

# Sinks receive every broker message. Each has independent throughput control.
sinks:
  - type: console
    fmt: text                         # text or json
    rate_hz: 1.0

  # - type: file
  #   path: ./output
  #   format: json                    # csv or json
  #   rotation: 1h                    # 30s, 5m, 1h, 1d
  #   rate_hz: 1.0

  # - type: webhook
  #   url: http://localhost:8000/ingest
  #   rate_hz: 0.5
"""


# ======================================================================
# Main entry point
# ======================================================================


def main(argv: list[str] | None = None) -> None:
    epilog = textwrap.dedent("""\
        examples:
          smart-home-sim run --duration 30 --speed 10
          smart-home-sim run --ticks 500 --seed 7 -s console -s file -o ./data
          smart-home-sim run --config home.yaml
          smart-home-sim list-devices
          smart-home-sim list-rules
          smart-home-sim init-config --output home.yaml
    """)

    parser = argparse.ArgumentParser(
        prog="smart-home-sim",
        description="Simulate a connected home: sensors, devices, a message broker and automation rules.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", title="commands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Run the simulation and stream broker messages to sinks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              smart-home-sim run --duration 30 --speed 10
              smart-home-sim run --ticks 200 --speed 1000 -s file -o ./data
              smart-home-sim run --config home.yaml --duration 120
        """),
    )
    run_parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML config file. When set, --sink/--output-* flags are ignored.",
    )
    run_parser.add_argument(
        "--duration",
        "-d",
        type=float,
        default=None,
        help="Run duration in wall-clock seconds (default: indefinite, Ctrl-C to stop).",
    )
    run_parser.add_argument(
        "--ticks",
        "-n",
        type=int,
        default=None,
        help="Stop after this many ticks.",
    )
    run_parser.add_argument(
        "--speed",
        type=float,
        default=None,
        help="Real-time multiplier (default: 1.0, or the config value).",
    )
    run_parser.add_argument(
        "--tick-interval",
        type=float,
        default=2.0,
        help="Simulated seconds per tick (default: 2.0).",
    )
    run_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the sensor noise for a reproducible run.",
    )
    run_parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )
    run_parser.add_argument(
        "--sink",
        "-s",
        action="append",
        dest="sinks",
        choices=["console", "file"],
        help="Sink(s) to enable (repeatable). Default: console.",
    )
    run_parser.add_argument(
        "--format",
        type=str,
        default="text",
        choices=["text", "json"],
        help="Console sink output format (default: text).",
    )
    run_parser.add_argument(
        "--output-dir",
        "-o",
        type=str,
        default="./output",
        help="Output directory for the file sink (default: ./output).",
    )
    run_parser.add_argument(
        "--output-format",
        type=str,
        default="json",
        choices=["csv", "json"],
        help="File sink format (default: json).",
    )
    run_parser.add_argument(
        "--rotation",
        type=str,
        default=None,
        help="File rotation interval, e.g. 1h, 30m, 60s (default: none).",
    )

    # -- listings ----------------------------------------------------------
    subparsers.add_parser("list-devices", help="List the built-in devices.")
    subparsers.add_parser("list-sensors", help="List the built-in sensors.")
    subparsers.add_parser("list-rules", help="List the built-in automation rules.")
    subparsers.add_parser("list-sinks", help="List all available sink types and install instructions.")

    # -- init-config -------------------------------------------------------
    init_parser = subparsers.add_parser("init-config", help="Generate a sample YAML configuration file.")
    init_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write config to this file instead of stdout.",
    )

    # A leading flag (e.g. `smart-home-sim --duration 5`) implies `run`.
    _known_commands = {"run", "list-devices", "list-sensors", "list-rules", "list-sinks", "init-config"}
    raw_args = argv if argv is not None else sys.argv[1:]
    if raw_args and raw_args[0] not in _known_commands and raw_args[0] not in ("-h", "--help"):
        raw_args = ["run", *list(raw_args)]

    args = parser.parse_args(raw_args)

    if args.command is None:
        parser.print_help()
        return

    # -- Dispatch ----------------------------------------------------------
    if args.command == "run":
        _cmd_run(args)
    elif args.command == "list-devices":
        _cmd_list_devices()
    elif args.command == "list-sensors":
        _cmd_list_sensors()
    elif args.command == "list-rules":
        _cmd_list_rules()
    elif args.command == "list-sinks":
        _cmd_list_sinks()
    elif args.command == "init-config":
        _cmd_init_config(args.output)
    else:
        parser.print_help()


# ======================================================================
# Command implementations
# ======================================================================


def _cmd_run(args: argparse.Namespace) -> None:
    """Build the home and run it."""
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.config:
        home, duration, ticks = _home_from_config(args)
    else:
        home, duration, ticks = _home_quick(args)

    home.run(duration_s=duration, max_ticks=ticks)
    _print_summary(home)


def _home_from_config(args: argparse.Namespace):
    from smart_home_sim.config import load_yaml_config
    from smart_home_sim.simulator import SmartHome

    cfg = load_yaml_config(args.config)
    logging.getLogger().setLevel(getattr(logging, cfg.log_level, logging.INFO))

    if args.speed is not None:
        cfg.speed = args.speed
    if args.seed is not None:
        cfg.seed = args.seed

    home = SmartHome.from_config(cfg)
    if not cfg.sink_configs:
        from smart_home_sim.sinks.console import ConsoleSink

        home.add_sink(ConsoleSink(rate_hz=1.0))

    duration = args.duration if args.duration is not None else cfg.duration_s
    ticks = args.ticks if args.ticks is not None else cfg.max_ticks
    return home, duration, ticks


def _home_quick(args: argparse.Namespace):
    from smart_home_sim.simulator import SmartHome

    home = SmartHome(tick_interval_s=args.tick_interval, speed=args.speed or 1.0, seed=args.seed)
    enabled = args.sinks or ["console"]

    if "console" in enabled:
        from smart_home_sim.sinks.console import ConsoleSink

        home.add_sink(ConsoleSink(fmt=args.format, rate_hz=1.0))

    if "file" in enabled:
        from smart_home_sim.sinks.file import FileSink

        home.add_sink(
            FileSink(
                path=args.output_dir,
                format=args.output_format,
                rotation=args.rotation,
                rate_hz=1.0,
                batch_size=500,
            )
        )

    return home, args.duration, args.ticks


def _print_summary(home) -> None:
    print(f"\nSimulated {home.tick_count} ticks ({home.tick_count * home.tick_interval_s:.0f}s)")
    print(f"Total power: {home.total_power():.0f} W\n")
    print(f"{'Rule':<20} {'Enabled':<8} {'Triggered':>9}")
    print("-" * 39)
    for rule in home.rule_states():
        print(f"{rule.id:<20} {'yes' if rule.enabled else 'no':<8} {rule.trigger_count:>9}")
    print()


# -- listings ---------------------------------------------------------------


def _cmd_list_devices() -> None:
    from smart_home_sim.catalog import default_devices

    print(f"\n{'Id':<14} {'Type':<14} {'Name':<22} {'Max W':>8}")
    print("-" * 61)
    for device in default_devices():
        print(f"{device.id:<14} {device.kind.value:<14} {device.name:<22} {device.max_power:>8.0f}")
    print()


def _cmd_list_sensors() -> None:
    from smart_home_sim.catalog import default_sensors

    print(f"\n{'Id':<14} {'Name':<20} {'Unit':<6} {'Min':>8} {'Max':>8}")
    print("-" * 60)
    for sensor in default_sensors():
        print(f"{sensor.id:<14} {sensor.name:<20} {sensor.unit:<6} {sensor.min_value:>8.0f} {sensor.max_value:>8.0f}")
    print()


def _cmd_list_rules() -> None:
    from smart_home_sim.automation import build_default_rules
    from smart_home_sim.broker import Broker

    print(f"\n{'Id':<18} {'Name':<18} Description")
    print("-" * 90)
    for rule in build_default_rules(Broker()):
        print(f"{rule.id:<18} {rule.name:<18} {rule.description}")
    print()


def _cmd_list_sinks() -> None:
    from smart_home_sim.sinks.factory import _SINK_REGISTRY

    print(f"\n{'Sink Type':<14} {'Class':<16} {'Install Extra'}")
    print("-" * 62)
    for name, (_module_path, class_name) in _SINK_REGISTRY.items():
        extra = _SINK_EXTRAS.get(name)
        extra_str = "(built-in)" if extra is None else f"pip install smart-home-simulator[{extra}]"
        print(f"{name:<14} {class_name:<16} {extra_str}")
    print()


# -- init-config ------------------------------------------------------------


def _cmd_init_config(output_path: str | None) -> None:
    if output_path:
        from pathlib import Path

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(_SAMPLE_CONFIG, encoding="utf-8")
        print(f"Sample config written to {output_path}")
    else:
        print(_SAMPLE_CONFIG)


# ======================================================================
if __name__ == "__main__":
    main()
