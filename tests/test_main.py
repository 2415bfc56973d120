"""Tests for smart_home_sim.__main__ - CLI entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from smart_home_sim.__main__ import (
    _SAMPLE_CONFIG,
    _cmd_init_config,
    _cmd_list_devices,
    _cmd_list_rules,
    _cmd_list_sensors,
    _cmd_list_sinks,
    main,
)
from smart_home_sim.config import load_yaml_config

# -----------------------------------------------------------------------
# main() dispatch
# -----------------------------------------------------------------------


class TestMainDispatch:
    """CLI argument parsing and sub-command dispatch."""

    def test_no_args_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        main([])
        out = capsys.readouterr().out
        assert "usage" in out.lower() or "commands" in out.lower()

    def test_help_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_list_devices(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["list-devices"])
        assert "water_heater" in capsys.readouterr().out

    def test_list_rules(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["list-rules"])
        assert "humidity-control" in capsys.readouterr().out

    def test_invalid_sink_choice_exits(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "-s", "kafka"])
        assert exc_info.value.code == 2

    def test_backward_compat_injects_run(self) -> None:
        """When first arg is a flag (not a subcommand), 'run' is injected."""
        with patch("smart_home_sim.__main__._cmd_run") as mock_run:
            main(["--ticks", "3"])
            mock_run.assert_called_once()
            assert mock_run.call_args[0][0].ticks == 3

    def test_run_subcommand_dispatches(self) -> None:
        with patch("smart_home_sim.__main__._cmd_run") as mock_run:
            main(["run", "--duration", "0.1"])
            mock_run.assert_called_once()


# -----------------------------------------------------------------------
# Listings
# -----------------------------------------------------------------------


class TestListings:
    """list-* command output."""

    def test_devices(self, capsys: pytest.CaptureFixture[str]) -> None:
        _cmd_list_devices()
        out = capsys.readouterr().out
        for device_id in ("light1", "light2", "light3", "ac", "water_heater"):
            assert device_id in out
        assert "1500" in out

    def test_sensors(self, capsys: pytest.CaptureFixture[str]) -> None:
        _cmd_list_sensors()
        out = capsys.readouterr().out
        for sensor_id in ("temperature", "motion", "humidity", "power", "distance", "light"):
            assert sensor_id in out
        assert "lux" in out

    def test_rules(self, capsys: pytest.CaptureFixture[str]) -> None:
        _cmd_list_rules()
        out = capsys.readouterr().out
        assert "hvac-cooling" in out
        assert "Turn off AC after 5 minutes of no motion" in out

    def test_sinks(self, capsys: pytest.CaptureFixture[str]) -> None:
        _cmd_list_sinks()
        out = capsys.readouterr().out
        assert "console" in out
        assert "(built-in)" in out
        assert "smart-home-simulator[webhook]" in out


# -----------------------------------------------------------------------
# init-config
# -----------------------------------------------------------------------


class TestInitConfig:
    """_cmd_init_config output."""

    def test_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        _cmd_init_config(None)
        out = capsys.readouterr().out
        assert out.strip() == _SAMPLE_CONFIG.strip()

    def test_to_file(self, tmp_path: Path) -> None:
        outfile = tmp_path / "sub" / "home.yaml"
        _cmd_init_config(str(outfile))
        assert outfile.exists()
        assert "automation:" in outfile.read_text(encoding="utf-8")

    def test_sample_config_loads(self, tmp_path: Path) -> None:
        assert isinstance(yaml.safe_load(_SAMPLE_CONFIG), dict)
        outfile = tmp_path / "home.yaml"
        _cmd_init_config(str(outfile))
        cfg = load_yaml_config(outfile)
        assert cfg.automation.cooling_temperature == 26.0
        assert [s["type"] for s in cfg.sink_configs] == ["console"]


# -----------------------------------------------------------------------
# run command
# -----------------------------------------------------------------------


class TestRunCommand:
    """_cmd_run with quick mode and config mode."""

    def test_run_quick_with_console(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["run", "-s", "console", "--ticks", "3", "--speed", "1000", "--seed", "1"])
        out = capsys.readouterr().out
        assert "registered" in out
        assert "Simulated 3 ticks" in out

    def test_run_quick_with_file_sink(self, tmp_path: Path) -> None:
        main(
            [
                "run",
                "-s",
                "file",
                "--output-dir",
                str(tmp_path),
                "--output-format",
                "csv",
                "--ticks",
                "3",
                "--speed",
                "1000",
            ]
        )
        assert len(list(tmp_path.glob("*.csv"))) == 1

    def test_run_from_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config_file = tmp_path / "home.yaml"
        config_file.write_text(
            """\
simulation:
  speed: 1000
  max_ticks: 4
  seed: 3

sinks:
  - type: console
    fmt: json
    rate_hz: 10.0
""",
            encoding="utf-8",
        )
        main(["run", "--config", str(config_file)])
        out = capsys.readouterr().out
        assert '"kind":"registration"' in out
        assert "Simulated 4 ticks" in out

    def test_run_from_config_ticks_override(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config_file = tmp_path / "home.yaml"
        config_file.write_text("simulation:\n  speed: 1000\n  max_ticks: 500\n", encoding="utf-8")
        main(["run", "--config", str(config_file), "--ticks", "2"])
        assert "Simulated 2 ticks" in capsys.readouterr().out

    def test_run_missing_config_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            main(["run", "--config", str(tmp_path / "nope.yaml")])
