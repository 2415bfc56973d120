"""File sink - appends broker messages to CSV or JSON Lines files with
optional time-based rotation."""

from __future__ import annotations

import csv
import logging
import time
from pathlib import Path
from typing import IO, Any, ClassVar

from smart_home_sim.models import Message
from smart_home_sim.sinks.base import Sink

__all__ = ["FileSink"]

logger = logging.getLogger("smart_home_sim.sinks.file")

_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def _parse_rotation(rotation: str | None) -> float | None:
    """Convert ``"30s"``, ``"5m"``, ``"1h"``, ``"1d"`` (or bare seconds)
    to seconds.  ``None`` / empty disables rotation."""
    if not rotation:
        return None
    rotation = rotation.strip().lower()
    if rotation[-1] in _UNITS:
        return float(rotation[:-1]) * _UNITS[rotation[-1]]
    return float(rotation)


class FileSink(Sink):
    """Write broker messages to local files.

    Parameters:
        path: Output directory (created on connect).
        format: ``"csv"`` (one row per message, payload as JSON) or
                ``"json"`` (JSON Lines, one message per line).
        rotation: Start a new file periodically - e.g. ``"1h"``, ``"30m"``.
                  ``None`` writes a single file.
        rate_hz / batch_size / **kwargs: Forwarded to :class:`Sink`.
    """

    _EXTENSIONS: ClassVar[dict[str, str]] = {"csv": "csv", "json": "jsonl"}
    _CSV_FIELDS: ClassVar[list[str]] = ["timestamp", "topic", "kind", "payload"]

    def __init__(
        self,
        *,
        path: str = "./output",
        format: str = "json",
        rotation: str | None = None,
        rate_hz: float | None = None,
        batch_size: int = 500,
        **kwargs: Any,
    ) -> None:
        super().__init__(rate_hz=rate_hz, batch_size=batch_size, **kwargs)
        self._dir = Path(path)
        self._format = format.lower()
        if self._format not in self._EXTENSIONS:
            raise ValueError(f"Unknown file format '{format}'.  Available: {sorted(self._EXTENSIONS)}")
        self._rotation_s = _parse_rotation(rotation)
        self._file: IO[str] | None = None
        self._csv_writer: csv.DictWriter[str] | None = None
        self._file_start_time = 0.0
        self._file_index = 0

    async def connect(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        self._open_new_file()
        logger.info("FileSink writing %s to %s", self._format, self._dir)

    async def write(self, messages: list[Message]) -> None:
        if self._file is None:
            raise RuntimeError("FileSink is not connected")
        if self._rotation_s and time.time() - self._file_start_time >= self._rotation_s:
            self._close_file()
            self._open_new_file()

        if self._format == "csv":
            self._write_csv(messages)
        else:
            for msg in messages:
                self._file.write(msg.to_json() + "\n")
        self._file.flush()

    async def flush(self) -> None:
        if self._file is not None and not self._file.closed:
            self._file.flush()

    async def close(self) -> None:
        self._close_file()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _open_new_file(self) -> None:
        self._file_index += 1
        stamp = time.strftime("%Y%m%d_%H%M%S", time.localtime())
        filepath = self._dir / f"messages_{stamp}_{self._file_index:03d}.{self._EXTENSIONS[self._format]}"
        self._file = filepath.open("w", newline="", encoding="utf-8")
        self._csv_writer = None
        self._file_start_time = time.time()
        logger.debug("Opened file: %s", filepath)

    def _close_file(self) -> None:
        if self._file is not None and not self._file.closed:
            self._file.close()
        self._file = None
        self._csv_writer = None

    def _write_csv(self, messages: list[Message]) -> None:
        if self._csv_writer is None:
            self._csv_writer = csv.DictWriter(self._file, fieldnames=self._CSV_FIELDS)
            self._csv_writer.writeheader()
        for msg in messages:
            self._csv_writer.writerow(
                {
                    "timestamp": msg.timestamp,
                    "topic": msg.topic,
                    "kind": msg.payload.kind,
                    "payload": msg.payload.to_json(),
                }
            )
