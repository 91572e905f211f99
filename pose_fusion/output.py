from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from vision_sources.services.csv_writer import PoseCsvWriter


class OutputSink(ABC):
    @abstractmethod
    def open(self, session_dir: Path) -> None: ...

    @abstractmethod
    def write_tick(self, ts: float, state, localizer=None) -> None:
        """Called once per tick with the fused state and the localizer (or None)."""
        ...

    @abstractmethod
    def close(self) -> None: ...


class CsvOutput(OutputSink):
    def __init__(self, filename: str = "fused_pose.csv"):
        self.filename = filename
        self._writer: Optional[PoseCsvWriter] = None
        self._tick = 0

    def open(self, session_dir: Path) -> None:
        path = Path(session_dir) / self.filename
        self._writer = PoseCsvWriter(str(path))
        self._writer.open()

    def write_tick(self, ts: float, state, localizer=None) -> None:
        if self._writer is None:
            return
        self._tick += 1
        if localizer is None:
            self._writer.append(ts, self._tick, state)
            return
        self._writer.append(
            ts,
            self._tick,
            state,
            field_pose=localizer.field_relative_pose,
            robot_pose=localizer.robot_relative_pose,
            visible=localizer.visible,
        )

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None


class NullOutput(OutputSink):
    def open(self, session_dir: Path) -> None:
        return None

    def write_tick(self, ts: float, state, localizer=None) -> None:
        return None

    def close(self) -> None:
        return None
