"""Replay recorded vision tables through the fusion engine.

Each line of the replay file is one control tick:

    {"t": 12.34,
     "tables": {"limelight-pose": {"json": "...", "tv": 1, "botpose_wpiblue": [...]},
                "photonvision/photon-1": {"result": {...}},
                "limelight-nn": {"json": "...", "tv": 1, "tx": -3.2, "ty": -8.0}},
     "robot_pose": [x, y, heading_deg]}

``robot_pose`` is optional; without it the object localizer uses the fused pose.
"""

import argparse
import json
import logging
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from vision_sources.factory import SourceFactory
from vision_sources.services.storage import SessionStorage
from vision_sources.tables import InMemoryTables

from .config import VisionConfig, load_config
from .engine import PoseFusionEngine
from .gate import ConfidenceGate
from .geometry import Pose2d, Rotation2d, Translation2d
from .localizer import TargetLocalizer
from .logging_utils import add_file_handler, setup_logger
from .output import CsvOutput, OutputSink


@dataclass
class ReplaySummary:
    session_path: str
    ticks: int
    csv_path: str
    log_path: str
    final_pose: Pose2d
    errors: int


class ReplayClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def iter_ticks(path: Path) -> Iterator[dict]:
    with path.open("r", encoding="utf-8") as fp:
        for lineno, line in enumerate(fp, 1):
            line = line.strip()
            if not line:
                continue
            record = json.loads(line)
            if not isinstance(record, dict):
                raise ValueError(f"{path}:{lineno}: tick must be a JSON object")
            yield record


def _robot_pose(raw) -> Optional[Pose2d]:
    if not raw:
        return None
    x, y, heading_deg = (float(v) for v in raw[:3])
    return Pose2d(Translation2d(x, y), Rotation2d.from_degrees(heading_deg))


class ReplaySession:
    """Owns the single engine for this process and drives it tick by tick."""

    def __init__(self, config: VisionConfig, logger: Optional[logging.Logger] = None,
                 outputs: Optional[list[OutputSink]] = None):
        self.config = config
        self.logger = logger or setup_logger("replay")
        self.outputs = outputs
        self.tables = InMemoryTables()
        self.clock = ReplayClock()
        self._odometry: Optional[Pose2d] = None
        self._stopped = False

        sources = SourceFactory.from_config(config, self.tables, clock=self.clock)
        localizer = TargetLocalizer(config.detector) if sources.detector is not None else None
        if outputs is None:
            outputs = [CsvOutput(config.telemetry.csv_name)] if config.telemetry.enabled else []
        self.outputs = outputs

        self.engine = PoseFusionEngine(
            ConfidenceGate(config.field_dims),
            fiducial_source=sources.fiducial,
            solve_source=sources.solve,
            detector=sources.detector,
            localizer=localizer,
            robot_pose_supplier=self._robot_pose,
            outputs=self.outputs,
            clock=self.clock,
            logger=self.logger,
        )

    def _robot_pose(self) -> Pose2d:
        return self._odometry if self._odometry is not None else self.engine.accepted_pose

    def stop(self) -> None:
        self._stopped = True

    def run(self, replay_path: str) -> ReplaySummary:
        storage = SessionStorage(self.config.telemetry.session_root, name="replay")
        session_path = storage.begin()
        storage.write_manifest(self.config.as_dict())

        log_file = str(Path(storage.logs_dir) / "session.log")
        handler = add_file_handler(self.logger, "replay", log_file)

        for out in self.outputs:
            out.open(Path(storage.session_dir))

        self.logger.info("replay started: %s -> %s", replay_path, session_path)
        try:
            for record in iter_ticks(Path(replay_path)):
                if self._stopped:
                    break
                self.clock.now = float(record.get("t", self.clock.now))
                self.tables.update(record.get("tables", {}))
                self._odometry = _robot_pose(record.get("robot_pose"))
                self.engine.tick()
        finally:
            for out in self.outputs:
                try:
                    out.close()
                except OSError as exc:
                    self.logger.warning("output close failed: %s", exc)
            self.logger.removeHandler(handler)
            handler.close()

        pose = self.engine.accepted_pose
        self.logger.info(
            "summary ticks=%d pose=(%.3f, %.3f, %.1f deg) errors=%d",
            self.engine.tick_count, pose.x, pose.y, pose.rotation.degrees, self.engine.errors,
        )
        return ReplaySummary(
            session_path,
            self.engine.tick_count,
            str(Path(storage.session_dir) / self.config.telemetry.csv_name),
            log_file,
            pose,
            self.engine.errors,
        )


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Replay recorded vision tables through pose fusion")
    ap.add_argument("--config", help="Path to JSON/YAML config")
    ap.add_argument("--replay", required=True, help="JSON-lines file, one tick per line")
    ap.add_argument("--out", help="Session root directory")
    ap.add_argument("--limelight", dest="limelight", action="store_true", default=None)
    ap.add_argument("--no-limelight", dest="limelight", action="store_false")
    ap.add_argument("--photon", dest="photon", action="store_true", default=None)
    ap.add_argument("--no-photon", dest="photon", action="store_false")
    ap.add_argument("--detector", dest="detector", action="store_true", default=None)
    ap.add_argument("--no-detector", dest="detector", action="store_false")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    cfg = load_config(args.config) if args.config else VisionConfig()
    cfg.apply_overrides(
        limelight_enabled=args.limelight,
        photon_enabled=args.photon,
        detector_enabled=args.detector,
    )
    if args.out:
        cfg.telemetry.session_root = args.out

    logger = setup_logger("replay", logging.DEBUG if args.verbose else logging.INFO)
    session = ReplaySession(cfg, logger=logger)

    def _handle_signal(_sig, _frame):
        session.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle_signal)

    summary = session.run(args.replay)
    print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
