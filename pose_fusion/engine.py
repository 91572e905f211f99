from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from vision_sources.sources.base import Clock, ObservationSource, PoseSource, default_clock
from vision_sources.vs_types import PoseCandidate

from .gate import ConfidenceGate
from .geometry import Pose2d
from .localizer import TargetLocalizer
from .logging_utils import setup_logger, source_logger
from .output import OutputSink


@dataclass(frozen=True)
class FusedPoseState:
    accepted_pose: Pose2d
    accepted_at: float
    total_latency_seconds: float
    source_id: str = ""


INITIAL_STATE = FusedPoseState(Pose2d(), 0.0, 0.0, "")


class PoseFusionEngine:
    """
    Runs the vision sources once per control cycle and owns the accepted pose.

    Families run in a fixed order (fiducial, then 3D-solve); when both produce
    an accepted pose in the same tick the later one wins. The target localizer
    always runs last so it sees this tick's pose.

    Create exactly one engine per process and hand it to whatever needs it.
    """

    def __init__(
        self,
        gate: ConfidenceGate,
        fiducial_source: Optional[PoseSource] = None,
        solve_source: Optional[PoseSource] = None,
        detector: Optional[ObservationSource] = None,
        localizer: Optional[TargetLocalizer] = None,
        robot_pose_supplier: Optional[Callable[[], Pose2d]] = None,
        outputs: Optional[list[OutputSink]] = None,
        clock: Clock = default_clock,
        logger: Optional[logging.Logger] = None,
    ):
        self.gate = gate
        self.fiducial_source = fiducial_source
        self.solve_source = solve_source
        self.detector = detector
        self.localizer = localizer
        self.robot_pose_supplier = robot_pose_supplier
        self.outputs = outputs or []
        self.clock = clock
        self.logger = logger or setup_logger("engine")

        self._lock = threading.Lock()
        self._state = INITIAL_STATE
        self.photon_timestamp = 0.0
        self.tick_count = 0
        self.errors = 0

    # -- state ---------------------------------------------------------------

    @property
    def state(self) -> FusedPoseState:
        """Consistent snapshot; safe to call from a telemetry thread."""
        with self._lock:
            return self._state

    def snapshot(self) -> FusedPoseState:
        return self.state

    @property
    def accepted_pose(self) -> Pose2d:
        return self.state.accepted_pose

    @property
    def total_latency(self) -> float:
        return self.state.total_latency_seconds

    @property
    def photon_has_targets(self) -> bool:
        return bool(getattr(self.solve_source, "has_targets", False))

    def _commit(self, state: FusedPoseState) -> None:
        with self._lock:
            self._state = state

    def _log_for(self, source) -> logging.LoggerAdapter:
        return source_logger(self.logger, getattr(source, "source_id", None))

    # -- tick ----------------------------------------------------------------

    def _poll(self, source: PoseSource) -> Optional[PoseCandidate]:
        try:
            return source.poll()
        except Exception as exc:
            self.errors += 1
            self._log_for(source).warning("poll failed: %s", exc)
            return None

    def _run_fiducial(self) -> None:
        candidate = self._poll(self.fiducial_source)
        if candidate is None:
            return
        if not self.gate.accept(candidate, self.accepted_pose):
            self._log_for(self.fiducial_source).debug(
                "rejected pose x=%.2f y=%.2f tags=%d",
                candidate.pose.x,
                candidate.pose.y,
                candidate.target_count,
            )
            return
        self._commit(
            FusedPoseState(
                candidate.pose,
                candidate.capture_timestamp,
                candidate.latency_seconds,
                candidate.source_id,
            )
        )

    def _run_solve(self) -> None:
        candidate = self._poll(self.solve_source)
        if candidate is None or not candidate.has_target:
            return
        # Trusted at the adapter level through its ambiguity cutoff
        self.photon_timestamp = candidate.capture_timestamp
        self._commit(
            FusedPoseState(
                candidate.pose,
                candidate.capture_timestamp,
                self.state.total_latency_seconds,
                candidate.source_id,
            )
        )

    def _run_localizer(self) -> None:
        try:
            observation = self.detector.poll()
        except Exception as exc:
            self.errors += 1
            self._log_for(self.detector).warning("poll failed: %s", exc)
            return
        robot_pose = self.robot_pose_supplier() if self.robot_pose_supplier else self.accepted_pose
        self.localizer.update(observation, robot_pose)

    def tick(self) -> FusedPoseState:
        if self.fiducial_source is not None:
            self._run_fiducial()
        if self.solve_source is not None:
            self._run_solve()
        if self.detector is not None and self.localizer is not None:
            self._run_localizer()

        self.tick_count += 1
        state = self.state
        for out in self.outputs:
            try:
                out.write_tick(self.clock(), state, self.localizer)
            except Exception as exc:
                self.errors += 1
                source_logger(self.logger, type(out).__name__).warning("telemetry write failed: %s", exc)
        return state

    periodic = tick
