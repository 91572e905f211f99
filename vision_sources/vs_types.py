from dataclasses import dataclass, field
from typing import Optional

from pose_fusion.geometry import Pose2d, Transform3d


@dataclass(frozen=True)
class PoseCandidate:
    """One adapter's robot pose estimate for one control cycle.

    ``target_count`` and ``ambiguity`` are only meaningful when
    ``has_target`` is true.
    """

    pose: Pose2d
    capture_timestamp: float  # seconds
    source_id: str
    has_target: bool
    target_count: int = 0
    ambiguity: float = 0.0
    latency_seconds: float = 0.0


@dataclass(frozen=True)
class ObjectObservation:
    horizontal_offset_deg: float  # counter-clockwise positive
    vertical_offset_deg: float
    visible: bool


NO_OBSERVATION = ObjectObservation(0.0, 0.0, False)


@dataclass
class FiducialTarget:
    fiducial_id: int
    tx: float = 0.0
    ty: float = 0.0
    ta: float = 0.0


@dataclass
class TrackedTarget:
    fiducial_id: int
    pose_ambiguity: float
    best_camera_to_target: Transform3d
    yaw: float = 0.0
    pitch: float = 0.0
    area: float = 0.0


@dataclass
class MultiTagResult:
    best: Optional[Transform3d] = None  # field -> camera
    best_reprojection_error: float = 0.0
    fiducial_ids_used: list[int] = field(default_factory=list)

    @property
    def is_present(self) -> bool:
        return self.best is not None


@dataclass
class PipelineResult:
    timestamp_seconds: float
    targets: list[TrackedTarget] = field(default_factory=list)
    multi_tag: MultiTagResult = field(default_factory=MultiTagResult)

    def has_targets(self) -> bool:
        return len(self.targets) > 0

    def best_target(self) -> Optional[TrackedTarget]:
        """First target in the pipeline's own sort order."""
        if not self.targets:
            return None
        return self.targets[0]
