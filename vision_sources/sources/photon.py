"""Photon-style 3D-solve pose source.

The camera publishes its newest targeting result under ``result`` in its
table. Two strategies are tried in order:

1. multi-tag: the coprocessor already solved field -> camera from every
   visible tag; compose with camera -> robot.
2. single tag: if the best target's ambiguity is under the cutoff, look the
   tag up in the field layout and back out the robot pose from
   camera -> target.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pose_fusion.config import MountConfig, PhotonConfig
from pose_fusion.geometry import Pose2d, Rotation3d, Transform3d, Translation3d

from ..services.field_layout import FieldLayout
from ..tables import TableSource
from ..vs_types import MultiTagResult, PipelineResult, PoseCandidate, TrackedTarget
from .base import PoseSource

logger = logging.getLogger(__name__)


def mount_to_transform(mount: MountConfig) -> Transform3d:
    return Transform3d(
        Translation3d(mount.x, mount.y, mount.z),
        Rotation3d.from_euler(mount.roll, mount.pitch, mount.yaw),
    )


def parse_transform3d(raw: Mapping[str, Any]) -> Transform3d:
    """
    ``{"translation": [x, y, z], "quaternion": [w, x, y, z]}`` or
    ``{"translation": [x, y, z], "rvec": [rx, ry, rz]}`` (OpenCV solvePnP output).
    """
    tx, ty, tz = (float(v) for v in raw["translation"])
    if "quaternion" in raw:
        w, x, y, z = (float(v) for v in raw["quaternion"])
        rotation = Rotation3d.from_quaternion(w, x, y, z)
    elif "rvec" in raw:
        rotation = Rotation3d.from_rvec([float(v) for v in raw["rvec"]])
    else:
        rotation = Rotation3d()
    return Transform3d(Translation3d(tx, ty, tz), rotation)


def parse_pipeline_result(raw: Mapping[str, Any]) -> PipelineResult:
    targets = [
        TrackedTarget(
            fiducial_id=int(t["fiducial_id"]),
            pose_ambiguity=float(t.get("pose_ambiguity", 1.0)),
            best_camera_to_target=parse_transform3d(t["best_camera_to_target"]),
            yaw=float(t.get("yaw", 0.0)),
            pitch=float(t.get("pitch", 0.0)),
            area=float(t.get("area", 0.0)),
        )
        for t in raw.get("targets", []) or []
    ]

    multi = MultiTagResult()
    multi_raw = raw.get("multi_tag")
    if isinstance(multi_raw, Mapping) and multi_raw.get("best") is not None:
        multi = MultiTagResult(
            best=parse_transform3d(multi_raw["best"]),
            best_reprojection_error=float(multi_raw.get("best_reprojection_error", 0.0)),
            fiducial_ids_used=[int(i) for i in multi_raw.get("fiducial_ids_used", [])],
        )

    return PipelineResult(float(raw.get("timestamp", 0.0)), targets, multi)


def estimate_field_to_robot(
    camera_to_target: Transform3d,
    field_to_target,
    camera_to_robot: Transform3d,
):
    """Robot pose in the field from a single tag of known field pose."""
    return field_to_target.transform_by(camera_to_target.inverse()).transform_by(camera_to_robot)


class PhotonPoseSource(PoseSource):
    def __init__(self, tables: TableSource, config: PhotonConfig, layout: FieldLayout):
        self.tables = tables
        self.config = config
        self.layout = layout
        self.camera_to_robot = mount_to_transform(config.camera_to_robot)
        self.source_id = f"photon:{config.camera_name}"
        self.has_targets = False
        self.last_timestamp = 0.0

    @property
    def table_name(self) -> str:
        return f"photonvision/{self.config.camera_name}"

    def latest_result(self) -> Optional[PipelineResult]:
        raw = self.tables.get(self.table_name, "result", None)
        if not raw or not isinstance(raw, Mapping):
            return None
        try:
            return parse_pipeline_result(raw)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.debug("unparseable pipeline result from %s: %s", self.table_name, exc)
            return None

    def poll(self) -> Optional[PoseCandidate]:
        result = self.latest_result()
        if result is None:
            self.has_targets = False
            return None

        self.has_targets = result.has_targets()

        if result.multi_tag.is_present:
            field_to_robot = result.multi_tag.best + self.camera_to_robot
            return self._candidate(
                field_to_robot.to_pose2d(),
                result,
                len(result.multi_tag.fiducial_ids_used) or len(result.targets),
                0.0,
            )

        target = result.best_target()
        if target is None:
            return None
        if target.pose_ambiguity >= self.config.ambiguity_cutoff:
            return None

        tag_pose = self.layout.get_tag_pose(target.fiducial_id)
        if tag_pose is None:
            logger.debug("tag %d not in field layout", target.fiducial_id)
            return None

        robot = estimate_field_to_robot(target.best_camera_to_target, tag_pose, self.camera_to_robot)
        return self._candidate(robot.to_pose2d(), result, 1, target.pose_ambiguity)

    def _candidate(self, pose: Pose2d, result: PipelineResult, count: int, ambiguity: float) -> PoseCandidate:
        self.last_timestamp = result.timestamp_seconds
        return PoseCandidate(
            pose=pose,
            capture_timestamp=result.timestamp_seconds,
            source_id=self.source_id,
            has_target=True,
            target_count=count,
            ambiguity=ambiguity,
        )
