"""Limelight-style fiducial pose source.

The device solves the robot pose in the field frame itself and publishes it
as ``botpose_wpiblue`` (blue-alliance origin). The full result set, including
the list of fiducials in view, is published as a JSON string under ``json``;
an empty string means nothing has arrived from the device.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Optional

from pose_fusion.config import LimelightConfig
from pose_fusion.geometry import Pose2d, Rotation2d, Translation2d

from ..tables import TableSource
from ..vs_types import FiducialTarget, PoseCandidate
from .base import Clock, PoseSource, default_clock

logger = logging.getLogger(__name__)

LED_PIPELINE = 0
LED_OFF = 1
LED_ON = 3


def pose2d_from_array(data: list[float]) -> Pose2d:
    """``[x, y, z, roll, pitch, yaw_deg, ...]`` -> planar pose."""
    if len(data) < 6:
        if data:
            logger.warning("bad 2D pose data: %s", data)
        return Pose2d()
    return Pose2d(Translation2d(data[0], data[1]), Rotation2d.from_degrees(data[5]))


def parse_fiducials(payload: str) -> list[FiducialTarget]:
    try:
        raw = json.loads(payload)
        entries = raw["Results"].get("Fiducial", []) or []
        return [
            FiducialTarget(
                int(e.get("fID", -1)),
                float(e.get("tx", 0.0)),
                float(e.get("ty", 0.0)),
                float(e.get("ta", 0.0)),
            )
            for e in entries
        ]
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.debug("unparseable results payload: %s", exc)
        return []


class LimelightTable:
    """Typed accessors over one Limelight's table."""

    def __init__(self, tables: TableSource, name: str):
        self.tables = tables
        self.name = name

    def connected(self) -> bool:
        return self.tables.get_string(self.name, "json", "") != ""

    def has_target(self) -> bool:
        return self.tables.get_number(self.name, "tv", 0.0) == 1.0

    def tx(self) -> float:
        return self.tables.get_number(self.name, "tx", 0.0)

    def ty(self) -> float:
        return self.tables.get_number(self.name, "ty", 0.0)

    def latency_pipeline_ms(self) -> float:
        return self.tables.get_number(self.name, "tl", 0.0)

    def latency_capture_ms(self) -> float:
        return self.tables.get_number(self.name, "cl", 0.0)

    def array(self, key: str) -> list[float]:
        return self.tables.get_array(self.name, key)

    def results_json(self) -> str:
        return self.tables.get_string(self.name, "json", "")

    def set_pipeline(self, index: int) -> None:
        self.tables.put(self.name, "pipeline", int(index))

    def set_led_mode(self, mode: int) -> None:
        self.tables.put(self.name, "ledMode", int(mode))

    def set_camera_pose_robot_space(self, x, y, z, roll_deg, pitch_deg, yaw_deg) -> None:
        self.tables.put(
            self.name,
            "camerapose_robotspace_set",
            [float(x), float(y), float(z), float(roll_deg), float(pitch_deg), float(yaw_deg)],
        )


class LimelightPoseSource(PoseSource):
    def __init__(self, tables: TableSource, config: LimelightConfig, clock: Clock = default_clock):
        self.config = config
        self.table = LimelightTable(tables, config.name)
        self.clock = clock
        self.source_id = f"limelight:{config.name}"
        self.last_fiducials: list[FiducialTarget] = []

    def configure(self) -> None:
        mount = self.config.camera_pose
        self.table.set_led_mode(LED_ON if self.config.led_on else LED_OFF)
        self.table.set_pipeline(self.config.pipeline)
        self.table.set_camera_pose_robot_space(
            mount.x,
            mount.y,
            mount.z,
            math.degrees(mount.roll),
            math.degrees(mount.pitch),
            math.degrees(mount.yaw),
        )

    def total_latency_ms(self) -> float:
        return self.table.latency_pipeline_ms() + self.table.latency_capture_ms()

    def poll(self) -> Optional[PoseCandidate]:
        if not self.table.connected():
            return None

        self.last_fiducials = parse_fiducials(self.table.results_json())
        latency_s = self.total_latency_ms() / 1000.0
        return PoseCandidate(
            pose=pose2d_from_array(self.table.array("botpose_wpiblue")),
            capture_timestamp=self.clock() - latency_s,
            source_id=self.source_id,
            has_target=self.table.has_target(),
            target_count=len(self.last_fiducials),
            latency_seconds=latency_s,
        )

    def robot_pose_target_space(self) -> Pose2d:
        """Robot pose with the primary fiducial as origin."""
        return pose2d_from_array(self.table.array("botpose_targetspace"))

    def target_pose_robot_space(self) -> Pose2d:
        """Primary fiducial pose with the robot as origin."""
        return pose2d_from_array(self.table.array("targetpose_robotspace"))
