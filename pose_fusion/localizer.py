"""Monocular game-object localization from detector bearing/elevation."""

from __future__ import annotations

import logging
import math
from typing import Optional

from vision_sources.vs_types import ObjectObservation

from .config import DetectorConfig
from .geometry import Pose2d, Rotation2d, Transform2d, Translation2d

logger = logging.getLogger(__name__)

# Smallest |tan(angle)| accepted by the elevation-angle distance equation
MIN_TAN = 1e-6


class DegenerateGeometryError(ValueError):
    """The camera ray to the target is parallel to the floor."""


def target_distance(
    camera_height: float,
    camera_pitch: float,
    target_height: float,
    vertical_offset_deg: float,
) -> float:
    """
    Distance from the camera to the target along the floor.

    Args:
        camera_height: lens height above the floor (m)
        camera_pitch: camera pitch, up positive (rad)
        target_height: height of the target center above the floor (m)
        vertical_offset_deg: target elevation relative to the crosshair (deg)

    Raises:
        DegenerateGeometryError: if pitch + offset is close enough to 0 (or pi)
            that the tangent vanishes.
    """
    angle = camera_pitch + math.radians(vertical_offset_deg)
    tan = math.tan(angle)
    if abs(tan) < MIN_TAN:
        raise DegenerateGeometryError(f"ray angle {angle:.6f} rad is parallel to the floor")
    return (target_height - camera_height) / tan


def camera_to_target_translation(distance: float, horizontal_offset_deg: float) -> Translation2d:
    yaw = Rotation2d.from_degrees(horizontal_offset_deg)
    return Translation2d(yaw.cos * distance, yaw.sin * distance)


def camera_to_target_pose(translation: Translation2d, horizontal_offset_deg: float) -> Pose2d:
    return Pose2d(translation, Rotation2d.from_degrees(horizontal_offset_deg))


def cam_pose_to_robot_relative(cam_to_target: Pose2d, cam_to_robot: Transform2d) -> Pose2d:
    return cam_to_target.transform_by(cam_to_robot)


def object_pose_field_space(robot_relative: Pose2d, robot_field_pose: Pose2d) -> Pose2d:
    """Place a robot-relative pose in the field using the robot's field pose."""
    return robot_field_pose.transform_by(Transform2d(robot_relative.translation, robot_relative.rotation))


class TargetLocalizer:
    """
    Turns detector angles into robot- and field-relative object poses.

    Both poses keep their last value while the object is out of view, so a
    consumer driving toward the object never sees it disappear mid-approach.
    """

    def __init__(self, config: DetectorConfig):
        self.config = config
        mount = config.robot_to_camera
        self.robot_to_camera = Transform2d(Translation2d(mount.x, mount.y), Rotation2d(mount.yaw))
        self.field_relative_pose = Pose2d()
        self.robot_relative_pose = Pose2d()
        self.visible = False
        self.last_distance: Optional[float] = None

    def update(self, observation: ObjectObservation, robot_pose: Pose2d) -> bool:
        """
        Recompute object poses. Returns True when the cached poses changed.

        A degenerate elevation angle is logged and treated like a missed
        detection for this cycle.
        """
        if not observation.visible:
            self.visible = False
            return False

        try:
            distance = target_distance(
                self.config.camera_height_m,
                self.config.camera_pitch_rad,
                self.config.target_height_m,
                observation.vertical_offset_deg,
            )
        except DegenerateGeometryError as exc:
            logger.warning("skipping object update: %s", exc)
            self.visible = False
            return False

        self.last_distance = distance
        cam_to_target = camera_to_target_translation(distance, observation.horizontal_offset_deg)
        cam_to_target_tf = Transform2d(cam_to_target, Rotation2d())

        # Robot relative: face back toward the robot so approach commands drive into it
        robot_to_object = self.robot_to_camera + cam_to_target_tf
        self.robot_relative_pose = Pose2d(
            robot_to_object.translation,
            robot_to_object.translation.angle + Rotation2d(math.pi),
        )

        # Field relative: heading is the live bearing from the object to the robot
        camera_field_pose = robot_pose + self.robot_to_camera
        object_field = camera_field_pose + cam_to_target_tf
        to_robot = robot_pose.translation - object_field.translation
        self.field_relative_pose = Pose2d(object_field.translation, to_robot.angle)
        self.visible = True
        return True
