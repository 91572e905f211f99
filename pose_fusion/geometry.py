"""2D/3D pose, translation, rotation and rigid transform value types.

All types are immutable. Poses only change by composing them with a
transform, which produces a new value.

Conventions:
    - Field frame: origin at a fixed field corner, x along the field length,
      y along the width, headings counter-clockwise positive.
    - ``Pose2d.apply(t)`` moves the pose by ``t`` expressed in the pose's own
      frame. ``a.apply(b - a) == b``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from .transforms import (
    compose,
    euler_to_matrix,
    invert_transform,
    matrix_to_euler,
    matrix_to_rvec_tvec,
    quaternion_to_matrix,
    rt_to_matrix,
    rvec_tvec_to_matrix,
)


def normalize_angle(radians: float) -> float:
    """Wrap an angle into (-pi, pi]."""
    a = math.remainder(float(radians), 2.0 * math.pi)
    if a <= -math.pi:
        a += 2.0 * math.pi
    return a


@dataclass(frozen=True)
class Rotation2d:
    radians: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "radians", normalize_angle(self.radians))

    @classmethod
    def from_degrees(cls, degrees: float) -> "Rotation2d":
        return cls(math.radians(degrees))

    @classmethod
    def from_vector(cls, x: float, y: float) -> "Rotation2d":
        return cls(math.atan2(y, x))

    @property
    def degrees(self) -> float:
        return math.degrees(self.radians)

    @property
    def cos(self) -> float:
        return math.cos(self.radians)

    @property
    def sin(self) -> float:
        return math.sin(self.radians)

    def rotate_by(self, other: "Rotation2d") -> "Rotation2d":
        return Rotation2d(self.radians + other.radians)

    def __add__(self, other: "Rotation2d") -> "Rotation2d":
        return self.rotate_by(other)

    def __sub__(self, other: "Rotation2d") -> "Rotation2d":
        return Rotation2d(self.radians - other.radians)

    def __neg__(self) -> "Rotation2d":
        return Rotation2d(-self.radians)

    def is_close(self, other: "Rotation2d", tol: float = 1e-9) -> bool:
        return abs(normalize_angle(self.radians - other.radians)) <= tol


@dataclass(frozen=True)
class Translation2d:
    x: float = 0.0
    y: float = 0.0

    @property
    def norm(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def angle(self) -> Rotation2d:
        return Rotation2d.from_vector(self.x, self.y)

    def distance(self, other: "Translation2d") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def rotate_by(self, rotation: Rotation2d) -> "Translation2d":
        c, s = rotation.cos, rotation.sin
        return Translation2d(self.x * c - self.y * s, self.x * s + self.y * c)

    def __add__(self, other: "Translation2d") -> "Translation2d":
        return Translation2d(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Translation2d") -> "Translation2d":
        return Translation2d(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Translation2d":
        return Translation2d(-self.x, -self.y)

    def __mul__(self, scalar: float) -> "Translation2d":
        return Translation2d(self.x * scalar, self.y * scalar)

    def is_close(self, other: "Translation2d", tol: float = 1e-9) -> bool:
        return self.distance(other) <= tol


@dataclass(frozen=True)
class Transform2d:
    """Relative displacement and rotation between two poses."""

    translation: Translation2d = field(default_factory=Translation2d)
    rotation: Rotation2d = field(default_factory=Rotation2d)

    @classmethod
    def from_poses(cls, start: "Pose2d", end: "Pose2d") -> "Transform2d":
        return end.relative_to(start)

    @property
    def x(self) -> float:
        return self.translation.x

    @property
    def y(self) -> float:
        return self.translation.y

    def then_apply(self, other: "Transform2d") -> "Transform2d":
        """Single transform equivalent to applying self, then other."""
        return Transform2d.from_poses(Pose2d(), Pose2d().apply(self).apply(other))

    def inverse(self) -> "Transform2d":
        return Transform2d(
            (-self.translation).rotate_by(-self.rotation),
            -self.rotation,
        )

    def __add__(self, other: "Transform2d") -> "Transform2d":
        return self.then_apply(other)


@dataclass(frozen=True)
class Pose2d:
    translation: Translation2d = field(default_factory=Translation2d)
    rotation: Rotation2d = field(default_factory=Rotation2d)

    @classmethod
    def of(cls, x: float, y: float, heading: float = 0.0) -> "Pose2d":
        """Build a pose from raw meters and a heading in radians."""
        return cls(Translation2d(x, y), Rotation2d(heading))

    @property
    def x(self) -> float:
        return self.translation.x

    @property
    def y(self) -> float:
        return self.translation.y

    def apply(self, transform: Transform2d) -> "Pose2d":
        return Pose2d(
            self.translation + transform.translation.rotate_by(self.rotation),
            self.rotation + transform.rotation,
        )

    transform_by = apply

    def relative_to(self, other: "Pose2d") -> Transform2d:
        """This pose expressed in the frame of ``other``."""
        delta = (self.translation - other.translation).rotate_by(-other.rotation)
        return Transform2d(delta, self.rotation - other.rotation)

    def __add__(self, transform: Transform2d) -> "Pose2d":
        return self.apply(transform)

    def __sub__(self, other: "Pose2d") -> Transform2d:
        return self.relative_to(other)

    def is_close(self, other: "Pose2d", tol: float = 1e-9) -> bool:
        return self.translation.is_close(other.translation, tol) and self.rotation.is_close(
            other.rotation, tol
        )


@dataclass(frozen=True)
class Translation3d:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def to_translation2d(self) -> Translation2d:
        return Translation2d(self.x, self.y)


class Rotation3d:
    """3D orientation stored as a 3x3 rotation matrix."""

    __slots__ = ("_R",)

    def __init__(self, matrix=None):
        R = np.eye(3) if matrix is None else np.array(matrix, dtype=float).reshape(3, 3)
        R.setflags(write=False)
        self._R = R

    @classmethod
    def from_euler(cls, roll: float = 0.0, pitch: float = 0.0, yaw: float = 0.0) -> "Rotation3d":
        return cls(euler_to_matrix(roll, pitch, yaw))

    @classmethod
    def from_quaternion(cls, w: float, x: float, y: float, z: float) -> "Rotation3d":
        return cls(quaternion_to_matrix(w, x, y, z))

    @classmethod
    def from_rvec(cls, rvec) -> "Rotation3d":
        T = rvec_tvec_to_matrix(rvec, np.zeros(3))
        return cls(T[:3, :3])

    @property
    def matrix(self) -> np.ndarray:
        return self._R

    @property
    def x(self) -> float:
        """Roll, radians."""
        return matrix_to_euler(self._R)[0]

    @property
    def y(self) -> float:
        """Pitch, radians."""
        return matrix_to_euler(self._R)[1]

    @property
    def z(self) -> float:
        """Yaw, radians. This is the only component kept when projecting to 2D."""
        return matrix_to_euler(self._R)[2]

    def as_rvec(self) -> np.ndarray:
        rvec, _ = matrix_to_rvec_tvec(rt_to_matrix(self._R, np.zeros(3)))
        return rvec.reshape(3)

    def __eq__(self, other) -> bool:
        return isinstance(other, Rotation3d) and np.allclose(self._R, other._R)

    def __repr__(self) -> str:
        return f"Rotation3d(roll={self.x:.4f}, pitch={self.y:.4f}, yaw={self.z:.4f})"


class _Rigid3d:
    """Shared storage for Pose3d and Transform3d (4x4 homogeneous matrix)."""

    __slots__ = ("_T",)

    def __init__(self, translation: Translation3d | None = None, rotation: Rotation3d | None = None):
        translation = translation or Translation3d()
        rotation = rotation or Rotation3d()
        T = rt_to_matrix(rotation.matrix, translation.as_array())
        T.setflags(write=False)
        self._T = T

    @classmethod
    def from_matrix(cls, T: np.ndarray):
        obj = cls.__new__(cls)
        T = np.array(T, dtype=float).reshape(4, 4)
        T.setflags(write=False)
        obj._T = T
        return obj

    @property
    def matrix(self) -> np.ndarray:
        return self._T

    @property
    def translation(self) -> Translation3d:
        return Translation3d(*(float(v) for v in self._T[:3, 3]))

    @property
    def rotation(self) -> Rotation3d:
        return Rotation3d(self._T[:3, :3])

    @property
    def x(self) -> float:
        return float(self._T[0, 3])

    @property
    def y(self) -> float:
        return float(self._T[1, 3])

    @property
    def z(self) -> float:
        return float(self._T[2, 3])

    def to_pose2d(self) -> Pose2d:
        """Project onto the floor plane keeping only yaw."""
        return Pose2d(Translation2d(self.x, self.y), Rotation2d(self.rotation.z))

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and np.allclose(self._T, other._T)

    def __repr__(self) -> str:
        t = self.translation
        return f"{type(self).__name__}(x={t.x:.4f}, y={t.y:.4f}, z={t.z:.4f}, {self.rotation!r})"


class Transform3d(_Rigid3d):
    __slots__ = ()

    def inverse(self) -> "Transform3d":
        return Transform3d.from_matrix(invert_transform(self._T))

    def __add__(self, other: "Transform3d") -> "Transform3d":
        return Transform3d.from_matrix(compose(self._T, other._T))


class Pose3d(_Rigid3d):
    __slots__ = ()

    def transform_by(self, transform: Transform3d) -> "Pose3d":
        return Pose3d.from_matrix(compose(self._T, transform.matrix))

    def __add__(self, transform: Transform3d) -> "Pose3d":
        return self.transform_by(transform)
