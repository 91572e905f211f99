"""SE(3) transformation utilities for camera and fiducial pose handling."""

import warnings

import numpy as np
import cv2
from scipy.spatial.transform import Rotation
from typing import Tuple


def rvec_tvec_to_matrix(rvec: np.ndarray, tvec: np.ndarray) -> np.ndarray:
    """
    Convert rotation vector and translation vector to 4x4 transformation matrix.

    Args:
        rvec: Rotation vector (3,) or (3,1)
        tvec: Translation vector (3,) or (3,1)

    Returns:
        4x4 homogeneous transformation matrix
    """
    rvec = np.asarray(rvec, dtype=float).reshape(3)
    tvec = np.asarray(tvec, dtype=float).reshape(3)

    R, _ = cv2.Rodrigues(rvec)

    return rt_to_matrix(R, tvec)


def matrix_to_rvec_tvec(T: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert 4x4 transformation matrix to rotation vector and translation vector.

    Returns:
        (rvec, tvec) where rvec is (3,1) and tvec is (3,1)
    """
    R = np.ascontiguousarray(T[:3, :3], dtype=float)
    tvec = np.asarray(T[:3, 3], dtype=float).reshape(3, 1)

    rvec, _ = cv2.Rodrigues(R)

    return rvec, tvec


def rt_to_matrix(R: np.ndarray, tvec) -> np.ndarray:
    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = np.asarray(tvec, dtype=float).reshape(3)
    return T


def invert_transform(T: np.ndarray) -> np.ndarray:
    """
    Invert a 4x4 homogeneous transformation matrix.

    For SE(3): T^-1 = [R^T, -R^T * t; 0, 1]
    """
    T_inv = np.eye(4)
    R = T[:3, :3]
    t = T[:3, 3]

    R_T = R.T
    T_inv[:3, :3] = R_T
    T_inv[:3, 3] = -R_T @ t

    return T_inv


def euler_to_matrix(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """
    Rotation matrix for extrinsic X-Y-Z rotations (roll, then pitch, then yaw),
    i.e. R = Rz(yaw) @ Ry(pitch) @ Rx(roll). Angles in radians.
    """
    return Rotation.from_euler("xyz", [roll, pitch, yaw]).as_matrix()


def matrix_to_euler(R: np.ndarray) -> Tuple[float, float, float]:
    """
    Inverse of euler_to_matrix. Returns (roll, pitch, yaw) in radians.

    At gimbal lock roll is reported as 0 and yaw carries the heading.
    """
    with warnings.catch_warnings():
        # scipy warns on gimbal lock and folds the heading into yaw
        warnings.simplefilter("ignore", UserWarning)
        roll, pitch, yaw = Rotation.from_matrix(np.asarray(R, dtype=float)).as_euler("xyz")
    return float(roll), float(pitch), float(yaw)


def quaternion_to_matrix(w: float, x: float, y: float, z: float) -> np.ndarray:
    """Rotation matrix for a scalar-first quaternion; need not be unit length."""
    # scipy wants scalar-last and raises ValueError on a zero-norm quaternion
    return Rotation.from_quat([x, y, z, w]).as_matrix()


def compose(T_a: np.ndarray, T_b: np.ndarray) -> np.ndarray:
    """T_a followed by T_b expressed in T_a's frame: T_a @ T_b."""
    return np.asarray(T_a, dtype=float) @ np.asarray(T_b, dtype=float)
