"""Rotation matrix helpers: delta axis/angle and ZYX Euler angles in degrees."""

from __future__ import annotations

import math

import numpy as np

CM_PER_METER = 100.0


def axis_from_rotmat(R: np.ndarray) -> np.ndarray:
    """Unnormalized rotation axis from the antisymmetric part of R.

    The length is 2*sin(angle), so it collapses for angles near 0 and pi.
    """
    R = np.asarray(R, dtype=np.float64)
    return np.array(
        [R[2, 1] - R[1, 2], R[0, 2] - R[2, 0], R[1, 0] - R[0, 1]],
        dtype=np.float64,
    )


def angle_from_rotmat(R: np.ndarray) -> float:
    R = np.asarray(R, dtype=np.float64)
    c = (float(R[0, 0] + R[1, 1] + R[2, 2]) - 1.0) / 2.0
    return math.acos(max(-1.0, min(1.0, c)))


def euler_zyx_to_rotmat(euler_deg: np.ndarray) -> np.ndarray:
    z, y, x = np.radians(np.asarray(euler_deg, dtype=np.float64).reshape(3))
    Rz = np.array(
        [
            [math.cos(z), -math.sin(z), 0.0],
            [math.sin(z), math.cos(z), 0.0],
            [0.0, 0.0, 1.0],
        ]
    )
    Ry = np.array(
        [
            [math.cos(y), 0.0, math.sin(y)],
            [0.0, 1.0, 0.0],
            [-math.sin(y), 0.0, math.cos(y)],
        ]
    )
    Rx = np.array(
        [
            [1.0, 0.0, 0.0],
            [0.0, math.cos(x), -math.sin(x)],
            [0.0, math.sin(x), math.cos(x)],
        ]
    )
    return Rz @ Ry @ Rx


def rotmat_to_euler_zyx(R: np.ndarray) -> np.ndarray:
    """
    Decompose R = Rz(a) * Ry(b) * Rx(c) and return [a, b, c] in degrees.

    With y up in tracking space: a is roll, b is yaw, c is pitch.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 rotation matrix, got {R.shape}")
    sy = math.sqrt(R[0, 0] ** 2 + R[1, 0] ** 2)
    if sy >= 1e-6:
        a = math.atan2(R[1, 0], R[0, 0])
        b = math.atan2(-R[2, 0], sy)
        c = math.atan2(R[2, 1], R[2, 2])
    else:
        # Gimbal lock: fold the whole rotation about z into a.
        a = math.atan2(-R[0, 1], R[1, 1])
        b = math.atan2(-R[2, 0], sy)
        c = 0.0
    return np.degrees(np.array([a, b, c], dtype=np.float64))


def translation_cm_to_m(v_cm: np.ndarray) -> np.ndarray:
    return np.asarray(v_cm, dtype=np.float64).reshape(3) / CM_PER_METER
