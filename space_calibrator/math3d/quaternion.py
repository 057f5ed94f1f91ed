"""Quaternion utilities for right-handed coordinates.

Quaternions are stored as [w, x, y, z].
"""

from __future__ import annotations

import math

import numpy as np


def q_normalize(q: np.ndarray) -> np.ndarray:
    q = np.asarray(q, dtype=np.float64)
    n = float(np.linalg.norm(q))
    if n < 1e-12:
        return np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)
    return q / n


def q_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array(
        [
            aw * bw - ax * bx - ay * by - az * bz,
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by - ax * bz + ay * bw + az * bx,
            aw * bz + ax * by - ay * bx + az * bw,
        ],
        dtype=np.float64,
    )


def axis_angle_to_q(axis: np.ndarray, angle_rad: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=np.float64)
    axis = axis / (np.linalg.norm(axis) + 1e-12)
    s = math.sin(angle_rad / 2.0)
    return q_normalize(
        np.array(
            [math.cos(angle_rad / 2.0), axis[0] * s, axis[1] * s, axis[2] * s],
            dtype=np.float64,
        )
    )


def euler_zyx_to_q(euler_deg: np.ndarray) -> np.ndarray:
    """
    Euler triple [z, y, x] in degrees, composed as q = q_z * q_y * q_x.

    Same convention as ``rotation.euler_zyx_to_rotmat`` so a calibrated
    rotation can be pushed to the offset actuator unchanged.
    """
    e = np.radians(np.asarray(euler_deg, dtype=np.float64).reshape(3))
    q_z = axis_angle_to_q(np.array([0.0, 0.0, 1.0]), float(e[0]))
    q_y = axis_angle_to_q(np.array([0.0, 1.0, 0.0]), float(e[1]))
    q_x = axis_angle_to_q(np.array([1.0, 0.0, 0.0]), float(e[2]))
    return q_normalize(q_mul(q_mul(q_z, q_y), q_x))


def q_to_rotmat(q: np.ndarray) -> np.ndarray:
    """Convert unit quaternion [w, x, y, z] to a 3x3 rotation matrix."""
    q = np.asarray(q, dtype=np.float64).reshape(-1)
    if q.size != 4:
        raise ValueError(f"Expected quaternion of size 4, got {q.size}")
    w, x, y, z = q_normalize(q)
    return np.array(
        [
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
            [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
            [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
        ],
        dtype=np.float64,
    )
