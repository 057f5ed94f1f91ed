import math

import numpy as np

from space_calibrator.math3d.quaternion import axis_angle_to_q, q_to_rotmat
from space_calibrator.math3d.rotation import (
    angle_from_rotmat,
    axis_from_rotmat,
    euler_zyx_to_rotmat,
    rotmat_to_euler_zyx,
    translation_cm_to_m,
)


def test_axis_and_angle_from_rotation_matrix():
    axis = np.array([1.0, 2.0, -2.0], dtype=np.float64) / 3.0
    R = q_to_rotmat(axis_angle_to_q(axis, 0.8))
    raw = axis_from_rotmat(R)
    assert abs(angle_from_rotmat(R) - 0.8) < 1e-12
    assert abs(np.linalg.norm(raw) - 2.0 * math.sin(0.8)) < 1e-12
    np.testing.assert_allclose(raw / np.linalg.norm(raw), axis, atol=1e-12)


def test_angle_from_rotmat_clips_rounding_noise():
    R = np.eye(3) * (1.0 + 1e-12)
    assert angle_from_rotmat(R) == 0.0


def test_euler_zyx_roundtrip_regular_angles():
    euler = np.array([-30.0, 45.0, 120.0], dtype=np.float64)
    np.testing.assert_allclose(rotmat_to_euler_zyx(euler_zyx_to_rotmat(euler)), euler, atol=1e-9)


def test_euler_zyx_gimbal_lock_keeps_rotation():
    euler = np.array([30.0, 90.0, 0.0], dtype=np.float64)
    R = euler_zyx_to_rotmat(euler)
    back = rotmat_to_euler_zyx(R)
    assert abs(back[1] - 90.0) < 1e-6
    np.testing.assert_allclose(euler_zyx_to_rotmat(back), R, atol=1e-6)


def test_translation_cm_to_m():
    np.testing.assert_allclose(
        translation_cm_to_m(np.array([5.0, -12.0, 100.0])), np.array([0.05, -0.12, 1.0])
    )
