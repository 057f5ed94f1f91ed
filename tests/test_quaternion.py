import numpy as np

from space_calibrator.math3d.quaternion import euler_zyx_to_q, q_normalize, q_to_rotmat
from space_calibrator.math3d.rotation import euler_zyx_to_rotmat


def test_q_normalize_zero_returns_identity():
    q = q_normalize(np.zeros(4, dtype=np.float64))
    np.testing.assert_allclose(q, np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64))


def test_euler_zyx_zero_is_identity_quaternion():
    q = euler_zyx_to_q(np.zeros(3, dtype=np.float64))
    np.testing.assert_allclose(q, np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64), atol=1e-12)


def test_euler_zyx_quaternion_matches_rotation_matrix():
    euler = np.array([25.0, -40.0, 70.0], dtype=np.float64)
    np.testing.assert_allclose(
        q_to_rotmat(euler_zyx_to_q(euler)), euler_zyx_to_rotmat(euler), atol=1e-12
    )


def test_yaw_90_about_y_rotates_forward_to_left():
    # Tracking space: x right, y up, -z forward.
    R = q_to_rotmat(euler_zyx_to_q(np.array([0.0, 90.0, 0.0])))
    v = R @ np.array([0.0, 0.0, -1.0], dtype=np.float64)
    np.testing.assert_allclose(v, np.array([-1.0, 0.0, 0.0], dtype=np.float64), atol=1e-9)
