"""Rotation calibration (Kabsch over delta-rotation axes).

Between any two samples the reference and target devices turn about the same
physical axis. Each delta sample therefore gives one axis seen from both
tracking frames, and the fixed rotation between the frames is the best rigid
rotation mapping the target axes onto the reference axes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..math3d.rotation import rotmat_to_euler_zyx
from .policy import CalibrationPolicy
from .sample import DeltaSample, Sample, delta_rotation_sample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationCalibration:
    """Rotation result.

    euler_deg:
      [z, y, x] degrees of the target -> reference rotation
      (roll, yaw, pitch with y up).
    """

    rotation: np.ndarray
    euler_deg: np.ndarray
    sample_count: int
    delta_count: int
    singular_values: np.ndarray
    degenerate: bool
    message: str

    @property
    def yaw(self) -> float:
        return float(self.euler_deg[1])

    @property
    def pitch(self) -> float:
        return float(self.euler_deg[2])

    @property
    def roll(self) -> float:
        return float(self.euler_deg[0])


def collect_delta_samples(
    samples: Sequence[Sample], policy: CalibrationPolicy
) -> list[DeltaSample]:
    deltas = []
    for i in range(len(samples)):
        for j in range(i):
            delta = delta_rotation_sample(
                samples[i],
                samples[j],
                min_angle_rad=policy.min_delta_angle_rad,
                min_axis_norm=policy.min_axis_norm,
            )
            if delta.valid:
                deltas.append(delta)
    return deltas


def kabsch_rotation(ref_points: np.ndarray, target_points: np.ndarray):
    """Rotation R minimizing sum |ref - R @ target|^2 over centered point sets.

    Returns (R, singular_values).
    """
    ref_c = ref_points - ref_points.mean(axis=0)
    target_c = target_points - target_points.mean(axis=0)
    cross_cv = ref_c.T @ target_c

    u, s, vt = np.linalg.svd(cross_cv)
    fix = np.eye(3)
    if np.linalg.det(u @ vt) < 0.0:
        # Flip the weakest axis so the result is a rotation, not a reflection.
        fix[2, 2] = -1.0
    rot = (vt.T @ fix @ u.T).T
    return rot, s


def calibrate_rotation(
    samples: Sequence[Sample], policy: CalibrationPolicy | None = None
) -> RotationCalibration:
    policy = policy or CalibrationPolicy()
    if not all(s.valid for s in samples):
        raise ValueError("rotation calibration batch contains invalid samples")

    deltas = collect_delta_samples(samples, policy)
    lines = [f"Got {len(samples)} samples with {len(deltas)} delta samples"]

    if deltas:
        ref_points = np.array([d.ref_axis for d in deltas], dtype=np.float64)
        target_points = np.array([d.target_axis for d in deltas], dtype=np.float64)
        rot, singular_values = kabsch_rotation(ref_points, target_points)
    else:
        rot = np.eye(3)
        singular_values = np.zeros(3, dtype=np.float64)

    rank_deficient = float(singular_values[1]) <= 1e-9 * max(float(singular_values[0]), 1e-12)
    degenerate = len(deltas) < policy.min_delta_samples or rank_deficient
    if degenerate:
        logger.warning(
            "[CAL] rotation solve is poorly conditioned: deltas=%d singular_values=%s",
            len(deltas),
            np.array2string(singular_values, precision=4),
        )
        lines.append(
            f"Warning: only {len(deltas)} usable delta samples, rotate the devices more"
        )

    euler = rotmat_to_euler_zyx(rot)
    lines.append(
        f"Calibrated rotation: yaw={euler[1]:.2f} pitch={euler[2]:.2f} roll={euler[0]:.2f}"
    )
    return RotationCalibration(
        rotation=rot,
        euler_deg=euler,
        sample_count=len(samples),
        delta_count=len(deltas),
        singular_values=singular_values,
        degenerate=degenerate,
        message="\n".join(lines) + "\n",
    )
