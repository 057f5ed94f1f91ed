"""Paired pose samples and delta-rotation samples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..control.pose import Pose
from ..math3d.rotation import angle_from_rotmat, axis_from_rotmat


@dataclass(frozen=True, slots=True)
class Sample:
    """Reference and target poses captured on the same tick."""

    ref: Optional[Pose] = None
    target: Optional[Pose] = None
    valid: bool = False

    @classmethod
    def of(cls, ref: Pose, target: Pose) -> "Sample":
        return cls(ref=ref, target=target, valid=True)

    @classmethod
    def invalid(cls) -> "Sample":
        return cls()


@dataclass(frozen=True, slots=True)
class DeltaSample:
    """Rotation axes both devices turned about between two samples.

    Rigidly coupled devices share the axis of rotation between any two
    instants, each expressed in its own tracking frame.
    """

    ref_axis: np.ndarray
    target_axis: np.ndarray
    ref_angle: float
    target_angle: float
    valid: bool


def _unit(v: np.ndarray) -> np.ndarray:
    n = float(np.linalg.norm(v))
    if n < 1e-12:
        return v
    return v / n


def delta_rotation_sample(
    s1: Sample,
    s2: Sample,
    min_angle_rad: float = 0.4,
    min_axis_norm: float = 0.01,
) -> DeltaSample:
    if not (s1.valid and s2.valid):
        raise ValueError("delta rotation needs two valid samples")

    d_ref = s1.ref.rotation @ s2.ref.rotation.T
    d_target = s1.target.rotation @ s2.target.rotation.T

    ref_axis = axis_from_rotmat(d_ref)
    target_axis = axis_from_rotmat(d_target)
    ref_angle = angle_from_rotmat(d_ref)
    target_angle = angle_from_rotmat(d_target)

    # Pairs too close together give a noisy axis.
    valid = (
        ref_angle > min_angle_rad
        and target_angle > min_angle_rad
        and float(np.linalg.norm(ref_axis)) > min_axis_norm
        and float(np.linalg.norm(target_axis)) > min_axis_norm
    )
    return DeltaSample(
        ref_axis=_unit(ref_axis),
        target_axis=_unit(target_axis),
        ref_angle=ref_angle,
        target_angle=target_angle,
        valid=valid,
    )
