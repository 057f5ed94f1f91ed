"""Pose data structures for tracked devices."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def _frozen(a: np.ndarray, shape: tuple[int, ...]) -> np.ndarray:
    out = np.array(a, dtype=np.float64).reshape(shape)
    out.flags.writeable = False
    return out


@dataclass(frozen=True, slots=True)
class Pose:
    """Device pose in its own tracking system's world frame.

    rotation:
      3x3 orthonormal matrix, device -> world.
    position:
      3D translation [x, y, z], meters.
    """

    rotation: np.ndarray
    position: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "rotation", _frozen(self.rotation, (3, 3)))
        object.__setattr__(self, "position", _frozen(self.position, (3,)))

    @classmethod
    def from_matrix34(cls, m: np.ndarray) -> "Pose":
        """Build from a row-major 3x4 device-to-absolute-tracking transform."""
        m = np.asarray(m, dtype=np.float64)
        if m.shape != (3, 4):
            raise ValueError(f"Expected 3x4 transform, got {m.shape}")
        return cls(rotation=m[:, :3], position=m[:, 3])

    @classmethod
    def from_position(cls, x: float, y: float, z: float) -> "Pose":
        return cls(rotation=np.eye(3), position=np.array([x, y, z], dtype=np.float64))

    def to_matrix34(self) -> np.ndarray:
        return np.hstack([self.rotation, self.position.reshape(3, 1)])


@dataclass(frozen=True, slots=True)
class DevicePose:
    """One device's entry in a tracking snapshot."""

    pose: Pose
    tracked: bool = True
