"""Tracking pose provider interface."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable

from .pose import DevicePose


class DeviceClass(str, enum.Enum):
    HMD = "hmd"
    CONTROLLER = "controller"
    TRACKER = "tracker"
    TRACKING_REFERENCE = "tracking-reference"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "DeviceClass":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True, slots=True)
class DeviceInfo:
    device_class: DeviceClass
    tracking_system: str


class TrackingPoseProvider:
    """Base interface for tracking pose sources.

    Implementations report every connected device keyed by device id, each
    with a tracked flag. Poses are in the device's own tracking system frame,
    after any offsets the actuator has applied.
    """

    def get_device_poses(self) -> dict[int, DevicePose]:
        """Return the current pose snapshot. Called once per processed tick."""
        raise NotImplementedError

    def get_device_info(self, device_id: int) -> DeviceInfo | None:
        raise NotImplementedError

    def device_ids(self) -> Iterable[int]:
        """Ids of currently connected devices."""
        raise NotImplementedError

    def close(self) -> None:
        pass
