"""Replay a recorded JSON-lines tracking session, one snapshot per poll."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from ..control.pose import DevicePose
from ..control.pose_provider import DeviceInfo, TrackingPoseProvider
from .snapshot import TrackingSnapshot, parse_snapshot_payload

logger = logging.getLogger(__name__)


def load_snapshots(path: str | Path) -> list[TrackingSnapshot]:
    p = Path(path)
    snapshots = []
    with p.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{p}:{lineno}: invalid JSON: {exc}") from exc
            snapshot = parse_snapshot_payload(payload)
            if snapshot is None:
                raise ValueError(f"{p}:{lineno}: not a tracking snapshot")
            snapshots.append(snapshot)
    return snapshots


class ReplayPoseProvider(TrackingPoseProvider):
    """Steps through recorded snapshots; after the last one every device is untracked."""

    def __init__(self, snapshots: list[TrackingSnapshot]):
        self._snapshots = snapshots
        self._index = 0
        self._current = TrackingSnapshot()

    @classmethod
    def from_file(cls, path: str | Path) -> "ReplayPoseProvider":
        snapshots = load_snapshots(path)
        logger.info("[POSE] provider=replay (%s, %d snapshots)", path, len(snapshots))
        return cls(snapshots)

    @property
    def exhausted(self) -> bool:
        return self._index >= len(self._snapshots)

    def get_device_poses(self) -> dict[int, DevicePose]:
        if self.exhausted:
            return {
                device_id: DevicePose(pose=entry.pose, tracked=False)
                for device_id, entry in self._current.poses.items()
            }
        self._current = self._snapshots[self._index]
        self._index += 1
        return dict(self._current.poses)

    def get_device_info(self, device_id: int) -> DeviceInfo | None:
        return self._current.infos.get(device_id)

    def device_ids(self) -> Iterable[int]:
        return sorted(self._current.infos)
