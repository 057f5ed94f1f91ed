"""JSON tracking snapshot parsing shared by bridge and replay providers.

Expected packet schema:
{
  "devices": [
    {
      "id": 0,
      "tracked": true,
      "class": "hmd",
      "tracking_system": "lighthouse",
      "matrix34": [[r00, r01, r02, x], [r10, r11, r12, y], [r20, r21, r22, z]]
    },
    {
      "id": 3,
      "class": "controller",
      "tracking_system": "oculus",
      "position_m": [x, y, z],
      "quaternion_wxyz": [w, x, y, z]
    }
  ]
}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from ..control.pose import DevicePose, Pose
from ..control.pose_provider import DeviceClass, DeviceInfo
from ..math3d.quaternion import q_to_rotmat


@dataclass
class TrackingSnapshot:
    poses: dict[int, DevicePose] = field(default_factory=dict)
    infos: dict[int, DeviceInfo] = field(default_factory=dict)


def _parse_pose(payload: dict) -> Optional[Pose]:
    matrix = payload.get("matrix34")
    if matrix is not None:
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape != (3, 4) or not np.isfinite(m).all():
            return None
        return Pose.from_matrix34(m)

    position = payload.get("position_m", payload.get("position"))
    quaternion = payload.get("quaternion_wxyz", payload.get("quaternion"))
    if position is None or quaternion is None:
        return None
    p = np.asarray(position, dtype=np.float64).reshape(-1)
    q = np.asarray(quaternion, dtype=np.float64).reshape(-1)
    if p.size != 3 or q.size != 4:
        return None
    if not np.isfinite(p).all() or not np.isfinite(q).all():
        return None
    return Pose(rotation=q_to_rotmat(q), position=p)


def _parse_device_payload(payload: dict) -> Optional[tuple[int, DevicePose, DeviceInfo]]:
    if not isinstance(payload, dict):
        return None
    try:
        device_id = int(payload["id"])
    except (KeyError, TypeError, ValueError):
        return None
    try:
        pose = _parse_pose(payload)
    except (TypeError, ValueError):
        return None

    info = DeviceInfo(
        device_class=DeviceClass.parse(payload.get("class", "other")),
        tracking_system=str(payload.get("tracking_system", "")),
    )
    if pose is None:
        # Connected but without a usable pose: keep it listed as untracked.
        return device_id, DevicePose(pose=Pose.from_position(0.0, 0.0, 0.0), tracked=False), info
    return device_id, DevicePose(pose=pose, tracked=bool(payload.get("tracked", True))), info


def parse_snapshot_payload(payload: dict) -> Optional[TrackingSnapshot]:
    if not isinstance(payload, dict):
        return None
    devices = payload.get("devices")
    if not isinstance(devices, list):
        return None
    snapshot = TrackingSnapshot()
    for entry in devices:
        parsed = _parse_device_payload(entry)
        if parsed is None:
            continue
        device_id, device_pose, info = parsed
        snapshot.poses[device_id] = device_pose
        snapshot.infos[device_id] = info
    return snapshot


def parse_snapshot_packet(data: bytes) -> Optional[TrackingSnapshot]:
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return parse_snapshot_payload(payload)
