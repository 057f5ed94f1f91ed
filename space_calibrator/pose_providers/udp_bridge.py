"""Tracking pose provider fed by an external bridge over UDP.

The bridge process owns the tracking runtime and streams JSON snapshots of
every device (see ``pose_providers.snapshot``) to localhost.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Iterable, Optional

from ..control.pose import DevicePose
from ..control.pose_provider import DeviceInfo, TrackingPoseProvider
from .snapshot import TrackingSnapshot, parse_snapshot_packet

logger = logging.getLogger(__name__)


class _UdpSnapshotReceiver:
    def __init__(self, host: str, port: int):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind((host, int(port)))
        self.sock.setblocking(False)

    def recv_latest(self) -> Optional[TrackingSnapshot]:
        latest = None
        while True:
            try:
                data, _ = self.sock.recvfrom(65535)
            except BlockingIOError:
                break
            except OSError:
                break
            parsed = parse_snapshot_packet(data)
            if parsed is not None:
                latest = parsed
        return latest

    def close(self) -> None:
        self.sock.close()


class UdpBridgePoseProvider(TrackingPoseProvider):
    """Latest-snapshot-wins provider.

    A snapshot older than ``stale_s`` is reported with every device untracked,
    so a dead bridge aborts a running calibration instead of freezing it.
    """

    def __init__(
        self,
        bridge_host: str = "127.0.0.1",
        bridge_port: int = 24568,
        stale_s: float = 0.5,
    ):
        self.bridge_host = str(bridge_host)
        self.bridge_port = int(bridge_port)
        self.stale_s = float(stale_s)
        self._receiver = _UdpSnapshotReceiver(self.bridge_host, self.bridge_port)
        self._snapshot = TrackingSnapshot()
        self._last_recv_t = 0.0
        self._last_warn_t = 0.0
        self._recv_count = 0
        self._closed = False

        logger.info(
            "[POSE] provider=udp-bridge (host=%s, port=%s, stale=%.2fs)",
            self.bridge_host,
            self.bridge_port,
            self.stale_s,
        )

    def _poll_once(self) -> None:
        snapshot = self._receiver.recv_latest()
        now = time.monotonic()
        if snapshot is None:
            # Only warn if we have not received any packet recently.
            if (now - self._last_recv_t) > 2.0 and (now - self._last_warn_t) > 2.0:
                logger.info(
                    "[POSE] waiting for bridge snapshots on %s:%s",
                    self.bridge_host,
                    self.bridge_port,
                )
                self._last_warn_t = now
            return

        self._snapshot = snapshot
        self._last_recv_t = now
        self._recv_count += 1
        if self._recv_count == 1:
            logger.info(
                "[POSE] first bridge snapshot received on %s:%s (%d devices)",
                self.bridge_host,
                self.bridge_port,
                len(snapshot.poses),
            )

    def get_device_poses(self) -> dict[int, DevicePose]:
        self._poll_once()
        if (time.monotonic() - self._last_recv_t) > self.stale_s:
            return {
                device_id: DevicePose(pose=entry.pose, tracked=False)
                for device_id, entry in self._snapshot.poses.items()
            }
        return dict(self._snapshot.poses)

    def get_device_info(self, device_id: int) -> DeviceInfo | None:
        return self._snapshot.infos.get(device_id)

    def device_ids(self) -> Iterable[int]:
        return sorted(self._snapshot.infos)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._receiver.close()
        except OSError:
            pass
