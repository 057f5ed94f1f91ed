"""Device offset actuators.

An actuator pushes world-from-driver offsets to devices of the target
tracking system. Calls are fire-and-forget: nothing is acknowledged and
transport failures are only logged.
"""

from __future__ import annotations

import json
import logging
import socket

import numpy as np

logger = logging.getLogger(__name__)

IDENTITY_Q = np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)


class OffsetActuator:
    """Base interface for offset actuators."""

    name: str = "base"

    def set_rotation_offset(self, device_id: int, quaternion: np.ndarray) -> None:
        """Quaternion [w, x, y, z]."""
        raise NotImplementedError

    def set_translation_offset(self, device_id: int, translation_m: np.ndarray) -> None:
        raise NotImplementedError

    def enable_offsets(self, device_id: int, enabled: bool) -> None:
        raise NotImplementedError

    def reset_offsets(self, device_id: int) -> None:
        self.set_rotation_offset(device_id, IDENTITY_Q.copy())
        self.set_translation_offset(device_id, np.zeros(3, dtype=np.float64))
        self.enable_offsets(device_id, False)

    def close(self) -> None:
        pass


class LoggingOffsetActuator(OffsetActuator):
    """Dry run: logs every call instead of touching devices."""

    name = "log"

    def set_rotation_offset(self, device_id: int, quaternion: np.ndarray) -> None:
        q = np.asarray(quaternion, dtype=np.float64).reshape(4)
        logger.info(
            "[OFFSET] device=%d rotation wxyz=[%.5f, %.5f, %.5f, %.5f]",
            device_id,
            q[0],
            q[1],
            q[2],
            q[3],
        )

    def set_translation_offset(self, device_id: int, translation_m: np.ndarray) -> None:
        t = np.asarray(translation_m, dtype=np.float64).reshape(3)
        logger.info(
            "[OFFSET] device=%d translation m=[%.4f, %.4f, %.4f]",
            device_id,
            t[0],
            t[1],
            t[2],
        )

    def enable_offsets(self, device_id: int, enabled: bool) -> None:
        logger.info("[OFFSET] device=%d enabled=%s", device_id, bool(enabled))


def encode_command(op: str, device_id: int, **fields) -> bytes:
    payload = {"op": op, "device_id": int(device_id)}
    for key, value in fields.items():
        if isinstance(value, np.ndarray):
            value = [float(v) for v in value.reshape(-1)]
        payload[key] = value
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class UdpOffsetActuator(OffsetActuator):
    """Sends JSON offset commands to a driver bridge over UDP.

    Packet schema:
    {"op": "set_rotation_offset", "device_id": 3, "quaternion_wxyz": [w, x, y, z]}
    {"op": "set_translation_offset", "device_id": 3, "translation_m": [x, y, z]}
    {"op": "enable_offsets", "device_id": 3, "enabled": true}
    """

    name = "udp"

    def __init__(self, host: str, port: int):
        self.host = str(host)
        self.port = int(port)
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.setblocking(False)
        logger.info("[OFFSET] actuator=udp (host=%s, port=%s)", self.host, self.port)

    def _send(self, data: bytes) -> None:
        try:
            self.sock.sendto(data, (self.host, self.port))
        except OSError as exc:
            logger.warning("[OFFSET] send to %s:%s failed: %s", self.host, self.port, exc)

    def set_rotation_offset(self, device_id: int, quaternion: np.ndarray) -> None:
        q = np.asarray(quaternion, dtype=np.float64).reshape(4)
        self._send(encode_command("set_rotation_offset", device_id, quaternion_wxyz=q))

    def set_translation_offset(self, device_id: int, translation_m: np.ndarray) -> None:
        t = np.asarray(translation_m, dtype=np.float64).reshape(3)
        self._send(encode_command("set_translation_offset", device_id, translation_m=t))

    def enable_offsets(self, device_id: int, enabled: bool) -> None:
        self._send(encode_command("enable_offsets", device_id, enabled=bool(enabled)))

    def close(self) -> None:
        try:
            self.sock.close()
        except OSError:
            pass
