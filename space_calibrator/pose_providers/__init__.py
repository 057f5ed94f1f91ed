"""Tracking pose provider implementations."""

from .replay import ReplayPoseProvider
from .udp_bridge import UdpBridgePoseProvider

__all__ = [
    "ReplayPoseProvider",
    "UdpBridgePoseProvider",
]
