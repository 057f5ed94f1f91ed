"""Calibration context: the single owner of calibration progress."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .pose import DevicePose

logger = logging.getLogger(__name__)


class CalibrationState(enum.Enum):
    IDLE = "idle"
    EDITING = "editing"
    BEGIN = "begin"
    ROTATION = "rotation"
    TRANSLATION = "translation"


@dataclass
class CalibrationContext:
    """Mutable calibration state owned by the host process.

    calibrated_rotation:
      Euler [z, y, x] degrees, target -> reference.
    calibrated_translation:
      [x, y, z] centimeters in the reference frame.
    """

    reference_id: Optional[int] = None
    target_id: Optional[int] = None
    reference_tracking_system: str = ""
    target_tracking_system: str = ""
    state: CalibrationState = CalibrationState.IDLE
    calibrated_rotation: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float64))
    calibrated_translation: np.ndarray = field(
        default_factory=lambda: np.zeros(3, dtype=np.float64)
    )
    valid_profile: bool = False
    time_last_tick: float = float("-inf")
    time_last_scan: float = float("-inf")
    wanted_update_interval: float = 1.0
    device_poses: dict[int, DevicePose] = field(default_factory=dict)
    messages: str = ""

    def message(self, text: str) -> None:
        self.messages += text
        stripped = text.strip()
        if stripped and stripped != ".":
            logger.info("[CAL] %s", stripped)

    def clear_messages(self) -> None:
        self.messages = ""
