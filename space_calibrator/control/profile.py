"""Calibration profile persistence (YAML)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import numpy as np
import yaml

from .context import CalibrationContext

logger = logging.getLogger(__name__)

_FLOAT_KEYS = ("roll", "yaw", "pitch", "x", "y", "z")


@dataclass(frozen=True)
class CalibrationProfile:
    """Stored offsets for one reference/target tracking-system pair.

    rotation_deg is [z, y, x] (roll, yaw, pitch); translation_cm is [x, y, z].
    """

    reference_tracking_system: str
    target_tracking_system: str
    rotation_deg: np.ndarray
    translation_cm: np.ndarray
    valid: bool = True

    @classmethod
    def from_context(cls, ctx: CalibrationContext) -> "CalibrationProfile":
        return cls(
            reference_tracking_system=ctx.reference_tracking_system,
            target_tracking_system=ctx.target_tracking_system,
            rotation_deg=np.array(ctx.calibrated_rotation, dtype=np.float64),
            translation_cm=np.array(ctx.calibrated_translation, dtype=np.float64),
        )

    def to_mapping(self) -> dict[str, Any]:
        roll, yaw, pitch = (float(v) for v in self.rotation_deg)
        x, y, z = (float(v) for v in self.translation_cm)
        return {
            "reference_tracking_system": self.reference_tracking_system,
            "target_tracking_system": self.target_tracking_system,
            "roll": roll,
            "yaw": yaw,
            "pitch": pitch,
            "x": x,
            "y": y,
            "z": z,
        }

    @classmethod
    def from_mapping(cls, data: dict[str, Any], source: str = "<profile>") -> "CalibrationProfile":
        try:
            values = {key: float(data.get(key, 0.0)) for key in _FLOAT_KEYS}
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid numeric value in profile {source}: {exc}") from exc
        target = str(data.get("target_tracking_system") or "")
        return cls(
            reference_tracking_system=str(data.get("reference_tracking_system") or ""),
            target_tracking_system=target,
            rotation_deg=np.array(
                [values["roll"], values["yaw"], values["pitch"]], dtype=np.float64
            ),
            translation_cm=np.array([values["x"], values["y"], values["z"]], dtype=np.float64),
            # Offsets can only be re-applied when we know which devices get them.
            valid=bool(target),
        )

    def apply_to_context(self, ctx: CalibrationContext) -> None:
        ctx.reference_tracking_system = self.reference_tracking_system
        ctx.target_tracking_system = self.target_tracking_system
        ctx.calibrated_rotation = np.array(self.rotation_deg, dtype=np.float64)
        ctx.calibrated_translation = np.array(self.translation_cm, dtype=np.float64)
        ctx.valid_profile = self.valid


class ProfileStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[CalibrationProfile]:
        if not self.path.exists():
            logger.info("[PROFILE] no profile at %s", self.path)
            return None
        try:
            loaded = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ValueError(f"failed to read profile {self.path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ValueError(f"failed to parse profile {self.path}: {exc}") from exc

        if loaded is None:
            return None
        if not isinstance(loaded, dict):
            raise ValueError(
                f"profile root must be a mapping/object, got {type(loaded).__name__}"
            )
        profile = CalibrationProfile.from_mapping(loaded, source=str(self.path))
        logger.info(
            "[PROFILE] loaded %s (%s -> %s)",
            self.path,
            profile.target_tracking_system,
            profile.reference_tracking_system,
        )
        return profile

    def save(self, profile: CalibrationProfile) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(profile.to_mapping(), sort_keys=False)
        self.path.write_text(text, encoding="utf-8")
        logger.info("[PROFILE] saved %s", self.path)

    def load_into(self, ctx: CalibrationContext) -> bool:
        profile = self.load()
        if profile is None:
            ctx.valid_profile = False
            return False
        profile.apply_to_context(ctx)
        return ctx.valid_profile
