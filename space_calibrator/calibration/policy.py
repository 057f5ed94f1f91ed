"""Calibration policy constants."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CalibrationPolicy:
    sample_count: int = 100
    min_delta_angle_rad: float = 0.4
    min_axis_norm: float = 0.01
    min_delta_samples: int = 3
    tick_interval_s: float = 0.05
    idle_rescan_s: float = 2.5
    idle_update_interval_s: float = 1.0

    @classmethod
    def from_config(cls, cfg) -> "CalibrationPolicy":
        return cls(
            sample_count=cfg.sample_count,
            min_delta_angle_rad=cfg.min_delta_angle_rad,
            min_axis_norm=cfg.min_axis_norm,
            min_delta_samples=cfg.min_delta_samples,
            tick_interval_s=cfg.tick_interval_ms / 1000.0,
            idle_rescan_s=cfg.idle_rescan_s,
            idle_update_interval_s=cfg.idle_update_interval_s,
        )
