"""CLI config and defaults."""

from __future__ import annotations

import argparse
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass(frozen=True)
class AppConfig:
    profile: str = "space_calibration.yaml"
    log_level: str = "info"
    pose_provider: str = "udp-bridge"
    bridge_host: str = "127.0.0.1"
    bridge_port: int = 24568
    bridge_stale_ms: float = 500.0
    replay: str = ""
    offset_actuator: str = "log"
    actuator_host: str = "127.0.0.1"
    actuator_port: int = 24569
    reference_id: Optional[int] = None
    target_id: Optional[int] = None
    calibrate: bool = False
    edit: bool = False
    once: bool = False
    sample_count: int = 100
    min_delta_samples: int = 3
    min_delta_angle_rad: float = 0.4
    min_axis_norm: float = 0.01
    tick_interval_ms: float = 50.0
    idle_rescan_s: float = 2.5
    idle_update_interval_s: float = 1.0


_APP_CONFIG_FIELDS = {f.name for f in fields(AppConfig)}
_BOOL_FIELDS = {"calibrate", "edit", "once"}
_INT_FIELDS = {
    "bridge_port",
    "actuator_port",
    "sample_count",
    "min_delta_samples",
}
_OPTIONAL_INT_FIELDS = {"reference_id", "target_id"}
_FLOAT_FIELDS = {
    "bridge_stale_ms",
    "min_delta_angle_rad",
    "min_axis_norm",
    "tick_interval_ms",
    "idle_rescan_s",
    "idle_update_interval_s",
}
_STRING_FIELDS = {
    "profile",
    "log_level",
    "pose_provider",
    "bridge_host",
    "replay",
    "offset_actuator",
    "actuator_host",
}
_KEY_ALIASES = {
    "reference": "reference_id",
    "target": "target_id",
}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"1", "true", "yes", "on"}:
            return True
        if s in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"config key '{key}' expects a bool, got {value!r}")


def _coerce_config_value(key: str, value: Any) -> Any:
    try:
        if key in _BOOL_FIELDS:
            return _parse_bool(value, key)
        if key in _INT_FIELDS:
            return int(value)
        if key in _OPTIONAL_INT_FIELDS:
            return None if value is None else int(value)
        if key in _FLOAT_FIELDS:
            return float(value)
        if key in _STRING_FIELDS:
            return "" if value is None else str(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid value for config key '{key}': {value!r}") from exc
    raise ValueError(f"unsupported config key '{key}'")


def _normalize_config_key(raw_key: Any) -> str:
    if not isinstance(raw_key, str):
        raise ValueError(f"config key must be string, got {type(raw_key).__name__}")
    key = raw_key.strip().replace("-", "_")
    if not key:
        raise ValueError("config key cannot be empty")
    return _KEY_ALIASES.get(key, key)


def _load_yaml_config(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ValueError(f"--config file not found: {p}")
    if not p.is_file():
        raise ValueError(f"--config must point to a file: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"failed to read --config file {p}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse YAML config {p}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"--config root must be a mapping/object, got {type(loaded).__name__}")

    normalized: dict[str, Any] = {}
    for raw_key, raw_value in loaded.items():
        key = _normalize_config_key(raw_key)
        if key not in _APP_CONFIG_FIELDS:
            raise ValueError(f"unknown config key in {p}: {raw_key!r}")
        normalized[key] = _coerce_config_value(key, raw_value)
    return normalized


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="space-calibrator",
        description="Align a target tracking system to a reference tracking system.",
    )
    ap.add_argument(
        "--config",
        type=str,
        default="",
        help="YAML config file path. CLI args override YAML values.",
    )
    ap.add_argument(
        "--profile",
        type=str,
        default="space_calibration.yaml",
        help="Calibration profile file (loaded at startup, written after calibration).",
    )
    ap.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Global log level.",
    )

    ap.add_argument(
        "--pose-provider",
        choices=["udp-bridge", "replay"],
        default="udp-bridge",
        help="Tracking snapshot source: live UDP bridge or a recorded JSON-lines file.",
    )
    ap.add_argument(
        "--bridge-host",
        type=str,
        default="127.0.0.1",
        help="Host to bind for bridge snapshot packets.",
    )
    ap.add_argument(
        "--bridge-port",
        type=int,
        default=24568,
        help="Port to bind for bridge snapshot packets.",
    )
    ap.add_argument(
        "--bridge-stale-ms",
        type=float,
        default=500.0,
        help="Treat all devices as untracked when no snapshot arrived for this long.",
    )
    ap.add_argument(
        "--replay",
        type=str,
        default="",
        help="JSON-lines recording for --pose-provider replay.",
    )

    ap.add_argument(
        "--offset-actuator",
        choices=["log", "udp"],
        default="log",
        help="Where offsets go: log only (dry run) or UDP driver bridge.",
    )
    ap.add_argument("--actuator-host", type=str, default="127.0.0.1", help="Driver bridge host.")
    ap.add_argument("--actuator-port", type=int, default=24569, help="Driver bridge port.")

    ap.add_argument(
        "--reference-id",
        type=int,
        default=None,
        help="Device id whose tracking space is ground truth.",
    )
    ap.add_argument(
        "--target-id",
        type=int,
        default=None,
        help="Device id (rigidly attached to the reference) to be corrected.",
    )
    ap.add_argument("--calibrate", action="store_true", help="Start a calibration run at startup.")
    ap.add_argument(
        "--edit",
        action="store_true",
        help="Re-apply the loaded profile on every tick (live preview).",
    )
    ap.add_argument(
        "--once",
        action="store_true",
        help="Exit when the calibration run finishes or aborts.",
    )

    ap.add_argument(
        "--sample-count",
        type=int,
        default=100,
        help="Samples per calibration phase.",
    )
    ap.add_argument(
        "--min-delta-samples",
        type=int,
        default=3,
        help="Fewer usable delta rotations than this flags the rotation solve as degenerate.",
    )
    ap.add_argument(
        "--min-delta-angle-rad",
        type=float,
        default=0.4,
        help="Minimum rotation between two samples for their delta to count.",
    )
    ap.add_argument(
        "--min-axis-norm",
        type=float,
        default=0.01,
        help="Minimum raw delta axis length for a delta to count.",
    )
    ap.add_argument(
        "--tick-interval-ms",
        type=float,
        default=50.0,
        help="Ticks closer together than this are ignored.",
    )
    ap.add_argument(
        "--idle-rescan-s",
        type=float,
        default=2.5,
        help="Seconds between profile re-application scans while idle.",
    )
    ap.add_argument(
        "--idle-update-interval-s",
        type=float,
        default=1.0,
        help="Preferred tick interval while idle.",
    )
    return ap


def validate_config(cfg: AppConfig) -> None:
    if not str(cfg.profile).strip():
        raise ValueError("--profile must be non-empty")
    if cfg.pose_provider not in {"udp-bridge", "replay"}:
        raise ValueError(
            f"--pose-provider must be one of udp-bridge|replay, got {cfg.pose_provider}"
        )
    if cfg.pose_provider == "replay" and not cfg.replay.strip():
        raise ValueError("--replay must be provided with --pose-provider replay")
    if not cfg.bridge_host.strip():
        raise ValueError("--bridge-host must be non-empty")
    if not (1 <= cfg.bridge_port <= 65535):
        raise ValueError(f"--bridge-port must be in [1,65535], got {cfg.bridge_port}")
    if cfg.bridge_stale_ms <= 0.0:
        raise ValueError(f"--bridge-stale-ms must be > 0, got {cfg.bridge_stale_ms}")
    if cfg.offset_actuator not in {"log", "udp"}:
        raise ValueError(f"--offset-actuator must be log|udp, got {cfg.offset_actuator}")
    if not cfg.actuator_host.strip():
        raise ValueError("--actuator-host must be non-empty")
    if not (1 <= cfg.actuator_port <= 65535):
        raise ValueError(f"--actuator-port must be in [1,65535], got {cfg.actuator_port}")
    for name, value in (("--reference-id", cfg.reference_id), ("--target-id", cfg.target_id)):
        if value is not None and value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")
    if (
        cfg.reference_id is not None
        and cfg.target_id is not None
        and cfg.reference_id == cfg.target_id
    ):
        raise ValueError("--reference-id and --target-id must differ")
    if cfg.calibrate and cfg.edit:
        raise ValueError("--calibrate and --edit are mutually exclusive")
    if cfg.sample_count < 2:
        raise ValueError(f"--sample-count must be >= 2, got {cfg.sample_count}")
    if cfg.min_delta_samples < 0:
        raise ValueError(f"--min-delta-samples must be >= 0, got {cfg.min_delta_samples}")
    if not (0.0 <= cfg.min_delta_angle_rad < math.pi):
        raise ValueError(
            f"--min-delta-angle-rad must be in [0,pi), got {cfg.min_delta_angle_rad}"
        )
    if not (0.0 <= cfg.min_axis_norm < 2.0):
        raise ValueError(f"--min-axis-norm must be in [0,2), got {cfg.min_axis_norm}")
    if cfg.tick_interval_ms < 0.0:
        raise ValueError(f"--tick-interval-ms must be >= 0, got {cfg.tick_interval_ms}")
    if cfg.idle_rescan_s < 0.0:
        raise ValueError(f"--idle-rescan-s must be >= 0, got {cfg.idle_rescan_s}")
    if cfg.idle_update_interval_s < 0.0:
        raise ValueError(
            f"--idle-update-interval-s must be >= 0, got {cfg.idle_update_interval_s}"
        )


def parse_args(argv=None) -> AppConfig:
    bootstrap = argparse.ArgumentParser(add_help=False)
    bootstrap.add_argument("--config", type=str, default="")
    bootstrap_ns, _ = bootstrap.parse_known_args(argv)

    yaml_cfg: dict[str, Any] = {}
    yaml_error: Optional[str] = None
    if bootstrap_ns.config:
        try:
            yaml_cfg = _load_yaml_config(bootstrap_ns.config)
        except ValueError as exc:
            yaml_error = str(exc)

    ap = build_arg_parser()
    if yaml_error is not None:
        ap.error(yaml_error)
    if yaml_cfg:
        ap.set_defaults(**yaml_cfg)
    args = ap.parse_args(argv)

    cfg = AppConfig(**{name: getattr(args, name) for name in _APP_CONFIG_FIELDS})
    try:
        validate_config(cfg)
    except ValueError as exc:
        ap.error(str(exc))
    return cfg
