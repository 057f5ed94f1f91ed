"""
Space calibration tool:
- Tracking snapshots from a UDP bridge or a JSON-lines replay
- Reference device = ground truth space, target device = corrected space
- Rotation phase: Kabsch over delta rotation axes of 100 paired samples
- Translation phase: least squares over 100 more samples with rotation applied
- Offsets pushed to target-system devices via an offset actuator
- Profile saved to YAML and re-applied while idle

Deps:
  pip install numpy PyYAML
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from .calibration.policy import CalibrationPolicy
from .config import AppConfig, parse_args
from .control.context import CalibrationContext, CalibrationState
from .control.controller import CalibrationController, TickKind
from .control.offset_actuator import LoggingOffsetActuator, OffsetActuator, UdpOffsetActuator
from .control.pose_provider import TrackingPoseProvider
from .control.profile import ProfileStore
from .pose_providers.replay import ReplayPoseProvider
from .pose_providers.udp_bridge import UdpBridgePoseProvider

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_pose_provider(cfg: AppConfig) -> TrackingPoseProvider:
    if cfg.pose_provider == "udp-bridge":
        return UdpBridgePoseProvider(
            bridge_host=cfg.bridge_host,
            bridge_port=cfg.bridge_port,
            stale_s=cfg.bridge_stale_ms / 1000.0,
        )
    if cfg.pose_provider == "replay":
        return ReplayPoseProvider.from_file(cfg.replay)
    raise RuntimeError(f"Unsupported pose provider: {cfg.pose_provider}")


def build_offset_actuator(cfg: AppConfig) -> OffsetActuator:
    if cfg.offset_actuator == "log":
        actuator = LoggingOffsetActuator()
    elif cfg.offset_actuator == "udp":
        actuator = UdpOffsetActuator(cfg.actuator_host, cfg.actuator_port)
    else:
        raise RuntimeError(f"Unsupported offset actuator: {cfg.offset_actuator}")
    logger.info("[APP] offset actuator=%s", actuator.name)
    return actuator


def build_controller(
    cfg: AppConfig,
    pose_provider: TrackingPoseProvider,
    actuator: OffsetActuator,
) -> CalibrationController:
    ctx = CalibrationContext()
    store = ProfileStore(cfg.profile)
    if store.load_into(ctx):
        logger.info(
            "[PROFILE] rotation=[%.2f, %.2f, %.2f]deg translation=[%.2f, %.2f, %.2f]cm",
            *ctx.calibrated_rotation,
            *ctx.calibrated_translation,
        )

    policy = CalibrationPolicy.from_config(cfg)
    logger.info(
        "[APP] policy samples=%d min_angle=%.2frad min_norm=%.3f tick=%.0fms rescan=%.1fs",
        policy.sample_count,
        policy.min_delta_angle_rad,
        policy.min_axis_norm,
        policy.tick_interval_s * 1000.0,
        policy.idle_rescan_s,
    )
    controller = CalibrationController(
        context=ctx,
        pose_provider=pose_provider,
        actuator=actuator,
        profile_store=store,
        policy=policy,
    )
    if cfg.reference_id is not None or cfg.target_id is not None:
        controller.select_devices(cfg.reference_id, cfg.target_id)
    return controller


def run(
    controller: CalibrationController,
    once: bool = False,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Tick until interrupted, or until a calibration run ends when ``once``."""
    ctx = controller.ctx
    running = ctx.state is not CalibrationState.IDLE
    while True:
        outcome = controller.tick(clock())
        if outcome.processed and once and running and outcome.state is CalibrationState.IDLE:
            if outcome.kind is TickKind.ABORTED:
                logger.warning("[CAL] calibration aborted")
            return
        sleep(max(controller.policy.tick_interval_s, ctx.wanted_update_interval))


def main(argv=None):
    cfg = parse_args(argv)
    configure_logging(cfg.log_level)

    pose_provider = build_pose_provider(cfg)
    actuator = build_offset_actuator(cfg)
    try:
        controller = build_controller(cfg, pose_provider, actuator)
        if cfg.calibrate:
            controller.start_calibration()
        elif cfg.edit:
            controller.start_editing()
        try:
            run(controller, once=cfg.once and cfg.calibrate)
        except KeyboardInterrupt:
            logger.info("[APP] interrupted")
    finally:
        try:
            actuator.close()
        finally:
            pose_provider.close()


if __name__ == "__main__":
    main()
