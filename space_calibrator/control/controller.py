"""Tick-driven calibration state machine."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from ..calibration.acquisition import acquire_sample, is_tracked
from ..calibration.policy import CalibrationPolicy
from ..calibration.rotation import calibrate_rotation
from ..calibration.sample import Sample
from ..calibration.translation import calibrate_translation
from ..math3d.quaternion import euler_zyx_to_q
from ..math3d.rotation import translation_cm_to_m
from .context import CalibrationContext, CalibrationState
from .offset_actuator import OffsetActuator
from .pose_provider import DeviceClass, TrackingPoseProvider
from .profile import CalibrationProfile, ProfileStore

logger = logging.getLogger(__name__)


class TickKind(enum.Enum):
    SKIPPED = "skipped"
    IDLE = "idle"
    APPLIED_PROFILE = "applied-profile"
    STARTED = "started"
    SAMPLED = "sampled"
    ROTATION_CALIBRATED = "rotation-calibrated"
    TRANSLATION_CALIBRATED = "translation-calibrated"
    ABORTED = "aborted"


@dataclass(frozen=True)
class TickOutcome:
    """What one tick did, plus the log text it appended."""

    kind: TickKind
    state: CalibrationState
    text: str = ""

    @property
    def processed(self) -> bool:
        return self.kind is not TickKind.SKIPPED


class CalibrationController:
    def __init__(
        self,
        context: CalibrationContext,
        pose_provider: TrackingPoseProvider,
        actuator: OffsetActuator,
        profile_store: Optional[ProfileStore] = None,
        policy: Optional[CalibrationPolicy] = None,
    ):
        self.ctx = context
        self.pose_provider = pose_provider
        self.actuator = actuator
        self.profile_store = profile_store
        self.policy = policy or CalibrationPolicy()
        self._samples: list[Sample] = []

    @property
    def pending_sample_count(self) -> int:
        return len(self._samples)

    # -- external requests --------------------------------------------------

    def select_devices(self, reference_id: Optional[int], target_id: Optional[int]) -> None:
        ctx = self.ctx
        ctx.reference_id = reference_id
        ctx.target_id = target_id
        self._refresh_tracking_systems()
        logger.info(
            "[CAL] selected reference=%s (%s) target=%s (%s)",
            reference_id,
            ctx.reference_tracking_system or "?",
            target_id,
            ctx.target_tracking_system or "?",
        )

    def start_calibration(self) -> None:
        ctx = self.ctx
        ctx.state = CalibrationState.BEGIN
        ctx.wanted_update_interval = 0.0
        ctx.clear_messages()

    def start_editing(self) -> None:
        self.ctx.state = CalibrationState.EDITING
        self.ctx.wanted_update_interval = 0.0

    def stop_editing(self) -> None:
        if self.ctx.state is CalibrationState.EDITING:
            self.ctx.state = CalibrationState.IDLE

    def reset(self) -> None:
        self._samples.clear()
        self.ctx.state = CalibrationState.IDLE

    # -- tick ---------------------------------------------------------------

    def tick(self, now: float) -> TickOutcome:
        ctx = self.ctx
        if (now - ctx.time_last_tick) < self.policy.tick_interval_s:
            return TickOutcome(kind=TickKind.SKIPPED, state=ctx.state)

        ctx.time_last_tick = now
        ctx.device_poses = self.pose_provider.get_device_poses()
        mark = len(ctx.messages)
        kind = self._step(now)
        return TickOutcome(kind=kind, state=ctx.state, text=ctx.messages[mark:])

    def _step(self, now: float) -> TickKind:
        ctx = self.ctx
        if ctx.state is CalibrationState.IDLE:
            ctx.wanted_update_interval = self.policy.idle_update_interval_s
            if not ctx.valid_profile:
                return TickKind.IDLE
            if (now - ctx.time_last_scan) >= self.policy.idle_rescan_s:
                self.scan_and_apply_profile()
                ctx.time_last_scan = now
                return TickKind.APPLIED_PROFILE
            return TickKind.IDLE

        if ctx.state is CalibrationState.EDITING:
            ctx.wanted_update_interval = 0.0
            if not ctx.valid_profile:
                return TickKind.IDLE
            self.scan_and_apply_profile()
            return TickKind.APPLIED_PROFILE

        if ctx.state is CalibrationState.BEGIN:
            return self._begin()

        return self._collect()

    def _begin(self) -> TickKind:
        ctx = self.ctx
        ok = True
        if ctx.reference_id is None:
            ctx.message("Missing reference device\n")
            ok = False
        elif not is_tracked(ctx.device_poses, ctx.reference_id):
            ctx.message("Reference device is not tracking\n")
            ok = False

        if ctx.target_id is None:
            ctx.message("Missing target device\n")
            ok = False
        elif not is_tracked(ctx.device_poses, ctx.target_id):
            ctx.message("Target device is not tracking\n")
            ok = False

        if not ok:
            self._abort()
            return TickKind.ABORTED

        self._refresh_tracking_systems()
        self.actuator.reset_offsets(ctx.target_id)
        self._samples.clear()
        ctx.state = CalibrationState.ROTATION
        ctx.wanted_update_interval = 0.0
        ctx.message(
            f"Starting calibration, reference_id={ctx.reference_id} target_id={ctx.target_id}\n"
        )
        return TickKind.STARTED

    def _collect(self) -> TickKind:
        ctx = self.ctx
        acquisition = acquire_sample(ctx.device_poses, ctx.reference_id, ctx.target_id)
        for text in acquisition.messages:
            ctx.message(text)
        if not acquisition.sample.valid:
            self._samples.clear()
            ctx.state = CalibrationState.IDLE
            return TickKind.ABORTED

        ctx.message(".")
        self._samples.append(acquisition.sample)
        if len(self._samples) < self.policy.sample_count:
            return TickKind.SAMPLED

        ctx.message("\n")
        try:
            if ctx.state is CalibrationState.ROTATION:
                self._finish_rotation()
                return TickKind.ROTATION_CALIBRATED
            self._finish_translation()
            return TickKind.TRANSLATION_CALIBRATED
        finally:
            self._samples.clear()

    def _finish_rotation(self) -> None:
        ctx = self.ctx
        result = calibrate_rotation(self._samples, self.policy)
        ctx.message(result.message)
        ctx.calibrated_rotation = result.euler_deg

        self.actuator.set_rotation_offset(ctx.target_id, euler_zyx_to_q(result.euler_deg))
        self.actuator.enable_offsets(ctx.target_id, True)
        ctx.state = CalibrationState.TRANSLATION

    def _finish_translation(self) -> None:
        ctx = self.ctx
        result = calibrate_translation(self._samples)
        ctx.message(result.message)
        ctx.calibrated_translation = result.translation_cm

        self.actuator.set_translation_offset(
            ctx.target_id, translation_cm_to_m(result.translation_cm)
        )
        ctx.state = CalibrationState.IDLE
        ctx.valid_profile = bool(ctx.target_tracking_system)
        if self.profile_store is None:
            ctx.message("Finished calibration\n")
            return
        try:
            self.profile_store.save(CalibrationProfile.from_context(ctx))
        except OSError as exc:
            logger.error("[PROFILE] failed to save %s: %s", self.profile_store.path, exc)
            ctx.message(f"Failed to save profile: {exc}\n")
            ctx.message("Finished calibration, profile not saved\n")
            return
        ctx.message("Finished calibration, profile saved\n")

    def _abort(self) -> None:
        self._samples.clear()
        self.ctx.state = CalibrationState.IDLE
        self.ctx.message("Aborting calibration!\n")

    # -- profile application ------------------------------------------------

    def _refresh_tracking_systems(self) -> None:
        ctx = self.ctx
        for device_id, attr in (
            (ctx.reference_id, "reference_tracking_system"),
            (ctx.target_id, "target_tracking_system"),
        ):
            if device_id is None:
                continue
            info = self.pose_provider.get_device_info(device_id)
            if info is not None and info.tracking_system:
                setattr(ctx, attr, info.tracking_system)

    def scan_and_apply_profile(self) -> list[int]:
        """Push the stored offsets to every target-system device. Returns the ids."""
        ctx = self.ctx
        q = euler_zyx_to_q(ctx.calibrated_rotation)
        t = translation_cm_to_m(ctx.calibrated_translation)
        applied = []
        for device_id in self.pose_provider.device_ids():
            info = self.pose_provider.get_device_info(device_id)
            if info is None or info.tracking_system != ctx.target_tracking_system:
                continue
            # HMDs and base stations define the target system's own space.
            if info.device_class in (DeviceClass.HMD, DeviceClass.TRACKING_REFERENCE):
                continue
            self.actuator.set_rotation_offset(device_id, q)
            self.actuator.set_translation_offset(device_id, t)
            self.actuator.enable_offsets(device_id, True)
            applied.append(device_id)
        logger.debug("[CAL] applied profile to devices %s", applied)
        return applied
