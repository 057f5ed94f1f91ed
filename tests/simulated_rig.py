"""Two rigidly coupled devices tracked by two tracking systems.

The target tracking system's world relates to the reference world by
p_ref = Q @ p_target + t. The rig is both pose provider and offset actuator:
offsets pushed to the target device are applied to its reported pose the way
a driver applies world-from-driver offsets.
"""

import numpy as np

from space_calibrator.calibration.sample import Sample
from space_calibrator.control.offset_actuator import OffsetActuator
from space_calibrator.control.pose import DevicePose, Pose
from space_calibrator.control.pose_provider import DeviceClass, DeviceInfo, TrackingPoseProvider
from space_calibrator.math3d.quaternion import q_to_rotmat
from space_calibrator.math3d.rotation import euler_zyx_to_rotmat

REFERENCE_ID = 0
TARGET_ID = 1


class SimulatedRig(TrackingPoseProvider, OffsetActuator):
    name = "simulated"

    def __init__(
        self,
        world_rotation_deg=(0.0, 10.0, 0.0),
        world_translation_m=(0.05, 0.0, 0.0),
        mount_rotation_deg=(20.0, -35.0, 50.0),
        mount_offset_m=(0.03, -0.02, 0.08),
        seed: int = 7,
    ):
        self.Q = euler_zyx_to_rotmat(np.array(world_rotation_deg, dtype=np.float64))
        self.t = np.array(world_translation_m, dtype=np.float64)
        self.D = euler_zyx_to_rotmat(np.array(mount_rotation_deg, dtype=np.float64))
        self.d = np.array(mount_offset_m, dtype=np.float64)
        self.rng = np.random.default_rng(seed)
        self.reference_tracked = True
        self.target_tracked = True
        self.infos = {
            REFERENCE_ID: DeviceInfo(DeviceClass.HMD, "lighthouse"),
            TARGET_ID: DeviceInfo(DeviceClass.CONTROLLER, "oculus"),
        }
        self.rotation_offsets = {}
        self.translation_offsets = {}
        self.enabled = {}
        self.calls = []

    # -- motion -------------------------------------------------------------

    def _random_reference(self):
        A = q_to_rotmat(self.rng.normal(size=4))
        a = self.rng.uniform(-1.0, 1.0, size=3)
        return A, a

    def _target_raw(self, A, a):
        B = self.Q.T @ A @ self.D
        b = self.Q.T @ (a + A @ self.d - self.t)
        return B, b

    def _target_reported(self, A, a):
        B, b = self._target_raw(A, a)
        if self.enabled.get(TARGET_ID, False):
            R_off = q_to_rotmat(self.rotation_offsets.get(TARGET_ID, np.array([1.0, 0.0, 0.0, 0.0])))
            t_off = self.translation_offsets.get(TARGET_ID, np.zeros(3))
            B = R_off @ B
            b = R_off @ b + t_off
        return B, b

    def sample(self, aligned: bool = False) -> Sample:
        """Sample without going through the provider.

        aligned=True reports the target with the true rotation between the
        worlds already applied, which is what the translation phase sees.
        """
        A, a = self._random_reference()
        B, b = self._target_raw(A, a)
        if aligned:
            B = self.Q @ B
            b = self.Q @ b
        return Sample.of(Pose(rotation=A, position=a), Pose(rotation=B, position=b))

    def samples(self, n: int, aligned: bool = False) -> list:
        return [self.sample(aligned=aligned) for _ in range(n)]

    # -- TrackingPoseProvider -----------------------------------------------

    def get_device_poses(self):
        A, a = self._random_reference()
        B, b = self._target_reported(A, a)
        return {
            REFERENCE_ID: DevicePose(Pose(rotation=A, position=a), tracked=self.reference_tracked),
            TARGET_ID: DevicePose(Pose(rotation=B, position=b), tracked=self.target_tracked),
        }

    def get_device_info(self, device_id):
        return self.infos.get(device_id)

    def device_ids(self):
        return sorted(self.infos)

    # -- OffsetActuator -----------------------------------------------------

    def set_rotation_offset(self, device_id, quaternion):
        self.calls.append(("rotation", device_id))
        self.rotation_offsets[device_id] = np.asarray(quaternion, dtype=np.float64).copy()

    def set_translation_offset(self, device_id, translation_m):
        self.calls.append(("translation", device_id))
        self.translation_offsets[device_id] = np.asarray(translation_m, dtype=np.float64).copy()

    def enable_offsets(self, device_id, enabled):
        self.calls.append(("enable", device_id, bool(enabled)))
        self.enabled[device_id] = bool(enabled)
