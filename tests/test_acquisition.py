import numpy as np

from space_calibrator.calibration.acquisition import acquire_sample
from space_calibrator.control.pose import DevicePose, Pose


def _poses(ref_tracked: bool = True, target_tracked: bool = True):
    return {
        0: DevicePose(Pose.from_position(0.0, 1.6, 0.0), tracked=ref_tracked),
        3: DevicePose(Pose.from_position(0.2, 1.0, -0.1), tracked=target_tracked),
    }


def test_both_tracked_gives_valid_sample():
    acq = acquire_sample(_poses(), reference_id=0, target_id=3)
    assert acq.sample.valid is True
    assert acq.messages == ()
    np.testing.assert_allclose(acq.sample.ref.position, np.array([0.0, 1.6, 0.0]))
    np.testing.assert_allclose(acq.sample.target.position, np.array([0.2, 1.0, -0.1]))


def test_untracked_reference_aborts():
    acq = acquire_sample(_poses(ref_tracked=False), reference_id=0, target_id=3)
    assert acq.sample.valid is False
    assert acq.messages == (
        "Reference device is not tracking\n",
        "Aborting calibration!\n",
    )


def test_untracked_target_aborts():
    acq = acquire_sample(_poses(target_tracked=False), reference_id=0, target_id=3)
    assert acq.sample.valid is False
    assert "Target device is not tracking\n" in acq.messages
    assert "Reference device is not tracking\n" not in acq.messages


def test_device_missing_from_snapshot_counts_as_untracked():
    acq = acquire_sample(_poses(), reference_id=0, target_id=7)
    assert acq.sample.valid is False
    assert "Target device is not tracking\n" in acq.messages


def test_unselected_devices_are_untracked():
    acq = acquire_sample(_poses(), reference_id=None, target_id=None)
    assert acq.sample.valid is False
    assert acq.messages[-1] == "Aborting calibration!\n"
