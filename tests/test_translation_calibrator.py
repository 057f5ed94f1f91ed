import numpy as np
import pytest

from simulated_rig import SimulatedRig
from space_calibrator.calibration.rotation import calibrate_rotation
from space_calibrator.calibration.translation import calibrate_translation


def test_recovers_known_translation_in_centimeters():
    rig = SimulatedRig(world_rotation_deg=(20.0, -10.0, 5.0), world_translation_m=(0.12, -0.4, 0.9))
    result = calibrate_translation(rig.samples(20, aligned=True))
    np.testing.assert_allclose(result.translation_cm, np.array([12.0, -40.0, 90.0]), atol=1e-6)
    assert result.residual_rms_cm < 1e-6
    assert result.message.startswith("Calibrated translation x=12.00 y=-40.00 z=90.00")


def test_rotation_then_translation_recovers_full_offset():
    rig = SimulatedRig(world_rotation_deg=(0.0, 10.0, 0.0), world_translation_m=(0.05, 0.0, 0.0))
    rotation = calibrate_rotation(rig.samples(30))
    translation = calibrate_translation(rig.samples(30, aligned=True))
    np.testing.assert_allclose(rotation.euler_deg, np.array([0.0, 10.0, 0.0]), atol=1e-3)
    np.testing.assert_allclose(translation.translation_cm, np.array([5.0, 0.0, 0.0]), atol=1e-3)


def test_equation_count_covers_both_devices_for_every_pair():
    rig = SimulatedRig()
    n = 12
    result = calibrate_translation(rig.samples(n, aligned=True))
    assert result.equation_count == 3 * 2 * (n * (n - 1) // 2)
    assert result.sample_count == n


def test_needs_at_least_two_samples():
    rig = SimulatedRig()
    with pytest.raises(ValueError, match=">= 2"):
        calibrate_translation(rig.samples(1, aligned=True))
