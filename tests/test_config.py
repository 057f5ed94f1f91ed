import pytest

from space_calibrator.calibration.policy import CalibrationPolicy
from space_calibrator.config import AppConfig, parse_args, validate_config


def test_validate_config_accepts_defaults():
    validate_config(AppConfig())


def test_validate_config_rejects_invalid_bridge_port():
    cfg = AppConfig(bridge_port=70000)
    with pytest.raises(ValueError, match="--bridge-port"):
        validate_config(cfg)


def test_validate_config_requires_replay_path():
    cfg = AppConfig(pose_provider="replay")
    with pytest.raises(ValueError, match="--replay"):
        validate_config(cfg)


def test_validate_config_rejects_invalid_offset_actuator():
    cfg = AppConfig(offset_actuator="bad")
    with pytest.raises(ValueError, match="--offset-actuator"):
        validate_config(cfg)


def test_validate_config_rejects_same_reference_and_target():
    cfg = AppConfig(reference_id=2, target_id=2)
    with pytest.raises(ValueError, match="must differ"):
        validate_config(cfg)


def test_validate_config_rejects_tiny_sample_count():
    cfg = AppConfig(sample_count=1)
    with pytest.raises(ValueError, match="--sample-count"):
        validate_config(cfg)


def test_validate_config_rejects_calibrate_with_edit():
    cfg = AppConfig(calibrate=True, edit=True)
    with pytest.raises(ValueError, match="mutually exclusive"):
        validate_config(cfg)


def test_policy_from_config_converts_tick_interval():
    policy = CalibrationPolicy.from_config(AppConfig(tick_interval_ms=40.0, sample_count=50))
    assert policy.tick_interval_s == pytest.approx(0.04)
    assert policy.sample_count == 50
    assert policy.min_delta_angle_rad == 0.4


def test_parse_args_reads_yaml_config(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(
        "\n".join(
            [
                "profile: calib/profile.yaml",
                "reference: 0",
                "target-id: 3",
                "calibrate: true",
                "offset_actuator: udp",
                "min_delta_angle_rad: 0.5",
            ]
        ),
        encoding="utf-8",
    )
    cfg = parse_args(["--config", str(cfg_path)])
    assert cfg.profile == "calib/profile.yaml"
    assert cfg.reference_id == 0
    assert cfg.target_id == 3
    assert cfg.calibrate is True
    assert cfg.offset_actuator == "udp"
    assert cfg.min_delta_angle_rad == 0.5


def test_parse_args_cli_overrides_yaml(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(
        "\n".join(
            [
                "target_id: 3",
                "sample_count: 60",
            ]
        ),
        encoding="utf-8",
    )
    cfg = parse_args(["--config", str(cfg_path), "--target-id", "5", "--sample-count", "80"])
    assert cfg.target_id == 5
    assert cfg.sample_count == 80


def test_parse_args_rejects_unknown_yaml_key(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("bad_key: 1\n", encoding="utf-8")
    with pytest.raises(SystemExit):
        parse_args(["--config", str(cfg_path)])


def test_parse_args_rejects_invalid_values():
    with pytest.raises(SystemExit):
        parse_args(["--reference-id", "1", "--target-id", "1"])
