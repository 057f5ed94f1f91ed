import json

import numpy as np

from space_calibrator.control.offset_actuator import OffsetActuator, encode_command


class _Recorder(OffsetActuator):
    def __init__(self):
        self.calls = []

    def set_rotation_offset(self, device_id, quaternion):
        self.calls.append(("rotation", device_id, list(quaternion)))

    def set_translation_offset(self, device_id, translation_m):
        self.calls.append(("translation", device_id, list(translation_m)))

    def enable_offsets(self, device_id, enabled):
        self.calls.append(("enable", device_id, enabled))


def test_reset_offsets_sets_identity_and_disables():
    actuator = _Recorder()
    actuator.reset_offsets(4)
    assert actuator.calls == [
        ("rotation", 4, [1.0, 0.0, 0.0, 0.0]),
        ("translation", 4, [0.0, 0.0, 0.0]),
        ("enable", 4, False),
    ]


def test_encode_command_serializes_arrays():
    data = encode_command("set_translation_offset", 3, translation_m=np.array([0.05, 0.0, -0.1]))
    payload = json.loads(data.decode("utf-8"))
    assert payload == {
        "op": "set_translation_offset",
        "device_id": 3,
        "translation_m": [0.05, 0.0, -0.1],
    }
