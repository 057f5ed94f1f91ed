"""Sample acquisition from a tracking snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..control.pose import DevicePose
from .sample import Sample


@dataclass(frozen=True)
class Acquisition:
    sample: Sample
    messages: tuple[str, ...] = ()


def is_tracked(device_poses: Mapping[int, DevicePose], device_id: Optional[int]) -> bool:
    if device_id is None:
        return False
    entry = device_poses.get(device_id)
    return entry is not None and entry.tracked


def acquire_sample(
    device_poses: Mapping[int, DevicePose],
    reference_id: Optional[int],
    target_id: Optional[int],
) -> Acquisition:
    """Pair the reference and target poses, or report why it is impossible.

    An invalid sample means the run must be aborted: losing tracking mid-run
    is not retried.
    """
    messages = []
    if not is_tracked(device_poses, reference_id):
        messages.append("Reference device is not tracking\n")
    if not is_tracked(device_poses, target_id):
        messages.append("Target device is not tracking\n")
    if messages:
        messages.append("Aborting calibration!\n")
        return Acquisition(sample=Sample.invalid(), messages=tuple(messages))

    return Acquisition(
        sample=Sample.of(device_poses[reference_id].pose, device_poses[target_id].pose)
    )
