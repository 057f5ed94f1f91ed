"""Translation calibration (linear least squares over sample pairs).

Once the target frame is rotated into the reference frame, the world-space
translation t between the frames satisfies, for each device D with
Q = R_D^T and offset o = p_ref - p_target:

    (Q_j - Q_i) t = Q_j o_j - Q_i o_i

The device-to-device lever arm cancels in the difference, so t is recovered
without knowing where the devices are mounted on each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..math3d.rotation import CM_PER_METER
from .sample import Sample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslationCalibration:
    translation_cm: np.ndarray
    sample_count: int
    equation_count: int
    residual_rms_cm: float
    message: str


def build_translation_system(samples: Sequence[Sample]) -> tuple[np.ndarray, np.ndarray]:
    """Stack one 3-row block per (pair, device). Returns (coefficients, constants)."""
    blocks = []
    constants = []
    for i in range(len(samples)):
        si = samples[i]
        off_i = si.ref.position - si.target.position
        for j in range(i):
            sj = samples[j]
            off_j = sj.ref.position - sj.target.position
            for q_i, q_j in (
                (si.ref.rotation.T, sj.ref.rotation.T),
                (si.target.rotation.T, sj.target.rotation.T),
            ):
                blocks.append(q_j - q_i)
                constants.append(q_j @ off_j - q_i @ off_i)
    return np.vstack(blocks), np.concatenate(constants)


def calibrate_translation(samples: Sequence[Sample]) -> TranslationCalibration:
    if len(samples) < 2:
        raise ValueError(f"translation calibration needs >= 2 samples, got {len(samples)}")
    if not all(s.valid for s in samples):
        raise ValueError("translation calibration batch contains invalid samples")

    coefficients, constants = build_translation_system(samples)
    trans, _, rank, _ = np.linalg.lstsq(coefficients, constants, rcond=None)
    if rank < 3:
        logger.warning("[CAL] translation system rank=%d, result is underdetermined", rank)

    residual = coefficients @ trans - constants
    residual_rms = float(np.sqrt(np.mean(residual * residual))) * CM_PER_METER
    trans_cm = trans * CM_PER_METER

    logger.debug("[CAL] translation residual rms=%.4fcm", residual_rms)
    return TranslationCalibration(
        translation_cm=trans_cm,
        sample_count=len(samples),
        equation_count=int(constants.size),
        residual_rms_cm=residual_rms,
        message=(
            f"Calibrated translation x={trans_cm[0]:.2f} y={trans_cm[1]:.2f} "
            f"z={trans_cm[2]:.2f}\n"
        ),
    )
