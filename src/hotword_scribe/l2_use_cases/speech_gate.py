"""Use case: cheap energy gate in front of the recognition engine."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from hotword_scribe.l1_entities.config import SpeechGateConfig


class GateVerdict(NamedTuple):
    accepted: bool
    rms: float
    activity_ratio: float


class SpeechGate:
    """Rejects chunks that are clearly not worth a recognition call.

    Thresholds are deliberately permissive: real voice-activity detection
    happens upstream, this only filters near-silence and sparse clicks.
    """

    def __init__(self, config: SpeechGateConfig) -> None:
        self._min_rms = config.min_rms
        self._sample_threshold = config.sample_threshold
        self._min_activity_ratio = config.min_activity_ratio

    def evaluate(self, chunk: np.ndarray) -> GateVerdict:
        if len(chunk) == 0:
            return GateVerdict(False, 0.0, 0.0)

        samples = chunk.astype(np.float64)
        rms = float(np.sqrt(np.mean(samples**2)))
        if rms < self._min_rms:
            return GateVerdict(False, rms, 0.0)

        activity_ratio = float(np.count_nonzero(np.abs(samples) > self._sample_threshold) / len(samples))
        return GateVerdict(activity_ratio >= self._min_activity_ratio, rms, activity_ratio)
