"""Port: per-frame voice activity classifier."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from hotword_scribe.l1_entities.voice_activity import VoiceActivity


class VoiceActivityClassifier(Protocol):
    def classify(self, frame: np.ndarray) -> VoiceActivity:
        """Classify one frame as speech, silence or indeterminate."""
        ...
