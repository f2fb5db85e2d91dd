"""Gateway: WebRTC VAD classifier — implements VoiceActivityClassifier port."""

from __future__ import annotations

import logging

import numpy as np
import webrtcvad

from hotword_scribe.l1_entities.audio_constants import SAMPLE_RATE
from hotword_scribe.l1_entities.errors import DetectorInitError
from hotword_scribe.l1_entities.voice_activity import VoiceActivity

log = logging.getLogger('hws.vad')

SUBFRAME_MS = 20


class WebRtcVadClassifier:
    """Votes over 20 ms sub-frames of a frame.

    WebRTC VAD only accepts 10/20/30 ms frames, so a capture frame is split
    and classified as speech when at least ``speech_ratio`` of its sub-frames
    are voiced. A frame with no whole sub-frame, or one the VAD cannot
    process, is indeterminate.
    """

    def __init__(self, aggressiveness: int = 2, speech_ratio: float = 0.5, sample_rate: int = SAMPLE_RATE) -> None:
        try:
            self._vad = webrtcvad.Vad(aggressiveness)
        except Exception as e:
            raise DetectorInitError(f'Failed to initialise WebRTC VAD: {e}') from e
        self._speech_ratio = speech_ratio
        self._sample_rate = sample_rate
        self._subframe = sample_rate * SUBFRAME_MS // 1000

    def classify(self, frame: np.ndarray) -> VoiceActivity:
        samples = np.asarray(frame, dtype=np.int16)
        n_sub = len(samples) // self._subframe
        if n_sub == 0:
            return VoiceActivity.INDETERMINATE

        voiced = 0
        try:
            for i in range(n_sub):
                sub = samples[i * self._subframe : (i + 1) * self._subframe]
                if self._vad.is_speech(sub.tobytes(), self._sample_rate):
                    voiced += 1
        except Exception as e:
            log.debug('VAD could not classify frame: %s', e)
            return VoiceActivity.INDETERMINATE

        return VoiceActivity.SPEECH if voiced / n_sub >= self._speech_ratio else VoiceActivity.SILENCE
