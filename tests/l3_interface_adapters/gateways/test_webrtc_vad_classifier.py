"""Tests for WebRtcVadClassifier — patches webrtcvad.Vad."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from hotword_scribe.l1_entities.errors import DetectorInitError
from hotword_scribe.l1_entities.voice_activity import VoiceActivity

MODULE = 'hotword_scribe.l3_interface_adapters.gateways.webrtc_vad_classifier'


def _classifier(verdicts, speech_ratio=0.5):
    from hotword_scribe.l3_interface_adapters.gateways.webrtc_vad_classifier import WebRtcVadClassifier

    vad = MagicMock()
    vad.is_speech.side_effect = verdicts
    with patch(f'{MODULE}.webrtcvad.Vad', return_value=vad) as vad_cls:
        c = WebRtcVadClassifier(aggressiveness=3, speech_ratio=speech_ratio)
    return c, vad, vad_cls


class TestWebRtcVadClassifier:
    def test_frame_split_into_20ms_subframes(self):
        c, vad, vad_cls = _classifier([True] * 4)
        assert c.classify(np.zeros(1280, dtype=np.int16)) is VoiceActivity.SPEECH

        vad_cls.assert_called_once_with(3)
        assert vad.is_speech.call_count == 4
        payload, rate = vad.is_speech.call_args.args
        assert len(payload) == 320 * 2
        assert rate == 16000

    def test_majority_voiced_is_speech(self):
        c, _, _ = _classifier([True, True, False, False])
        assert c.classify(np.zeros(1280, dtype=np.int16)) is VoiceActivity.SPEECH

    def test_mostly_unvoiced_is_silence(self):
        c, _, _ = _classifier([True, False, False, False])
        assert c.classify(np.zeros(1280, dtype=np.int16)) is VoiceActivity.SILENCE

    def test_short_frame_is_indeterminate(self):
        c, vad, _ = _classifier([])
        assert c.classify(np.zeros(100, dtype=np.int16)) is VoiceActivity.INDETERMINATE
        vad.is_speech.assert_not_called()

    def test_vad_error_is_indeterminate(self):
        c, _, _ = _classifier(RuntimeError('Error while processing frame'))
        assert c.classify(np.zeros(1280, dtype=np.int16)) is VoiceActivity.INDETERMINATE

    def test_init_failure_raises(self):
        from hotword_scribe.l3_interface_adapters.gateways.webrtc_vad_classifier import WebRtcVadClassifier

        with patch(f'{MODULE}.webrtcvad.Vad', side_effect=ValueError('bad mode')):
            with pytest.raises(DetectorInitError, match='bad mode'):
                WebRtcVadClassifier(aggressiveness=9)
