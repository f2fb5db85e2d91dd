"""Shared test fixtures — fake implementations of all ports."""

from __future__ import annotations

import threading
from pathlib import Path

import numpy as np
import pytest

from hotword_scribe.l1_entities.audio_constants import FRAME_SAMPLES, SAMPLE_RATE
from hotword_scribe.l1_entities.config import AppConfig, RecognitionOptions, StreamingConfig
from hotword_scribe.l1_entities.voice_activity import VoiceActivity
from hotword_scribe.l2_use_cases.session_state_machine import SessionStateMachine
from hotword_scribe.l2_use_cases.transcribe_session_use_case import TranscribeSessionUseCase
from hotword_scribe.l4_frameworks_and_drivers.infra_config import build_app_config

# --- Audio helpers ---


def speech_frame(amplitude: int = 3000, samples: int = FRAME_SAMPLES) -> np.ndarray:
    """A loud 440 Hz tone frame, well above every gate threshold."""
    t = np.arange(samples) / SAMPLE_RATE
    return (amplitude * np.sin(2 * np.pi * 440 * t)).astype(np.int16)


def silence_frame(samples: int = FRAME_SAMPLES) -> np.ndarray:
    return np.zeros(samples, dtype=np.int16)


# --- Fake Implementations ---


class FakeRecognizer:
    """Returns scripted segments. A list of responses is consumed one per call;
    once exhausted the last response repeats. An Exception instance is raised."""

    def __init__(self, responses: list | None = None) -> None:
        self.responses = responses if responses is not None else [['hello world']]
        self.calls: list[np.ndarray] = []
        self.options: list[RecognitionOptions] = []
        self.loaded_model: str | None = None
        self.closed = False

    def load_model(self, model_path: str) -> None:
        self.loaded_model = model_path

    def transcribe(self, audio: np.ndarray, options: RecognitionOptions) -> list[str]:
        self.calls.append(audio)
        self.options.append(options)
        idx = min(len(self.calls), len(self.responses)) - 1
        response = self.responses[idx]
        if isinstance(response, Exception):
            raise response
        return list(response)

    def close(self) -> None:
        self.closed = True


class BlockingRecognizer(FakeRecognizer):
    """Blocks inside transcribe() until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__([['never applied']])
        self.started = threading.Event()
        self.release = threading.Event()

    def transcribe(self, audio: np.ndarray, options: RecognitionOptions) -> list[str]:
        self.started.set()
        self.release.wait(timeout=5.0)
        return super().transcribe(audio, options)


class FakeDetector:
    """Triggers on the listed call indices (0-based) of ``detect``."""

    def __init__(self, trigger_on: set[int] | None = None) -> None:
        self.trigger_on = trigger_on if trigger_on is not None else {0}
        self.detect_calls = 0
        self.reset_calls = 0
        self.label = 'hey test'

    def detect(self, frame: np.ndarray) -> bool:
        triggered = self.detect_calls in self.trigger_on
        self.detect_calls += 1
        return triggered

    def reset(self) -> None:
        self.reset_calls += 1


class FakeClassifier:
    """Energy-based stand-in for a VAD: loud frames are speech, quiet ones silence."""

    def __init__(self, threshold: int = 500, forced: VoiceActivity | None = None) -> None:
        self.threshold = threshold
        self.forced = forced
        self.calls = 0

    def classify(self, frame: np.ndarray) -> VoiceActivity:
        self.calls += 1
        if self.forced is not None:
            return self.forced
        if len(frame) and int(np.max(np.abs(frame.astype(np.int32)))) > self.threshold:
            return VoiceActivity.SPEECH
        return VoiceActivity.SILENCE


class FakeAudioSource:
    """Replays a fixed list of frames, then reports itself exhausted."""

    def __init__(self, frames: list[np.ndarray], dropped: int = 0, fail_open: Exception | None = None) -> None:
        self._frames = list(frames)
        self._pos = 0
        self._dropped = dropped
        self._fail_open = fail_open
        self.opened = False
        self.closed = False

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self._frames)

    @property
    def dropped_frames(self) -> int:
        return self._dropped

    def open(self, sample_rate: int, channels: int) -> None:
        if self._fail_open is not None:
            raise self._fail_open
        self.opened = True

    def read(self, timeout: float = 0.1) -> np.ndarray | None:
        if self.exhausted:
            return None
        frame = self._frames[self._pos]
        self._pos += 1
        return frame

    def close(self) -> None:
        self.closed = True


def make_use_case(
    config: AppConfig,
    recognizer: FakeRecognizer | None = None,
    detector: FakeDetector | None = None,
    classifier: FakeClassifier | None = None,
    streaming: StreamingConfig | None = None,
) -> TranscribeSessionUseCase:
    return TranscribeSessionUseCase(
        machine=SessionStateMachine(streaming or config.streaming),
        detector=detector or FakeDetector(),
        classifier=classifier or FakeClassifier(),
        recognizer=recognizer or FakeRecognizer(),
        options=config.recognition.options(),
    )


# --- Standard Fixtures ---


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def streaming_config(default_config: AppConfig) -> StreamingConfig:
    return default_config.streaming


@pytest.fixture
def fake_recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def fake_detector() -> FakeDetector:
    return FakeDetector()


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
streaming:
  silence_frames: 10
  overlap:
    subsequent: 0.02
recognition:
  model: "base.en"
  language: "en"
hotword:
  threshold: 0.7
filter:
  extra_phrases:
    - "brought to you by"
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p
