"""Streaming session state entity."""

from __future__ import annotations

import enum

import numpy as np
from pydantic import BaseModel, Field


def _empty_buffer() -> np.ndarray:
    return np.array([], dtype=np.int16)


class SessionState(enum.Enum):
    IDLE = 'idle'
    LISTENING = 'listening'


class Session(BaseModel):
    """Mutable state for one hotword-to-finalization cycle.

    Created once per process and reset on every Idle→Listening transition, so
    device and detector setup is paid only once.
    """

    state: SessionState = SessionState.IDLE
    audio_buffer: np.ndarray = Field(default_factory=_empty_buffer)
    silence_run: int = 0
    speech_run: int = 0
    chunk_index: int = 0
    transcript: list[str] = Field(default_factory=list)
    total_samples: int = 0
    started: bool = False

    skipped_chunks: int = 0
    filtered_segments: int = 0
    failed_recognitions: int = 0

    model_config = {'arbitrary_types_allowed': True}

    @property
    def is_listening(self) -> bool:
        return self.state is SessionState.LISTENING

    def begin_cycle(self) -> None:
        """Reset every per-cycle field and switch to Listening."""
        self.audio_buffer = _empty_buffer()
        self.silence_run = 0
        self.speech_run = 0
        self.chunk_index = 0
        self.transcript = []
        self.total_samples = 0
        self.started = False
        self.skipped_chunks = 0
        self.filtered_segments = 0
        self.failed_recognitions = 0
        self.state = SessionState.LISTENING

    def end_cycle(self) -> None:
        """Drop cycle audio and text and go back to Idle."""
        self.audio_buffer = _empty_buffer()
        self.transcript = []
        self.started = False
        self.total_samples = 0
        self.state = SessionState.IDLE

    def append(self, frame: np.ndarray) -> None:
        samples = np.asarray(frame, dtype=np.int16).flatten()
        self.audio_buffer = np.concatenate([self.audio_buffer, samples])
        self.total_samples += len(samples)
