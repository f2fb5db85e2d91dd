"""Requests emitted by the session state machine and events reported to the caller."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from hotword_scribe.l1_entities.transcript import SessionSummary

FINALIZE_SILENCE = 'silence'
FINALIZE_MAX_DURATION = 'max_duration'
FINALIZE_SHUTDOWN = 'shutdown'


# --- Requests: side effects the state machine asks its driver to perform ---


@dataclass(frozen=True)
class RecognizeChunk:
    """Send *audio* to the recognition engine. Overlap has already been retired."""

    audio: np.ndarray
    chunk_index: int


@dataclass(frozen=True)
class FinalizeCycle:
    reason: str


# --- Events: observable outcomes of a frame ---


@dataclass(frozen=True)
class CycleStarted:
    pass


@dataclass(frozen=True)
class ChunkSkipped:
    rms: float
    activity_ratio: float


@dataclass(frozen=True)
class SegmentAccepted:
    text: str
    running_text: str


@dataclass(frozen=True)
class SegmentFiltered:
    text: str
    matched: str


@dataclass(frozen=True)
class RecognitionFailed:
    error: str


@dataclass(frozen=True)
class CycleFinalized:
    """*summary* is None when the cycle produced no accepted text."""

    reason: str
    summary: SessionSummary | None


MachineAction = RecognizeChunk | FinalizeCycle | CycleStarted | ChunkSkipped
SessionEvent = CycleStarted | ChunkSkipped | SegmentAccepted | SegmentFiltered | RecognitionFailed | CycleFinalized
