"""Use case: Idle/Listening state machine driving chunk extraction and finalization."""

from __future__ import annotations

import logging

import numpy as np

from hotword_scribe.l1_entities.config import StreamingConfig
from hotword_scribe.l1_entities.session import Session
from hotword_scribe.l1_entities.session_events import (
    FINALIZE_MAX_DURATION,
    FINALIZE_SILENCE,
    ChunkSkipped,
    CycleStarted,
    FinalizeCycle,
    MachineAction,
    RecognizeChunk,
)
from hotword_scribe.l1_entities.voice_activity import VoiceActivity
from hotword_scribe.l2_use_cases.chunk_window import ChunkWindow
from hotword_scribe.l2_use_cases.speech_gate import SpeechGate

log = logging.getLogger('hws.session')


class SessionStateMachine:
    """Pure transition logic over an explicit :class:`Session`.

    Each ``on_*`` call mutates the session and returns the actions its driver
    must carry out, in order. Nothing here touches audio devices or engines,
    so every transition is testable with plain numpy arrays.
    """

    def __init__(
        self,
        config: StreamingConfig,
        gate: SpeechGate | None = None,
        window: ChunkWindow | None = None,
    ) -> None:
        self._config = config
        self._gate = gate or SpeechGate(config.gate)
        self._window = window or ChunkWindow(config.chunk_samples, config.overlap)

    @property
    def window(self) -> ChunkWindow:
        return self._window

    def on_idle_frame(self, session: Session, triggered: bool) -> list[MachineAction]:
        if not triggered:
            return []
        session.begin_cycle()
        log.info('Hotword detected; listening')
        return [CycleStarted()]

    def on_listening_frame(
        self,
        session: Session,
        frame: np.ndarray,
        activity: VoiceActivity,
    ) -> list[MachineAction]:
        session.append(frame)
        actions: list[MachineAction] = []

        if activity is VoiceActivity.SILENCE:
            session.silence_run += 1
            session.speech_run = 0
        else:
            # Anything the classifier could not call silence counts as speech.
            session.speech_run += 1
            session.silence_run = 0
            if session.speech_run > self._config.min_speech_frames:
                actions.extend(self._extract(session))

        # Extraction also runs on buffer size alone, whatever the classifier said.
        actions.extend(self._extract(session))

        if session.silence_run >= self._config.silence_frames:
            log.info('Silence for %d frames; finalizing', session.silence_run)
            actions.append(FinalizeCycle(reason=FINALIZE_SILENCE))
        elif self._over_limit(session):
            log.warning(
                'Maximum listening time reached (%.0fs); finalizing',
                self._config.max_session_seconds,
            )
            actions.append(FinalizeCycle(reason=FINALIZE_MAX_DURATION))
        return actions

    def final_pass_audio(self, session: Session) -> np.ndarray | None:
        """The remaining buffer to recognize before finalizing, or None to discard it."""
        buf = session.audio_buffer
        if len(buf) == 0 or not session.started:
            return None
        if len(buf) < self._config.min_final_samples:
            log.debug('Discarding %d-sample tail (below final-pass minimum)', len(buf))
            return None
        return buf.copy()

    def finish_cycle(self, session: Session) -> None:
        session.end_cycle()

    def _extract(self, session: Session) -> list[MachineAction]:
        if not self._window.has_chunk(session):
            return []

        chunk = self._window.peek(session)
        verdict = self._gate.evaluate(chunk)
        chunk_index = session.chunk_index
        kept = self._window.consume(session, accepted=verdict.accepted)

        if not verdict.accepted:
            session.skipped_chunks += 1
            log.debug(
                'Skipping chunk (rms=%.0f, activity=%.2f%%), keeping %d samples',
                verdict.rms,
                verdict.activity_ratio * 100,
                kept,
            )
            return [ChunkSkipped(rms=verdict.rms, activity_ratio=verdict.activity_ratio)]

        log.debug('Chunk %d accepted, keeping %d samples of overlap', chunk_index + 1, kept)
        return [RecognizeChunk(audio=chunk, chunk_index=chunk_index)]

    def _over_limit(self, session: Session) -> bool:
        limit = self._config.max_session_samples
        return len(session.audio_buffer) >= limit or session.total_samples >= limit
