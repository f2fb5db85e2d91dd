"""Use case: run hotword-gated streaming transcription over a reused session."""

from __future__ import annotations

import logging

import numpy as np

from hotword_scribe.l1_entities.audio_constants import SAMPLE_RATE
from hotword_scribe.l1_entities.config import RecognitionOptions
from hotword_scribe.l1_entities.session import Session
from hotword_scribe.l1_entities.session_events import (
    FINALIZE_SHUTDOWN,
    ChunkSkipped,
    CycleFinalized,
    CycleStarted,
    FinalizeCycle,
    MachineAction,
    RecognitionFailed,
    RecognizeChunk,
    SegmentAccepted,
    SegmentFiltered,
    SessionEvent,
)
from hotword_scribe.l2_use_cases.hallucination_filter import HallucinationFilter
from hotword_scribe.l2_use_cases.ports.hotword_detector import HotwordDetector
from hotword_scribe.l2_use_cases.ports.recognizer import Recognizer
from hotword_scribe.l2_use_cases.ports.voice_activity_classifier import VoiceActivityClassifier
from hotword_scribe.l2_use_cases.session_state_machine import SessionStateMachine
from hotword_scribe.l2_use_cases.transcript_assembler import TranscriptAssembler

log = logging.getLogger('hws.session')


class TranscribeSessionUseCase:
    """Feeds frames through detector, classifier and state machine; applies recognition results.

    Does NO I/O itself. Two ways to drive it:

    * ``process_frame()`` runs recognition inline and returns the events of one frame.
    * ``feed_frame()`` returns the machine's actions so the caller can run
      ``RecognizeChunk`` off-thread and hand the outcome back through
      ``apply_result()`` / ``apply_failure()``, then close the cycle with
      ``final_pass_audio()`` and ``finalize()`` when it sees ``FinalizeCycle``.
    """

    def __init__(
        self,
        machine: SessionStateMachine,
        detector: HotwordDetector,
        classifier: VoiceActivityClassifier,
        recognizer: Recognizer,
        options: RecognitionOptions,
        hallucination_filter: HallucinationFilter | None = None,
        assembler: TranscriptAssembler | None = None,
        session: Session | None = None,
        sample_rate: int = SAMPLE_RATE,
    ) -> None:
        self._machine = machine
        self._detector = detector
        self._classifier = classifier
        self._recognizer = recognizer
        self._options = options
        self._filter = hallucination_filter or HallucinationFilter()
        self._assembler = assembler or TranscriptAssembler()
        self._session = session or Session()
        self._sample_rate = sample_rate

    @property
    def session(self) -> Session:
        return self._session

    @property
    def options(self) -> RecognitionOptions:
        return self._options

    @property
    def running_text(self) -> str:
        return self._assembler.running_text(self._session)

    # --- two-phase API ---

    def feed_frame(self, frame: np.ndarray) -> list[MachineAction]:
        if not self._session.is_listening:
            return self._machine.on_idle_frame(self._session, self._detector.detect(frame))
        activity = self._classifier.classify(frame)
        return self._machine.on_listening_frame(self._session, frame, activity)

    def apply_result(self, segments: list[str]) -> list[SessionEvent]:
        """Filter recognized segments and append the survivors to the transcript."""
        events: list[SessionEvent] = []
        for raw in segments:
            text = raw.strip()
            if not text:
                continue
            matched = self._filter.match(text)
            if matched is not None:
                self._session.filtered_segments += 1
                log.info('Filtered hallucination %r (matched %r)', text, matched)
                events.append(SegmentFiltered(text=text, matched=matched))
                continue
            if self._assembler.accept(self._session, text):
                events.append(SegmentAccepted(text=text, running_text=self.running_text))
        return events

    def apply_failure(self, error: BaseException) -> list[SessionEvent]:
        """Record a failed recognition call; the chunk counts as recognizing nothing."""
        self._session.failed_recognitions += 1
        log.warning('Recognition failed: %s', error)
        return [RecognitionFailed(error=str(error))]

    def final_pass_audio(self) -> np.ndarray | None:
        return self._machine.final_pass_audio(self._session)

    def finalize(self, reason: str) -> CycleFinalized:
        """Summarize and clear the cycle, returning to Idle."""
        summary = self._assembler.summarize(self._session, reason, self._sample_rate)
        if summary is not None:
            log.info(
                'Cycle finalized (%s): %.1fs, %d words',
                reason,
                summary.duration,
                summary.word_count,
            )
        else:
            log.info('Cycle finalized (%s) with no transcript', reason)
        self._machine.finish_cycle(self._session)
        self._detector.reset()
        return CycleFinalized(reason=reason, summary=summary)

    def run_recognizer(self, audio: np.ndarray) -> list[str]:
        """Raw engine call; safe to run off-thread since it touches no session state."""
        return self._recognizer.transcribe(audio, self._options)

    # --- synchronous API ---

    def recognize(self, audio: np.ndarray) -> list[SessionEvent]:
        """Run the engine inline; failures become RecognitionFailed, never exceptions."""
        try:
            segments = self.run_recognizer(audio)
        except Exception as e:
            return self.apply_failure(e)
        return self.apply_result(segments)

    def process_frame(self, frame: np.ndarray) -> list[SessionEvent]:
        events: list[SessionEvent] = []
        for action in self.feed_frame(frame):
            if isinstance(action, RecognizeChunk):
                events.extend(self.recognize(action.audio))
            elif isinstance(action, FinalizeCycle):
                events.extend(self._close_cycle(action.reason))
            elif isinstance(action, (CycleStarted, ChunkSkipped)):
                events.append(action)
        return events

    def shutdown(self) -> list[SessionEvent]:
        """Finalize a cycle still in progress when the caller stops feeding audio."""
        if not self._session.is_listening:
            return []
        return self._close_cycle(FINALIZE_SHUTDOWN)

    def _close_cycle(self, reason: str) -> list[SessionEvent]:
        events: list[SessionEvent] = []
        tail = self.final_pass_audio()
        if tail is not None:
            events.extend(self.recognize(tail))
        events.append(self.finalize(reason))
        return events
