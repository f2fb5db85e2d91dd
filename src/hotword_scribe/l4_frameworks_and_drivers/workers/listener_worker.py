"""Thin worker shell for the processing path — connects AudioSource to TranscribeSessionUseCase."""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Callable

import numpy as np

from hotword_scribe.l1_entities.audio_constants import CHANNELS, SAMPLE_RATE
from hotword_scribe.l1_entities.session_events import (
    FINALIZE_SHUTDOWN,
    ChunkSkipped,
    CycleStarted,
    FinalizeCycle,
    RecognizeChunk,
)
from hotword_scribe.l1_entities.transcript import SessionSummary
from hotword_scribe.l2_use_cases.ports.audio_source import AudioSource
from hotword_scribe.l2_use_cases.transcribe_session_use_case import TranscribeSessionUseCase
from hotword_scribe.l4_frameworks_and_drivers.messages import FramesDropped, ListenerStatus

log = logging.getLogger('hws.audio')

_POLL_INTERVAL = 0.05


class _Abandoned(Exception):
    """The worker was cancelled while a recognition call was in flight."""


def run_listener_worker(
    post_message: Callable[[object], None],
    is_cancelled: Callable[[], bool],
    use_case: TranscribeSessionUseCase,
    audio_source: AudioSource,
    read_timeout: float = 0.1,
) -> list[SessionSummary]:
    """Frame loop: read, feed the session, run recognition off-thread, report events.

    Capture is decoupled by the audio source's bounded queue. Recognition runs
    on a single-worker executor so at most one call is in flight; while it runs
    the loop only watches for cancellation and frames wait in the queue. A call
    still running at cancellation is abandoned and its result never applied.

    Raises whatever ``audio_source.open()`` raises; device failure is fatal.
    """
    summaries: list[SessionSummary] = []
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix='hws-recognizer')

    def _recognize(audio: np.ndarray) -> None:
        future = executor.submit(use_case.run_recognizer, audio)
        # Poll for completion, not for a result: the engine may itself raise TimeoutError.
        while not concurrent.futures.wait([future], timeout=_POLL_INTERVAL).done:
            if is_cancelled():
                future.cancel()
                raise _Abandoned
        try:
            segments = future.result()
        except Exception as e:
            for event in use_case.apply_failure(e):
                post_message(event)
            return
        for event in use_case.apply_result(segments):
            post_message(event)

    def _close_cycle(reason: str) -> None:
        tail = use_case.final_pass_audio()
        if tail is not None:
            _recognize(tail)
        finalized = use_case.finalize(reason)
        if finalized.summary is not None:
            summaries.append(finalized.summary)
        post_message(finalized)

    try:
        audio_source.open(SAMPLE_RATE, CHANNELS)
    except Exception as e:
        log.error('Audio source error: %s', e, exc_info=True)
        post_message(ListenerStatus(status='error', error=str(e)))
        executor.shutdown(wait=False)
        raise

    post_message(ListenerStatus(status='ready'))
    abandoned = False
    try:
        while not is_cancelled():
            frame = audio_source.read(timeout=read_timeout)
            if frame is None:
                if audio_source.exhausted:
                    break
                continue

            for action in use_case.feed_frame(frame):
                if isinstance(action, RecognizeChunk):
                    _recognize(action.audio)
                elif isinstance(action, FinalizeCycle):
                    _close_cycle(action.reason)
                elif isinstance(action, (CycleStarted, ChunkSkipped)):
                    post_message(action)

        post_message(ListenerStatus(status='stopping'))
        if use_case.session.is_listening:
            _close_cycle(FINALIZE_SHUTDOWN)
    except _Abandoned:
        abandoned = True
        log.info('Recognition in flight at shutdown abandoned')
        post_message(ListenerStatus(status='stopping'))
        # Only text accepted before the abandoned call makes it into the summary.
        finalized = use_case.finalize(FINALIZE_SHUTDOWN)
        if finalized.summary is not None:
            summaries.append(finalized.summary)
        post_message(finalized)
    finally:
        audio_source.close()
        executor.shutdown(wait=not abandoned, cancel_futures=True)

    if audio_source.dropped_frames:
        post_message(FramesDropped(count=audio_source.dropped_frames))
    post_message(ListenerStatus(status='stopped'))
    return summaries
