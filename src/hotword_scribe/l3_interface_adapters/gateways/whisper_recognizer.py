"""Gateway: whisper.cpp recognizer — implements Recognizer port."""

from __future__ import annotations

import contextlib
import os
import threading

import numpy as np
from pywhispercpp.model import Model

from hotword_scribe.l1_entities.config import RecognitionOptions

_BEAM_SEARCH = 1
_GREEDY = 0


@contextlib.contextmanager
def _suppress_c_stdout():
    """Redirect C-level stdout and stderr to /dev/null.

    whisper.cpp prints init/progress messages directly via C fprintf,
    bypassing Python's sys.stdout, which would garble the console display.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    old_stdout = os.dup(1)
    old_stderr = os.dup(2)
    try:
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
        yield
    finally:
        os.dup2(old_stdout, 1)
        os.dup2(old_stderr, 2)
        os.close(devnull)
        os.close(old_stdout)
        os.close(old_stderr)


def to_float32(audio: np.ndarray) -> np.ndarray:
    """int16 PCM → float32 in [-1, 1), the layout whisper.cpp expects."""
    if audio.dtype == np.float32:
        return audio
    return audio.astype(np.float32) / 32768.0


def full_params(options: RecognitionOptions) -> dict:
    """Map recognition options onto whisper_full_params keyword arguments."""
    params: dict = {
        'language': options.language,
        'no_speech_thold': options.no_speech_threshold,
        'thold_pt': options.word_threshold,
        'temperature': options.temperature,
        'no_context': True,  # chunks overlap; carrying context repeats phrases
        'suppress_blank': True,
        'single_segment': False,
    }
    if options.beam_size > 1:
        params['beam_search'] = {'beam_size': options.beam_size, 'patience': -1.0}
    params['greedy'] = {'best_of': options.best_of}
    return params


class WhisperRecognizer:
    """pywhispercpp adapter. Handles model loading, C stdout suppression and sample conversion.

    A transcribe call may still be running on an abandoned worker thread at
    shutdown; the model lock makes close() wait for it before freeing native state.
    """

    def __init__(self, beam_search: bool = True) -> None:
        self._model: Model | None = None
        self._strategy = _BEAM_SEARCH if beam_search else _GREEDY
        self._lock = threading.Lock()

    def close(self) -> None:
        """Explicitly release the model, suppressing C-level teardown noise."""
        with self._lock:
            if self._model is not None:
                with _suppress_c_stdout():
                    del self._model
                    self._model = None

    def load_model(self, model_path: str) -> None:
        with _suppress_c_stdout():
            self._model = Model(
                model_path,
                params_sampling_strategy=self._strategy,
                print_progress=False,
                print_realtime=False,
            )

    def transcribe(self, audio: np.ndarray, options: RecognitionOptions) -> list[str]:
        with self._lock:
            if self._model is None:
                raise RuntimeError('Model not loaded. Call load_model() first.')
            with _suppress_c_stdout():
                raw_segments = self._model.transcribe(to_float32(audio), **full_params(options))

        result: list[str] = []
        for seg in raw_segments:
            text = seg.text.strip()
            if text:
                result.append(text)
        return result
