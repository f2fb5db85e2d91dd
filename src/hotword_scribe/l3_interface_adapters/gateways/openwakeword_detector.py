"""Gateway: openWakeWord hotword detector — implements HotwordDetector port."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from openwakeword.model import Model

from hotword_scribe.l1_entities.errors import DetectorInitError

log = logging.getLogger('hws.hotword')


def hotword_label(model: str | None) -> str:
    """Human-readable hotword name derived from a model path or name."""
    if not model:
        return 'any bundled hotword'
    stem = Path(model).stem
    for suffix in ('_v0.1', '_v0', '.tflite', '.onnx'):
        stem = stem.removesuffix(suffix)
    return stem.replace('_', ' ')


class OpenWakeWordDetector:
    """Scores each 80 ms frame and fires when any model crosses the threshold."""

    def __init__(self, model: str | None = None, threshold: float = 0.5) -> None:
        self._threshold = threshold
        kwargs: dict = {}
        if model:
            kwargs['wakeword_models'] = [model]
            if model.endswith('.onnx'):
                kwargs['inference_framework'] = 'onnx'
        try:
            self._model = Model(**kwargs)
        except Exception as e:
            raise DetectorInitError(f'Failed to load hotword model {model or "(bundled)"}: {e}') from e
        self.label = hotword_label(model)

    def detect(self, frame: np.ndarray) -> bool:
        scores = self._model.predict(np.asarray(frame, dtype=np.int16))
        for name, score in scores.items():
            if score >= self._threshold:
                log.debug('Hotword %s scored %.3f', name, score)
                return True
        return False

    def reset(self) -> None:
        self._model.reset()
