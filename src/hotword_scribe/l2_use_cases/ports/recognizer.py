"""Port: chunk-oriented speech recognition engine."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from hotword_scribe.l1_entities.config import RecognitionOptions


class Recognizer(Protocol):
    """Abstract recognition engine. Zero framework types leak through."""

    def load_model(self, model_path: str) -> None:
        """Load the recognition model from the given path."""
        ...

    def transcribe(self, audio: np.ndarray, options: RecognitionOptions) -> list[str]:
        """Recognize a bounded int16 buffer. Returns zero or more text segments."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
