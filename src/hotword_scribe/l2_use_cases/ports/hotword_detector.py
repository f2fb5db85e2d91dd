"""Port: hotword (wake word) detector."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class HotwordDetector(Protocol):
    def detect(self, frame: np.ndarray) -> bool:
        """Return True when the hotword ends in *frame*."""
        ...

    def reset(self) -> None:
        """Forget streaming state so a finished cycle cannot re-trigger."""
        ...
