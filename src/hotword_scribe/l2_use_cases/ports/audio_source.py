"""Port: audio capture source."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class AudioSource(Protocol):
    """Abstract audio input stream producing mono int16 frames."""

    def open(self, sample_rate: int, channels: int) -> None:
        """Open the audio stream. Raises AudioDeviceError if no device is usable."""
        ...

    def read(self, timeout: float) -> np.ndarray | None:
        """Read one frame. Returns None on timeout."""
        ...

    @property
    def dropped_frames(self) -> int:
        """Frames discarded because the consumer fell behind."""
        ...

    @property
    def exhausted(self) -> bool:
        """True once a finite source has no frames left. Live capture never runs dry."""
        ...

    def close(self) -> None:
        """Close the audio stream."""
        ...
