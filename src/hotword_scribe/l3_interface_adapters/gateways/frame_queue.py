"""Gateway helper: bounded single-producer/single-consumer frame queue."""

from __future__ import annotations

import collections
import threading

import numpy as np


class BoundedFrameQueue:
    """Decouples the capture callback from the processing loop.

    ``put()`` never blocks: when the queue is full the oldest frame is dropped
    and counted, so a slow consumer costs audio, not a stalled capture thread.
    """

    def __init__(self, maxlen: int) -> None:
        if maxlen <= 0:
            raise ValueError('maxlen must be positive')
        self._frames: collections.deque[np.ndarray] = collections.deque()
        self._maxlen = maxlen
        self._cond = threading.Condition()
        self._dropped = 0

    @property
    def dropped(self) -> int:
        return self._dropped

    def __len__(self) -> int:
        with self._cond:
            return len(self._frames)

    def put(self, frame: np.ndarray) -> None:
        with self._cond:
            if len(self._frames) >= self._maxlen:
                self._frames.popleft()
                self._dropped += 1
            self._frames.append(frame)
            self._cond.notify()

    def get(self, timeout: float) -> np.ndarray | None:
        """Pop the oldest frame, waiting up to *timeout* seconds. None on timeout."""
        with self._cond:
            if not self._frames and not self._cond.wait_for(lambda: bool(self._frames), timeout=timeout):
                return None
            return self._frames.popleft()
