"""Use case: front extraction of chunks from the session buffer and overlap retention."""

from __future__ import annotations

import numpy as np

from hotword_scribe.l1_entities.config import OverlapPolicy
from hotword_scribe.l1_entities.session import Session


class ChunkWindow:
    """Slices the session buffer into fixed-size chunks with a two-tier overlap.

    A chunk is always the first ``chunk_samples`` samples of the buffer. After a
    chunk is handled, ``chunk_samples - retained`` samples are dropped from the
    front, so the retained tail reappears unchanged at the start of the next
    chunk. Overlap never grows within a cycle: first chunk >= subsequent chunks;
    a gate-rejected chunk keeps the largest overlap since nothing was recognized.
    """

    def __init__(self, chunk_samples: int, overlap: OverlapPolicy) -> None:
        self._chunk_samples = chunk_samples
        self._first = int(chunk_samples * overlap.first)
        self._subsequent = int(chunk_samples * overlap.subsequent)
        self._skipped = int(chunk_samples * overlap.skipped)

    @property
    def chunk_samples(self) -> int:
        return self._chunk_samples

    def has_chunk(self, session: Session) -> bool:
        return len(session.audio_buffer) >= self._chunk_samples

    def peek(self, session: Session) -> np.ndarray:
        """Copy of the candidate chunk at the front of the buffer."""
        return session.audio_buffer[: self._chunk_samples].copy()

    def retained(self, session: Session, accepted: bool) -> int:
        """Samples of the current chunk to keep for the next extraction."""
        if not accepted:
            return self._skipped
        if session.chunk_index == 0:
            return self._first
        return self._subsequent

    def consume(self, session: Session, accepted: bool) -> int:
        """Retire the front chunk, keeping its overlap tail. Returns samples kept."""
        keep = self.retained(session, accepted)
        session.audio_buffer = session.audio_buffer[self._chunk_samples - keep :]
        if accepted:
            session.chunk_index += 1
        return keep
