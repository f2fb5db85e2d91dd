"""Worker status messages posted alongside session events."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ListenerStatus:
    """Lifecycle of the listener worker: 'ready', 'stopping', 'stopped' or 'error'."""

    status: str
    error: str = ''


@dataclass(frozen=True)
class FramesDropped:
    """Posted on shutdown when capture overflowed the frame queue."""

    count: int
