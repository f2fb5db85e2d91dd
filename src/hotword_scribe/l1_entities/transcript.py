"""Finalized transcript entity."""

from __future__ import annotations

from pydantic import BaseModel, Field


def format_duration(seconds: float) -> str:
    """Format seconds as M:SS.s for console display."""
    minutes = int(seconds // 60)
    secs = seconds - minutes * 60
    return f'{minutes}:{secs:04.1f}'


class SessionSummary(BaseModel):
    """The normalized result of one hotword-to-silence cycle."""

    text: str
    duration: float = Field(description='Seconds of audio recorded since the hotword')
    word_count: int
    segment_count: int
    reason: str = Field(description="Why the cycle ended: 'silence', 'max_duration' or 'shutdown'")
    skipped_chunks: int = 0
    filtered_segments: int = 0
    failed_recognitions: int = 0
