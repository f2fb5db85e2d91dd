"""Use case: accumulate accepted segments into the cycle transcript."""

from __future__ import annotations

from hotword_scribe.l1_entities.session import Session
from hotword_scribe.l1_entities.transcript import SessionSummary


def normalize(text: str) -> str:
    """Collapse runs of whitespace to one space and trim both ends."""
    return ' '.join(text.split())


def count_words(text: str) -> int:
    return text.count(' ') + 1 if text else 0


class TranscriptAssembler:
    def accept(self, session: Session, text: str) -> bool:
        """Append *text* to the transcript. Empty or blank text is ignored."""
        cleaned = normalize(text)
        if not cleaned:
            return False
        session.transcript.append(cleaned)
        session.started = True
        return True

    def running_text(self, session: Session) -> str:
        return ' '.join(session.transcript)

    def summarize(self, session: Session, reason: str, sample_rate: int) -> SessionSummary | None:
        """Build the final summary, or None when nothing was accepted this cycle."""
        if not session.started:
            return None
        text = normalize(self.running_text(session))
        return SessionSummary(
            text=text,
            duration=session.total_samples / sample_rate,
            word_count=count_words(text),
            segment_count=len(session.transcript),
            reason=reason,
            skipped_chunks=session.skipped_chunks,
            filtered_segments=session.filtered_segments,
            failed_recognitions=session.failed_recognitions,
        )
