"""Use case: reject text the recognition engine invents on silence or noise."""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable

# Matched anywhere in a segment, case-insensitively.
DEFAULT_PHRASES: tuple[str, ...] = (
    'υπότιτλοι',
    'authorwave',
    'subtitles',
    'subtitle',
    'closed captions',
    'captioning',
    'transcription',
    'transcript',
    'audio',
    'music',
    '[music]',
    '[sound]',
    '[noise]',
    '[silence]',
    '[inaudible]',
    'thank you',
    'thanks for watching',
    'subscribe',
    'like and subscribe',
    'www.',
    '.com',
    'http',
    'https',
    'undertekster',
    'ai-media',
    'ai media',
    'undertekst',
    'tekster',
    'untertitel',
    'sous-titres',
    'legendas',
    'sottotitoli',
)

# Matched against the whole segment once punctuation and whitespace are gone.
DEFAULT_STANDALONE: tuple[str, ...] = (
    'thankyou',
    'thankyouforwatching',
    'thanks',
    'thanksforwatching',
    'subscribe',
    'likeandsubscribe',
    'pleasesubscribe',
)


def squash(text: str) -> str:
    """Lower-case *text* and drop every punctuation and whitespace character."""
    return ''.join(
        ch for ch in text.lower() if not ch.isspace() and not unicodedata.category(ch).startswith('P')
    )


class HallucinationFilter:
    def __init__(
        self,
        phrases: Iterable[str] = DEFAULT_PHRASES,
        standalone: Iterable[str] = DEFAULT_STANDALONE,
    ) -> None:
        self._phrases = tuple(p.lower() for p in phrases if p)
        self._standalone = frozenset(squash(s) for s in standalone if s)

    @classmethod
    def with_extras(cls, extra_phrases: Iterable[str] = (), extra_standalone: Iterable[str] = ()) -> HallucinationFilter:
        return cls(
            phrases=(*DEFAULT_PHRASES, *extra_phrases),
            standalone=(*DEFAULT_STANDALONE, *extra_standalone),
        )

    def match(self, text: str) -> str | None:
        """Return the artifact *text* matched, or None if it looks like real speech."""
        lowered = text.lower()
        for phrase in self._phrases:
            if phrase in lowered:
                return phrase

        squashed = squash(text)
        if squashed in self._standalone:
            return squashed
        return None

    def is_hallucination(self, text: str) -> bool:
        return self.match(text) is not None
