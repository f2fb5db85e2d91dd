"""L1 entity: per-frame voice activity classification."""

from __future__ import annotations

import enum


class VoiceActivity(enum.Enum):
    SPEECH = 'speech'
    SILENCE = 'silence'
    INDETERMINATE = 'indeterminate'
