"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from hotword_scribe.l1_entities.audio_constants import SAMPLE_RATE


class OverlapPolicy(BaseModel):
    """Fractions of a chunk retained at the front of the buffer after extraction."""

    first: float = Field(ge=0.0, lt=1.0)
    subsequent: float = Field(ge=0.0, lt=1.0)
    skipped: float = Field(ge=0.0, lt=1.0)

    @model_validator(mode='after')
    def _check_ordering(self) -> OverlapPolicy:
        # Overlap must never grow as a cycle progresses; skipped chunks keep the most context.
        if self.subsequent > self.first:
            raise ValueError('subsequent overlap must not exceed first-chunk overlap')
        if self.first > self.skipped:
            raise ValueError('skipped-chunk overlap must be at least the first-chunk overlap')
        return self


class SpeechGateConfig(BaseModel):
    min_rms: float = Field(ge=0.0)
    sample_threshold: int = Field(ge=0)
    min_activity_ratio: float = Field(ge=0.0, le=1.0)


class RecognitionOptions(BaseModel):
    """Quality knobs handed to the recognition engine untouched."""

    language: str
    beam_size: int = 5
    best_of: int = 5
    no_speech_threshold: float = 0.6
    word_threshold: float = 0.01
    temperature: float = 0.0
    gpu_layers: int = 0

    @property
    def use_gpu(self) -> bool:
        return self.gpu_layers > 0


class StreamingConfig(BaseModel):
    chunk_samples: int = Field(gt=0)
    overlap: OverlapPolicy
    silence_frames: int = Field(gt=0)
    min_speech_frames: int = Field(ge=0)
    gate: SpeechGateConfig
    max_session_seconds: float = Field(gt=0)
    min_final_fraction: float = Field(ge=0.0, le=1.0)
    sample_rate: int = SAMPLE_RATE

    @property
    def max_session_samples(self) -> int:
        return int(self.max_session_seconds * self.sample_rate)

    @property
    def min_final_samples(self) -> int:
        return int(self.chunk_samples * self.min_final_fraction)


class RecognitionConfig(BaseModel):
    engine: str  # 'subprocess' | 'inprocess' | 'cli'
    model: str
    language: str
    beam_size: int
    best_of: int
    no_speech_threshold: float
    word_threshold: float
    temperature: float
    gpu_layers: int
    whisper_cli: str | None = None
    timeout: float = 120.0

    def options(self) -> RecognitionOptions:
        return RecognitionOptions(
            language=self.language,
            beam_size=self.beam_size,
            best_of=self.best_of,
            no_speech_threshold=self.no_speech_threshold,
            word_threshold=self.word_threshold,
            temperature=self.temperature,
            gpu_layers=self.gpu_layers,
        )


class HotwordConfig(BaseModel):
    model: str | None = None  # None → openwakeword's bundled models
    threshold: float = Field(ge=0.0, le=1.0)


class VadConfig(BaseModel):
    aggressiveness: int = Field(ge=0, le=3)
    speech_ratio: float = Field(ge=0.0, le=1.0)


class FilterConfig(BaseModel):
    extra_phrases: list[str] = Field(default_factory=list)
    extra_standalone: list[str] = Field(default_factory=list)


class AudioConfig(BaseModel):
    queue_frames: int = Field(gt=0)
    device: str | int | None = None


class AppConfig(BaseModel):
    streaming: StreamingConfig
    recognition: RecognitionConfig
    hotword: HotwordConfig
    vad: VadConfig
    filter: FilterConfig
    audio: AudioConfig
