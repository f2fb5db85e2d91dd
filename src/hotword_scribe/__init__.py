"""hotword-scribe: hotword-gated streaming transcription on whisper.cpp."""

__version__ = '0.1.0'
