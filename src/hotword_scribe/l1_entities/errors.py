"""Domain error types."""


class ModelResolutionError(Exception):
    """Raised when a whisper model cannot be resolved to a local path."""


class AudioDeviceError(Exception):
    """Raised when no usable audio input device can be opened."""


class DetectorInitError(Exception):
    """Raised when hotword or voice-activity resources fail to load."""


class RecognitionError(Exception):
    """Raised by a recognition engine when a single transcription call fails."""
