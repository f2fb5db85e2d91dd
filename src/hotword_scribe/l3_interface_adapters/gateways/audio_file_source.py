"""Gateway: audio file source — replays a decoded file as capture frames."""

from __future__ import annotations

import shutil
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True
from pathlib import Path

import numpy as np

from hotword_scribe.l1_entities.audio_constants import FRAME_SAMPLES, SAMPLE_RATE
from hotword_scribe.l1_entities.errors import AudioDeviceError

_FFMPEG_TIMEOUT = 300  # seconds


def load_audio_file(path: Path) -> np.ndarray:
    """Load *path* using ffmpeg, returning int16 mono PCM at 16 kHz.

    Raises:
        FileNotFoundError: audio file does not exist.
        RuntimeError: ffmpeg is missing, conversion failed, timed out, or
                      the file contains no decodable audio.
    """
    if not path.exists():
        raise FileNotFoundError(f'Audio file not found: {path}')

    if shutil.which('ffmpeg') is None:
        raise RuntimeError('ffmpeg is required to read audio files but was not found on PATH.')

    cmd = ['ffmpeg', '-i', str(path), '-ar', str(SAMPLE_RATE), '-ac', '1', '-f', 's16le', '-v', 'quiet', 'pipe:1']

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=_FFMPEG_TIMEOUT)  # noqa: S603
    except subprocess.TimeoutExpired as exc:
        raise RuntimeError(f'ffmpeg timed out after {_FFMPEG_TIMEOUT}s processing: {path}') from exc
    except OSError as exc:
        raise RuntimeError(f'Failed to launch ffmpeg: {exc}') from exc

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        raise RuntimeError(f'ffmpeg exited with code {result.returncode} for: {path}\n{stderr}')

    audio = np.frombuffer(result.stdout, dtype=np.int16)
    if len(audio) == 0:
        raise RuntimeError(f'Audio file appears to be empty: {path}')
    return audio


class FileAudioSource:
    """AudioSource over an in-memory recording, for offline runs and tests.

    Frames are served as fast as they are read; ``exhausted`` turns True once
    the last (zero-padded) frame has been returned.
    """

    def __init__(self, audio: np.ndarray, frame_samples: int = FRAME_SAMPLES) -> None:
        self._audio = np.asarray(audio, dtype=np.int16)
        self._frame_samples = frame_samples
        self._pos = 0
        self._opened = False

    @classmethod
    def from_path(cls, path: Path, frame_samples: int = FRAME_SAMPLES) -> FileAudioSource:
        try:
            return cls(load_audio_file(path), frame_samples=frame_samples)
        except (FileNotFoundError, RuntimeError) as e:
            raise AudioDeviceError(str(e)) from e

    @property
    def dropped_frames(self) -> int:
        return 0

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self._audio)

    def open(self, sample_rate: int = SAMPLE_RATE, channels: int = 1) -> None:
        if sample_rate != SAMPLE_RATE or channels != 1:
            raise AudioDeviceError(f'File source only provides {SAMPLE_RATE} Hz mono audio')
        self._opened = True

    def read(self, timeout: float = 0.1) -> np.ndarray | None:
        if not self._opened or self.exhausted:
            return None
        frame = self._audio[self._pos : self._pos + self._frame_samples]
        self._pos += self._frame_samples
        if len(frame) < self._frame_samples:
            frame = np.pad(frame, (0, self._frame_samples - len(frame)))
        return frame

    def close(self) -> None:
        self._opened = False
