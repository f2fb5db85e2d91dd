"""Gateway: whisper-cli executable recognizer — implements Recognizer port.

Each chunk is written to a temporary WAV file and handed to the whisper.cpp
command-line tool. Its console output mixes transcript lines with model and
backend diagnostics; the parsing below is private to this adapter.
"""

from __future__ import annotations

import logging
import shutil
import subprocess  # noqa: S404 -- intentional: runs whisper-cli with a fixed arg list, not shell=True
import tempfile
import wave
from pathlib import Path

import numpy as np

from hotword_scribe.l1_entities.audio_constants import CHANNELS, SAMPLE_RATE, SAMPLE_WIDTH
from hotword_scribe.l1_entities.config import RecognitionOptions
from hotword_scribe.l1_entities.errors import RecognitionError

log = logging.getLogger('hws.recognizer')

DEFAULT_EXECUTABLE = 'whisper-cli'

_NOISE_PREFIXES = (
    'system_info:',
    'whisper_print_timings:',
    'main:',
    'ggml',
    'whisper_',
    'whisper:',
    'memcpy(',
    'AVX',
    'load time',
    'fallbacks',
    'mel time',
    'sample time',
    'encode time',
    'decode time',
    'batchd time',
    'prompt time',
    'total time',
    'auto-detected language:',
    "processing '",
    'threads',
    'processors',
    'beams',
    'lang =',
    'task =',
    'timestamps =',
    'Device 0:',
    'compute capability',
    'VMM:',
    'use gpu',
    'flash attn',
    'gpu_device',
    'dtw',
    'devices',
    'backends',
    'n_vocab',
    'n_audio',
    'n_text',
    'n_mels',
    'ftype',
    'qntvr',
    'type',
    'adding',
    'extra tokens',
    'n_langs',
    'CUDA0 total size',
    'model size',
    'using CUDA',
    'kv self size',
    'kv cross size',
    'kv pad size',
    'compute buffer',
    'WHISPER :',
    'CPU :',
)


def _write_wav(path: Path, audio: np.ndarray) -> None:
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(CHANNELS)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(np.asarray(audio, dtype=np.int16).tobytes())


def _parse_line(line: str) -> str | None:
    """Transcript text carried by one console line, or None for diagnostics."""
    line = line.strip()
    if not line:
        return None
    if line.startswith('['):
        close = line.find(']')
        if close != -1:
            # "[00:00:00.000 --> 00:00:03.000]  text"
            return line[close + 1 :].strip() or None
    if line.startswith(_NOISE_PREFIXES):
        return None
    return line


def parse_output(output: str) -> list[str]:
    segments: list[str] = []
    for line in output.splitlines():
        text = _parse_line(line)
        if text:
            segments.append(text)
    return segments


class WhisperCliRecognizer:
    """Runs one whisper-cli process per chunk."""

    def __init__(self, executable: str | None = None, timeout: float = 120.0) -> None:
        self._executable = executable or DEFAULT_EXECUTABLE
        self._timeout = timeout
        self._exe_path: str | None = None
        self._model_path: str | None = None

    def load_model(self, model_path: str) -> None:
        exe = shutil.which(self._executable)
        if exe is None:
            raise FileNotFoundError(f'whisper-cli executable not found: {self._executable}')
        if not Path(model_path).exists():
            raise FileNotFoundError(f'Whisper model not found: {model_path}')
        self._exe_path = exe
        self._model_path = model_path

    def command(self, wav_path: Path, options: RecognitionOptions) -> list[str]:
        if self._exe_path is None or self._model_path is None:
            raise RuntimeError('Model not loaded. Call load_model() first.')
        cmd = [self._exe_path, '-l', options.language, '-m', self._model_path]
        if not options.use_gpu:
            cmd.append('--no-gpu')
        cmd += [
            '--best-of',
            str(options.best_of),
            '--beam-size',
            str(options.beam_size),
            '--no-speech-thold',
            str(options.no_speech_threshold),
            '--word-thold',
            str(options.word_threshold),
            '--temperature',
            str(options.temperature),
            '-f',
            str(wav_path),
        ]
        return cmd

    def transcribe(self, audio: np.ndarray, options: RecognitionOptions) -> list[str]:
        with tempfile.TemporaryDirectory(prefix='hws-') as tmp:
            wav_path = Path(tmp) / 'chunk.wav'
            _write_wav(wav_path, audio)
            cmd = self.command(wav_path, options)
            log.debug('Running %s', ' '.join(cmd))
            try:
                result = subprocess.run(  # noqa: S603
                    cmd,
                    capture_output=True,
                    text=True,
                    encoding='utf-8',
                    errors='replace',
                    timeout=self._timeout,
                )
            except subprocess.TimeoutExpired as exc:
                raise RecognitionError(f'whisper-cli timed out after {self._timeout:.0f}s') from exc
            except OSError as exc:
                raise RecognitionError(f'Failed to launch whisper-cli: {exc}') from exc

        if result.returncode != 0:
            raise RecognitionError(f'whisper-cli exited with code {result.returncode}: {result.stderr.strip()[-500:]}')

        segments = parse_output(result.stdout)
        if not segments:
            log.debug('No transcript lines in whisper-cli output')
        return segments

    def close(self) -> None:
        self._exe_path = None
        self._model_path = None
