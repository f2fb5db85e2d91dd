"""Gateway: sounddevice audio source — implements AudioSource port."""

from __future__ import annotations

import logging

import numpy as np
import sounddevice as sd

from hotword_scribe.l1_entities.audio_constants import CHANNELS, FRAME_SAMPLES, SAMPLE_RATE
from hotword_scribe.l1_entities.errors import AudioDeviceError
from hotword_scribe.l3_interface_adapters.gateways.frame_queue import BoundedFrameQueue

log = logging.getLogger('hws.audio')


class SounddeviceAudioSource:
    """Wraps sounddevice.InputStream to deliver fixed-size int16 frames.

    The PortAudio callback only copies into a bounded queue, so a slow
    recognition call never delays capture; overflow drops the oldest frames.
    """

    def __init__(
        self,
        frame_samples: int = FRAME_SAMPLES,
        queue_frames: int = 250,
        device: str | int | None = None,
    ) -> None:
        self._frame_samples = frame_samples
        self._device = device
        self._stream: sd.InputStream | None = None
        self._queue = BoundedFrameQueue(queue_frames)

    @property
    def dropped_frames(self) -> int:
        return self._queue.dropped

    @property
    def exhausted(self) -> bool:
        return False

    def open(self, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS) -> None:
        def _callback(indata, frames, time_info, status):
            if status:
                log.debug('Input stream status: %s', status)
            self._queue.put(indata[:, 0].copy())

        try:
            self._stream = sd.InputStream(
                samplerate=sample_rate,
                channels=channels,
                dtype='int16',
                blocksize=self._frame_samples,
                device=self._device,
                callback=_callback,
            )
            self._stream.start()
        except Exception as e:
            self._stream = None
            raise AudioDeviceError(f'Cannot open audio input: {e}') from e

    def read(self, timeout: float = 0.1) -> np.ndarray | None:
        return self._queue.get(timeout=timeout)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        if self._queue.dropped:
            log.warning('Dropped %d audio frames while processing lagged', self._queue.dropped)
