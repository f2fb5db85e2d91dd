"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from hotword_scribe.l1_entities.config import AppConfig
from hotword_scribe.l2_use_cases.hallucination_filter import HallucinationFilter
from hotword_scribe.l2_use_cases.ports.audio_source import AudioSource
from hotword_scribe.l2_use_cases.ports.hotword_detector import HotwordDetector
from hotword_scribe.l2_use_cases.ports.model_resolver import ModelResolver
from hotword_scribe.l2_use_cases.ports.recognizer import Recognizer
from hotword_scribe.l2_use_cases.ports.voice_activity_classifier import VoiceActivityClassifier
from hotword_scribe.l2_use_cases.session_state_machine import SessionStateMachine
from hotword_scribe.l2_use_cases.transcribe_session_use_case import TranscribeSessionUseCase
from hotword_scribe.l3_interface_adapters.gateways.hf_model_resolver import HfModelResolver

log = logging.getLogger('hws.cli')


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing.

    Construction is cheap; the ``build_*`` methods load models and may raise
    the startup errors the CLI turns into a non-zero exit.
    """

    def __init__(
        self,
        config: AppConfig,
        audio_file: Path | None = None,
        on_download_progress: Callable[[int], None] | None = None,
    ) -> None:
        self.config = config
        self.audio_file = audio_file
        self.model_resolver: ModelResolver = HfModelResolver(on_progress=on_download_progress)

    def build_recognizer(self) -> Recognizer:
        rc = self.config.recognition
        model_path = self.model_resolver.resolve(rc.model)
        recognizer: Recognizer
        if rc.engine == 'cli':
            from hotword_scribe.l3_interface_adapters.gateways.whisper_cli_recognizer import (  # noqa: PLC0415 -- deferred: engine chosen at runtime
                WhisperCliRecognizer,
            )

            recognizer = WhisperCliRecognizer(executable=rc.whisper_cli, timeout=rc.timeout)
        elif rc.engine == 'inprocess':
            from hotword_scribe.l3_interface_adapters.gateways.whisper_recognizer import (  # noqa: PLC0415 -- deferred: pywhispercpp loaded only for this engine
                WhisperRecognizer,
            )

            recognizer = WhisperRecognizer(beam_search=rc.beam_size > 1)
        else:
            from hotword_scribe.l3_interface_adapters.gateways.subprocess_whisper_recognizer import (  # noqa: PLC0415 -- deferred: subprocess spawned only when needed
                SubprocessWhisperRecognizer,
            )

            recognizer = SubprocessWhisperRecognizer(timeout=rc.timeout, beam_search=rc.beam_size > 1)
        if rc.engine != 'cli' and rc.gpu_layers > 0:
            log.warning('gpu_layers=%d is not supported by the %s engine; ignoring it', rc.gpu_layers, rc.engine)
        log.info('Loading %s recognizer with model %s', rc.engine, model_path)
        try:
            recognizer.load_model(model_path)
        except Exception:
            recognizer.close()  # clean up any partially-started subprocess
            raise
        return recognizer

    def build_detector(self) -> HotwordDetector:
        from hotword_scribe.l3_interface_adapters.gateways.openwakeword_detector import (  # noqa: PLC0415 -- deferred: onnx/tflite runtime is heavy
            OpenWakeWordDetector,
        )

        return OpenWakeWordDetector(model=self.config.hotword.model, threshold=self.config.hotword.threshold)

    def build_classifier(self) -> VoiceActivityClassifier:
        from hotword_scribe.l3_interface_adapters.gateways.webrtc_vad_classifier import (  # noqa: PLC0415 -- deferred: not loaded on --help
            WebRtcVadClassifier,
        )

        vad = self.config.vad
        return WebRtcVadClassifier(aggressiveness=vad.aggressiveness, speech_ratio=vad.speech_ratio)

    def build_audio_source(self) -> AudioSource:
        if self.audio_file is not None:
            from hotword_scribe.l3_interface_adapters.gateways.audio_file_source import (  # noqa: PLC0415 -- deferred: file replay only
                FileAudioSource,
            )

            return FileAudioSource.from_path(self.audio_file)

        from hotword_scribe.l3_interface_adapters.gateways.sounddevice_audio_source import (  # noqa: PLC0415 -- deferred: PortAudio loaded only when capturing
            SounddeviceAudioSource,
        )

        audio = self.config.audio
        return SounddeviceAudioSource(queue_frames=audio.queue_frames, device=audio.device)

    def build_use_case(
        self,
        recognizer: Recognizer,
        detector: HotwordDetector,
        classifier: VoiceActivityClassifier,
    ) -> TranscribeSessionUseCase:
        flt = self.config.filter
        return TranscribeSessionUseCase(
            machine=SessionStateMachine(self.config.streaming),
            detector=detector,
            classifier=classifier,
            recognizer=recognizer,
            options=self.config.recognition.options(),
            hallucination_filter=HallucinationFilter.with_extras(flt.extra_phrases, flt.extra_standalone),
            sample_rate=self.config.streaming.sample_rate,
        )
