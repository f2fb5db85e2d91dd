"""Application config defaults — lives in L4, not domain."""

from __future__ import annotations

import copy

from hotword_scribe.l1_entities.config import AppConfig
from hotword_scribe.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'streaming': {
        'chunk_samples': 48_000,  # 3 s
        'overlap': {
            'first': 1 / 16,
            'subsequent': 1 / 32,
            'skipped': 1 / 4,
        },
        'silence_frames': 25,  # ~2 s of 80 ms frames
        'min_speech_frames': 3,
        'gate': {
            'min_rms': 50.0,
            'sample_threshold': 200,
            'min_activity_ratio': 0.005,
        },
        'max_session_seconds': 60.0,
        'min_final_fraction': 0.5,
    },
    'recognition': {
        'engine': 'subprocess',
        'model': 'large-v3',
        'language': 'auto',
        'beam_size': 5,
        'best_of': 5,
        'no_speech_threshold': 0.6,
        'word_threshold': 0.005,
        'temperature': 0.0,
        'gpu_layers': 0,
        'whisper_cli': None,
        'timeout': 120.0,
    },
    'hotword': {
        'model': None,
        'threshold': 0.5,
    },
    'vad': {
        'aggressiveness': 2,
        'speech_ratio': 0.5,
    },
    'filter': {
        'extra_phrases': [],
        'extra_standalone': [],
    },
    'audio': {
        'queue_frames': 250,  # 20 s of 80 ms frames
        'device': None,
    },
}

ENGINES = ('subprocess', 'inprocess', 'cli')


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    config = AppConfig.model_validate(merged)
    if config.recognition.engine not in ENGINES:
        raise ValueError(f'Unknown recognition engine {config.recognition.engine!r}; expected one of {ENGINES}')
    return config
