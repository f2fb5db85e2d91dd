"""Gateway: HuggingFace model resolver — implements ModelResolver port."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from huggingface_hub import hf_hub_download
from platformdirs import user_cache_path

from hotword_scribe.l1_entities.errors import ModelResolutionError

log = logging.getLogger('hws.models')

WHISPER_CPP_REPO = 'ggerganov/whisper.cpp'
WHISPER_CPP_MODELS = {
    'large-v3': 'ggml-large-v3.bin',
    'large-v3-q5_0': 'ggml-large-v3-q5_0.bin',
    'large-v3-turbo': 'ggml-large-v3-turbo.bin',
    'large-v3-turbo-q8_0': 'ggml-large-v3-turbo-q8_0.bin',
    'large-v3-turbo-q5_0': 'ggml-large-v3-turbo-q5_0.bin',
    'medium': 'ggml-medium.bin',
    'medium.en': 'ggml-medium.en.bin',
    'small': 'ggml-small.bin',
    'small.en': 'ggml-small.en.bin',
    'base': 'ggml-base.bin',
    'base.en': 'ggml-base.en.bin',
    'tiny': 'ggml-tiny.bin',
    'tiny.en': 'ggml-tiny.en.bin',
}

MODELS_DIR = user_cache_path('hotword-scribe') / 'models'


def _make_progress_class(callback: Callable[[int], None]) -> type:
    """Create a tqdm-compatible class that reports download progress via *callback*."""

    class _ProgressReporter:
        def __init__(self, *args, **kwargs):
            self.total: int = kwargs.get('total', 0) or 0
            self.n: int = 0
            self._last = -1

        def update(self, n: int = 1) -> None:
            self.n += n
            if self.total > 0:
                percent = min(int(self.n / self.total * 100), 100)
                if percent != self._last:
                    self._last = percent
                    callback(percent)

        def close(self) -> None:
            pass

        def set_description(self, *a, **kw) -> None:
            pass

        def __enter__(self):
            return self

        def __exit__(self, *args):
            self.close()

    return _ProgressReporter


class HfModelResolver:
    """Resolves ggml model names or paths to local files, downloading known names from HF."""

    def __init__(
        self,
        on_progress: Callable[[int], None] | None = None,
        models_dir: Path = MODELS_DIR,
    ) -> None:
        self._on_progress = on_progress
        self._models_dir = models_dir

    def resolve(self, model_name: str) -> str:
        path = Path(model_name).expanduser()
        if path.suffix == '.bin' or path.is_absolute() or len(path.parts) > 1:
            if not path.exists():
                raise ModelResolutionError(f'Model file not found: {path}')
            return str(path)

        if model_name not in WHISPER_CPP_MODELS:
            known = ', '.join(sorted(WHISPER_CPP_MODELS))
            raise ModelResolutionError(f'Unknown model {model_name!r}. Use a path to a ggml file or one of: {known}')

        filename = WHISPER_CPP_MODELS[model_name]
        local_path = self._models_dir / filename
        if local_path.exists():
            return str(local_path)

        self._models_dir.mkdir(parents=True, exist_ok=True)
        log.info('Downloading %s from %s', filename, WHISPER_CPP_REPO)
        kwargs: dict = dict(repo_id=WHISPER_CPP_REPO, filename=filename, local_dir=self._models_dir)
        if self._on_progress is not None:
            kwargs['tqdm_class'] = _make_progress_class(self._on_progress)
        try:
            return hf_hub_download(**kwargs)
        except Exception as e:
            raise ModelResolutionError(f'Failed to download {model_name}: {e}') from e
