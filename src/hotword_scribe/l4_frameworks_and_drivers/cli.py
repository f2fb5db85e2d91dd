"""CLI entry point for hotword-scribe."""

from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path

import click

from hotword_scribe import __version__

_GPU_DEFAULT_LAYERS = 35


def _cli_overrides(
    model: str | None,
    lang: str | None,
    ngl: int | None,
    gpu: bool,
    engine: str | None,
    whisper_cli: str | None,
    hotword_model: str | None,
) -> dict:
    """Translate command-line flags into a config override mapping."""
    recognition: dict = {}
    if model:
        recognition['model'] = model
    if lang:
        recognition['language'] = lang
    if ngl is not None:
        recognition['gpu_layers'] = ngl
    elif gpu:
        recognition['gpu_layers'] = _GPU_DEFAULT_LAYERS
    if engine:
        recognition['engine'] = engine
    if whisper_cli:
        recognition['whisper_cli'] = whisper_cli

    overrides: dict = {}
    if recognition:
        overrides['recognition'] = recognition
    if hotword_model:
        overrides['hotword'] = {'model': hotword_model}
    return overrides


def _install_stop_handler(stop: threading.Event):
    """Route Ctrl+C to *stop* so the worker can finish or abandon recognition cleanly."""

    def _handler(signum, frame):
        stop.set()

    return signal.signal(signal.SIGINT, _handler)


@click.command()
@click.option('-c', '--config', 'config_path', default=None, type=click.Path(exists=True), help='Path to YAML config file.')
@click.option('-m', '--model', default=None, help='Whisper ggml model name (e.g. large-v3) or path to a .bin file.')
@click.option('-l', '--lang', default=None, help="Language code passed to whisper, or 'auto'.")
@click.option('--ngl', type=click.IntRange(min=0), default=None, help='Model layers to offload to the GPU (0 = CPU only).')
@click.option('--gpu', is_flag=True, help=f'Shorthand for --ngl={_GPU_DEFAULT_LAYERS}.')
@click.option(
    '--engine',
    type=click.Choice(['subprocess', 'inprocess', 'cli']),
    default=None,
    help='How whisper is invoked: pywhispercpp in a child process, in-process, or the whisper-cli executable.',
)
@click.option('--whisper-cli', default=None, help='whisper-cli executable for --engine=cli.')
@click.option('--hotword-model', default=None, help='openWakeWord model name or path (.tflite / .onnx).')
@click.option(
    '-f',
    '--audio-file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Replay an audio file instead of capturing from the microphone.',
)
@click.option('--log-dir', default=None, type=click.Path(file_okay=False), help='Write a debug log into this directory.')
@click.option('-q', '--quiet', is_flag=True, help='Hide per-chunk diagnostics.')
@click.version_option(version=__version__)
def cli(config_path, model, lang, ngl, gpu, engine, whisper_cli, hotword_model, audio_file, log_dir, quiet):
    """hotword-scribe -- say the hotword, speak, and get a transcript when you stop."""
    from hotword_scribe.l1_entities.errors import (  # noqa: PLC0415 -- deferred: not needed for --help
        AudioDeviceError,
        DetectorInitError,
        ModelResolutionError,
    )
    from hotword_scribe.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from hotword_scribe.l4_frameworks_and_drivers.console_display import (  # noqa: PLC0415 -- deferred: rich not loaded on --help
        ConsoleDisplay,
    )
    from hotword_scribe.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: not needed for --help
        DependencyContainer,
    )
    from hotword_scribe.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_app_config,
    )
    from hotword_scribe.l4_frameworks_and_drivers.workers.listener_worker import (  # noqa: PLC0415 -- deferred: not needed for --help
        run_listener_worker,
    )

    overrides = _cli_overrides(model, lang, ngl, gpu, engine, whisper_cli, hotword_model)
    try:
        raw = YamlConfigLoader().load_raw(config_path, overrides=overrides or None)
        config = build_app_config(raw)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    if log_dir:
        from hotword_scribe.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: only with --log-dir
            setup_file_logging,
        )

        setup_file_logging(Path(log_dir))

    def _on_progress(percent: int) -> None:
        click.echo(f'\rDownloading {config.recognition.model}: {percent}%', err=True, nl=percent >= 100)

    container = DependencyContainer(
        config,
        audio_file=Path(audio_file) if audio_file else None,
        on_download_progress=_on_progress,
    )

    recognizer = None
    try:
        detector = container.build_detector()
        classifier = container.build_classifier()
        audio_source = container.build_audio_source()
        if not quiet:
            click.echo(f'Loading whisper model {config.recognition.model} ({config.recognition.engine})…', err=True)
        recognizer = container.build_recognizer()
    except (ModelResolutionError, DetectorInitError, AudioDeviceError, FileNotFoundError, RuntimeError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    use_case = container.build_use_case(recognizer, detector, classifier)
    display = ConsoleDisplay(hotword=getattr(detector, 'label', 'the hotword'), quiet=quiet)

    stop = threading.Event()
    previous = _install_stop_handler(stop)
    try:
        run_listener_worker(
            post_message=display,
            is_cancelled=stop.is_set,
            use_case=use_case,
            audio_source=audio_source,
        )
    except AudioDeviceError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    finally:
        signal.signal(signal.SIGINT, previous)
        recognizer.close()
