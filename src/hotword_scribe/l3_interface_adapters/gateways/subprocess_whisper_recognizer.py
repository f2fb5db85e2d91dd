"""Gateway: whisper recognizer in a subprocess — avoids GIL contention with capture."""

from __future__ import annotations

import multiprocessing as mp
import os
import time
from multiprocessing.connection import Connection
from typing import Any

import numpy as np

from hotword_scribe.l1_entities.config import RecognitionOptions
from hotword_scribe.l1_entities.errors import RecognitionError


def _subprocess_entry(model_path: str, conn: Any, beam_search: bool = True) -> None:
    """Subprocess main: load model via WhisperRecognizer, loop on requests.

    Permanently redirects C-level stdout/stderr to /dev/null so whisper.cpp's
    fprintf() calls do not escape to the parent console.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, 1)
    os.dup2(devnull, 2)
    os.close(devnull)

    try:
        from hotword_scribe.l3_interface_adapters.gateways.whisper_recognizer import (  # noqa: PLC0415 -- deferred: subprocess only
            WhisperRecognizer,
        )

        recognizer = WhisperRecognizer(beam_search=beam_search)
        recognizer.load_model(model_path)
    except Exception as e:
        conn.send({'status': 'error', 'error': str(e)})
        conn.close()
        return

    conn.send({'status': 'ready'})

    while True:
        req = conn.recv()
        if req is None:
            break
        try:
            options = RecognitionOptions.model_validate(req['options'])
            segments = recognizer.transcribe(req['audio'], options)
            conn.send({'id': req['id'], 'status': 'ok', 'segments': segments})
        except Exception as e:
            conn.send({'id': req.get('id'), 'status': 'error', 'error': str(e)})

    recognizer.close()
    conn.close()


class SubprocessWhisperRecognizer:
    """Whisper recognizer that runs inference in a child process.

    whisper.cpp's C extension holds the Python GIL for the full duration of
    inference. The PortAudio capture callback needs the GIL too, so running
    inference in-process would stall capture; a spawned child keeps the
    parent's capture and processing threads responsive.
    """

    def __init__(self, timeout: float = 120.0, beam_search: bool = True) -> None:
        self._timeout = timeout
        self._beam_search = beam_search
        self._in_flight = False
        self._process: Any = None  # SpawnProcess
        self._conn: Connection | None = None
        self._seq = 0

    def load_model(self, model_path: str) -> None:
        ctx = mp.get_context('spawn')
        parent_conn, child_conn = ctx.Pipe(duplex=True)
        self._process = ctx.Process(
            target=_subprocess_entry,
            args=(model_path, child_conn, self._beam_search),
            daemon=True,
        )
        self._process.start()
        child_conn.close()  # parent only needs its own end
        self._conn = parent_conn

        try:
            if not self._conn.poll(timeout=self._timeout):
                raise RuntimeError('Timeout waiting for model load')
            result = self._conn.recv()
        except EOFError as e:
            raise RuntimeError('Whisper subprocess exited unexpectedly during model load') from e

        if result.get('status') != 'ready':
            raise RuntimeError(f'Whisper subprocess failed to init: {result.get("error", "unknown")}')

    def transcribe(self, audio: np.ndarray, options: RecognitionOptions) -> list[str]:
        conn = self._conn
        if conn is None:
            raise RuntimeError('Model not loaded. Call load_model() first.')
        self._seq += 1
        self._in_flight = True
        conn.send({'id': self._seq, 'audio': audio, 'options': options.model_dump()})
        deadline = time.monotonic() + self._timeout
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0 or not conn.poll(timeout=remaining):
                    raise RecognitionError('Timeout waiting for transcription result')
                result = conn.recv()
                # A reply to a request that already timed out is stale; skip it.
                if result.get('id') == self._seq:
                    break
        except (EOFError, OSError) as e:
            raise RecognitionError('Whisper subprocess exited unexpectedly during transcription') from e
        finally:
            self._in_flight = False

        if result.get('status') == 'error':
            raise RecognitionError(result['error'])
        return list(result.get('segments', []))

    def close(self) -> None:
        if self._in_flight and self._process is not None:
            # An abandoned request is still running; the child cannot take the sentinel.
            self._process.terminate()
        if self._conn is not None:
            try:
                self._conn.send(None)
            except Exception:  # noqa: S110 -- pipe may already be closed
                pass
            try:
                self._conn.close()
            except Exception:  # noqa: S110 -- ignore double-close
                pass
            self._conn = None
        if self._process is not None:
            self._process.join(timeout=5)
            if self._process.is_alive():
                self._process.terminate()
                self._process.join(timeout=1)  # reap zombie after SIGTERM
            self._process = None
