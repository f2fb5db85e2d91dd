"""Console rendering of worker messages using rich."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from hotword_scribe.l1_entities.session_events import (
    FINALIZE_MAX_DURATION,
    ChunkSkipped,
    CycleFinalized,
    CycleStarted,
    RecognitionFailed,
    SegmentAccepted,
    SegmentFiltered,
)
from hotword_scribe.l1_entities.transcript import format_duration
from hotword_scribe.l4_frameworks_and_drivers.messages import FramesDropped, ListenerStatus


class ConsoleDisplay:
    """Callable sink for ``post_message``. Diagnostics are hidden in quiet mode."""

    def __init__(self, hotword: str, console: Console | None = None, quiet: bool = False) -> None:
        self._hotword = hotword
        self._console = console or Console(highlight=False)
        self._quiet = quiet
        self._mid_line = False

    def __call__(self, message: object) -> None:
        if isinstance(message, ListenerStatus):
            self._status(message)
        elif isinstance(message, CycleStarted):
            self._line('[bold green]Hotword detected.[/] Listening…')
        elif isinstance(message, SegmentAccepted):
            self._console.print(Text(message.text), end=' ')
            self._mid_line = True
        elif isinstance(message, SegmentFiltered):
            self._diagnostic(f'[filtered: {message.text}]')
        elif isinstance(message, ChunkSkipped):
            self._diagnostic(f'[skipped chunk: rms={message.rms:.0f}, activity={message.activity_ratio:.1%}]')
        elif isinstance(message, RecognitionFailed):
            self._line(f'[yellow]Recognition failed:[/] {escape(message.error)}')
        elif isinstance(message, CycleFinalized):
            self._finalized(message)
        elif isinstance(message, FramesDropped):
            self._line(f'[yellow]Dropped {message.count} audio frames while recognition lagged.[/]')

    def _status(self, message: ListenerStatus) -> None:
        if message.status == 'ready':
            self._line(f"Say [bold]'{escape(self._hotword)}'[/] to start transcribing. Press Ctrl+C to exit.")
        elif message.status == 'error':
            self._line(f'[red]Error:[/] {escape(message.error)}')
        elif message.status == 'stopped' and not self._quiet:
            self._line('[dim]Stopped.[/]')

    def _finalized(self, message: CycleFinalized) -> None:
        self._end_line()
        if message.reason == FINALIZE_MAX_DURATION:
            self._console.print('[yellow]Maximum listening time reached.[/]')
        summary = message.summary
        if summary is None:
            if not self._quiet:
                self._console.print('[dim]Nothing transcribed.[/]')
            return
        footer = f'{format_duration(summary.duration)} · {summary.word_count} words'
        self._console.print(Panel(Text(summary.text), title='Transcription', subtitle=footer, expand=False))

    def _diagnostic(self, text: str) -> None:
        if self._quiet:
            return
        self._console.print(Text(text, style='dim'), end=' ')
        self._mid_line = True

    def _line(self, markup: str) -> None:
        self._end_line()
        self._console.print(markup)

    def _end_line(self) -> None:
        if self._mid_line:
            self._console.print()
            self._mid_line = False
