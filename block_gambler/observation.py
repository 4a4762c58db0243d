"""
Run log.

Every step of a run is recorded as a LogEntry: a message plus, where there is
one, the transaction hash it refers to. Entries are append-only and are fanned
out to sinks as they are written. ConsoleSink renders them with rich and turns
hashes into explorer links.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

INFO = "info"
WARNING = "warning"
ERROR = "error"
SUCCESS = "success"


@dataclass(frozen=True)
class LogEntry:
    message: str
    reference: Optional[str] = None  # tx hash
    level: str = INFO
    created_at: float = field(default_factory=time.time)


Sink = Callable[[LogEntry], None]


def shorten_hash(value: Optional[str]) -> str:
    if not value:
        return ""
    return f"{value[:6]}...{value[-4:]}"


class ObservationLog:
    """Ordered, append-only sequence of LogEntry values."""

    def __init__(self, sinks: Optional[list[Sink]] = None):
        self._entries: list[LogEntry] = []
        self._sinks: list[Sink] = list(sinks or [])

    def add_sink(self, sink: Sink):
        self._sinks.append(sink)

    def log(self, message: str, reference: Optional[str] = None,
            level: str = INFO) -> LogEntry:
        entry = LogEntry(message=message, reference=reference, level=level)
        self._entries.append(entry)
        for sink in self._sinks:
            sink(entry)
        return entry

    def warning(self, message: str, reference: Optional[str] = None) -> LogEntry:
        return self.log(message, reference, level=WARNING)

    def error(self, message: str, reference: Optional[str] = None) -> LogEntry:
        return self.log(message, reference, level=ERROR)

    def success(self, message: str, reference: Optional[str] = None) -> LogEntry:
        return self.log(message, reference, level=SUCCESS)

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self._entries]

    def __len__(self):
        return len(self._entries)


class ConsoleSink:
    """Prints entries to a rich Console, linking tx hashes to the explorer."""

    STYLES = {
        INFO: "",
        WARNING: "yellow",
        ERROR: "red",
        SUCCESS: "bold green",
    }

    def __init__(self, explorer_url: str, console: Optional[Console] = None):
        self.explorer_url = explorer_url
        self.console = console or Console()

    def __call__(self, entry: LogEntry):
        style = self.STYLES.get(entry.level, "")
        text = escape(entry.message)
        if style:
            text = f"[{style}]{text}[/{style}]"
        if entry.reference:
            url = f"{self.explorer_url}{entry.reference}"
            text += f" [link={url}][cyan]{shorten_hash(entry.reference)}[/cyan][/link]"
        self.console.print(text, highlight=False)
