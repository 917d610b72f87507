"""
Progress reporting for scrape runs.

- ProgressChannel: append-only record of a run's phase transitions, with
  listeners notified in emission order
- StreamEvent: the typed envelope (progress, log, complete, error) handed to
  a server-push transport
- ChannelLogHandler: forwards the package's log records as log events
- ConsoleReporter: prints transitions and results with rich
- run_streaming: runs a scrape and pushes all of the above to one sink
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from .crawl_schemas import (
    PHASE_TRANSITIONS,
    ProgressEvent,
    ProgressPhase,
    ScrapeRequest,
    ScrapeResult,
)
from .schemas import CamelModel

logger = logging.getLogger(__name__)

Listener = Callable[[ProgressEvent], None]


class ProgressChannel:
    """Ordered, append-only stream of ProgressEvents for one run."""

    def __init__(self, listeners: Optional[List[Listener]] = None):
        self._events: List[ProgressEvent] = []
        self._listeners: List[Listener] = list(listeners or [])
        self._phase: Optional[ProgressPhase] = None

    @property
    def events(self) -> Tuple[ProgressEvent, ...]:
        return tuple(self._events)

    @property
    def phase(self) -> Optional[ProgressPhase]:
        return self._phase

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: ProgressEvent) -> None:
        """Record a transition and notify listeners.

        Raises:
            RuntimeError: If the transition skips or re-enters a phase.
        """
        if event.phase not in PHASE_TRANSITIONS[self._phase]:
            current = self._phase.value if self._phase else "none"
            raise RuntimeError(f"Illegal phase transition: {current} -> {event.phase.value}")
        self._phase = event.phase
        self._events.append(event)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Progress listener failed on %s event", event.phase.value)


class StreamEventType(str, Enum):
    """Discriminator of events pushed to a caller."""

    PROGRESS = "progress"
    LOG = "log"
    COMPLETE = "complete"
    ERROR = "error"


class StreamEvent(CamelModel):
    """One message of the outbound stream; framing is the transport's job."""

    type: StreamEventType
    progress: Optional[ProgressEvent] = None
    message: Optional[str] = None
    result: Optional[ScrapeResult] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """JSON-ready payload, e.g. ``{"type": "progress", "progress": {...}}``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChannelLogHandler(logging.Handler):
    """Logging handler that turns records into log stream events."""

    def __init__(self, sink: Callable[[StreamEvent], None], level: int = logging.INFO):
        super().__init__(level)
        self._sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if record.levelno >= logging.ERROR:
                message = f"ERROR: {message}"
            self._sink(StreamEvent(type=StreamEventType.LOG, message=message))
        except Exception:
            self.handleError(record)


class ConsoleReporter:
    """Prints phase transitions and final results to the terminal."""

    PHASE_STYLES = {
        ProgressPhase.STARTING: "dim",
        ProgressPhase.CRAWLING: "cyan",
        ProgressPhase.ANALYZING: "cyan",
        ProgressPhase.EXTRACTING: "cyan",
        ProgressPhase.COMPLETED: "green",
        ProgressPhase.ERROR: "red",
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def __call__(self, event: ProgressEvent) -> None:
        style = self.PHASE_STYLES.get(event.phase, "white")
        line = f"[{style}]{event.current_phase_label}[/{style}] [dim]({event.pages_crawled} pages)[/dim]"
        if event.error:
            line += f"\n  [red]Error: {event.error}[/red]"
        self.console.print(line)

    def print_result(self, result: ScrapeResult) -> None:
        record = result.record
        metadata = result.metadata

        table = Table(title=f"Profile: {record.name}")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Website", record.website)
        table.add_row("Data quality", record.data_quality)
        table.add_row("Confidence", f"{metadata.confidence}%")
        table.add_row("Pages analyzed", str(metadata.pages_analyzed))
        table.add_row("Crawl time", f"{metadata.crawl_time_ms / 1000:.1f}s")
        table.add_row("Projects", str(len(record.projects)))
        table.add_row("Awards", str(len(record.awards)))
        table.add_row("Publications", str(len(record.publications)))
        table.add_row("Fields extracted", ", ".join(metadata.data_extracted) or "-")
        self.console.print(table)

        if metadata.errors:
            self.console.print(f"[yellow]{len(metadata.errors)} pages failed to load[/yellow]")


async def run_streaming(
    request: ScrapeRequest,
    emit: Callable[[StreamEvent], None],
    **scraper_kwargs,
) -> Optional[ScrapeResult]:
    """
    Run a scrape and push its progress to a stream.

    Emits ``progress`` events per phase, ``log`` events for the package's log
    records during the run, then exactly one terminal ``complete`` (with the
    result) or ``error`` (with the message).

    Args:
        request: The inbound scrape request.
        emit: Receives each StreamEvent; framing is up to the caller.
        **scraper_kwargs: Passed through to ProfileScraper.

    Returns:
        The ScrapeResult, or None when the run failed.
    """
    from .crawl_extraction import ProfileScraper

    handler = ChannelLogHandler(emit)
    package_logger = logging.getLogger(__package__)
    previous_level = package_logger.level
    package_logger.addHandler(handler)
    if package_logger.getEffectiveLevel() > logging.INFO:
        package_logger.setLevel(logging.INFO)

    def forward_progress(event: ProgressEvent) -> None:
        emit(StreamEvent(type=StreamEventType.PROGRESS, progress=event))

    try:
        scraper = ProfileScraper(request, forward_progress, **scraper_kwargs)
        result = await scraper.scrape()
    except Exception as e:
        emit(StreamEvent(type=StreamEventType.ERROR, error=str(e) or type(e).__name__))
        return None
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)

    emit(StreamEvent(type=StreamEventType.COMPLETE, result=result))
    return result
