"""Colored pipeline logger — ANSI-colored console output for ingestion runs.

Every ingestion (manual text, link, PDF, curated content) logs through a
``PipelineLogger`` so one run can be followed stage by stage in the
terminal:

    🟡 FETCH / EXTRACT   reading the source
    🟣 CHUNK             splitting into fragments
    🔵 EMBED             vector generation
    🟢 INGEST / STORE    persistence
    ✅ COMPLETE          summary line
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_MAGENTA = "\033[95m"
_GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class PipelineStage:
    """Stages of the ingestion pipeline, in the order a run passes through them."""

    FETCH = Stage("FETCH", _YELLOW, "🌐")
    EXTRACT = Stage("EXTRACT", _YELLOW, "📄")
    INGEST = Stage("INGEST", _GREEN, "📥")
    CHUNK = Stage("CHUNK", _MAGENTA, "✂️")
    EMBED = Stage("EMBED", _BLUE, "🧮")
    STORE = Stage("STORE", _GREEN, "💾")
    COMPLETE = Stage("COMPLETE", _GREEN, "✅")


def _format_details(details: dict[str, Any]) -> str:
    return " | ".join(f"{key}={value}" for key, value in details.items())


class PipelineLogger:
    """Color-coded logger for one pipeline component.

    Usage:
        plog = PipelineLogger("IngestionPipeline")
        plog.step_start(PipelineStage.FETCH, "Fetching https://www.planalto.gov.br/…", attempt="1/3")
        plog.step_complete(PipelineStage.FETCH, "Fetched 48213 characters")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(self, level: int, head: str, body: str, details: dict[str, Any]) -> None:
        line = f"{head}{_RESET} {body}{_RESET}"
        if details:
            line += f" {_GRAY}({_format_details(details)}){_RESET}"
        self._logger.log(level, line)

    def step_start(self, stage: Stage, message: str, **details: Any) -> None:
        self._emit(
            logging.INFO,
            f"{stage.color}{_BOLD}{stage.icon} [{stage.label}]",
            f"{stage.color}{message}",
            details,
        )

    def step_complete(self, stage: Stage, message: str, **details: Any) -> None:
        self._emit(
            logging.INFO,
            f"{stage.color}{stage.icon} [{stage.label}]",
            f"{_GREEN}✓ {message}",
            details,
        )

    def step_warning(self, stage: Stage, message: str, **details: Any) -> None:
        """A recoverable problem; the run goes on."""
        self._emit(
            logging.WARNING,
            f"{_YELLOW}{stage.icon} [{stage.label}]",
            f"{_YELLOW}⚠ {message}",
            details,
        )

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        body = f"{_RED}{message}"
        if error is not None:
            body += f" {_DIM}→ {type(error).__name__}: {error}"
        self._emit(logging.ERROR, f"{_RED}{_BOLD}❌ [{stage.label}]", body, {})

    def detail(self, message: str, **details: Any) -> None:
        self._emit(logging.INFO, "   ", f"{_GRAY}├─ {message}", details)

    def separator(self, title: str = "") -> None:
        if title:
            rule = f"{'─' * 10} {title} {'─' * max(0, 50 - len(title))}"
        else:
            rule = "─" * 60
        self._logger.info(f"{_GRAY}{rule}{_RESET}")

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **details: Any) -> Iterator[None]:
        """Log start and end of a block together with its elapsed time."""
        self.step_start(stage, message, **details)
        started = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.step_error(stage, f"{message} failed after {time.perf_counter() - started:.2f}s", error=exc)
            raise
        self.step_complete(stage, f"{message} ({time.perf_counter() - started:.2f}s)")
