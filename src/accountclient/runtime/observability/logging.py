"""Structured logging for account client operations.

Provides a small structured logging facade:
- Bound context (client, operation, account id) carried by immutable loggers
- Human-readable console output for development, JSON Lines for production
- Scoped context via ``log_context``

Retry and breaker internals log through the stdlib ``logging`` module under
the ``accountclient`` namespace; this facade is for operation-level events.

Quick Start:
    >>> from accountclient.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="json", level="DEBUG")
    >>> log = get_logger("accounts", base_url="http://localhost:8080/v1")
    >>> log.info("account created", account_id="ad27e265-...")
"""

from __future__ import annotations

import logging
import sys
import threading
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from types import TracebackType

JsonDict = dict[str, Any]

# Scoped context (per thread / task)
_log_context: ContextVar[JsonDict] = ContextVar("accountclient_log_context", default={})


# ─────────────────────────────────────────────────────────────────────────────
# Entries & Renderers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class LogEntry:
    """Log entry with all merged context."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """Human-readable timestamp (HH:MM:SS.mmm)."""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


_COLORS = {"reset": "\033[0m", "bold": "\033[1m", "dim": "\033[2m", "red": "\033[31m",
           "green": "\033[32m", "yellow": "\033[33m", "blue": "\033[34m", "cyan": "\033[36m"}
_NO_COLORS = {k: "" for k in _COLORS}
_LEVEL_COLORS = {"debug": _COLORS["dim"], "info": _COLORS["green"], "warning": _COLORS["yellow"], "error": _COLORS["red"]}


def _format_value(v: object, c: dict[str, str]) -> str:
    """Format a value for console output."""
    match v:
        case str(): return f'{c["yellow"]}"{v}"{c["reset"]}'
        case bool(): return f'{c["blue"]}{str(v).lower()}{c["reset"]}'
        case int() | float(): return f'{c["blue"]}{v}{c["reset"]}'
        case _: return str(v)


@dataclass(slots=True)
class ConsoleRenderer:
    """Colored console output. Format: timestamp [level] event key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        c = _COLORS if self.colors else _NO_COLORS
        parts = [f"{c['dim']}{entry.ts_human}{c['reset']}",
                 f"{_LEVEL_COLORS.get(entry.level, '') if self.colors else ''}[{entry.level}]{c['reset']}",
                 f"{c['bold']}{entry.event}{c['reset']}"]
        parts += [f"{c['cyan']}{k}{c['reset']}={_format_value(v, c)}"
                  for k, v in sorted(entry.context.items()) if k != "exc_info"]
        print(" ".join(parts), file=self.output)
        if "exc_info" in entry.context:
            print(f"{c['red']}{entry.context['exc_info']}{c['reset']}", file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        line = orjson.dumps(
            {"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event, **entry.context},
            option=orjson.OPT_NON_STR_KEYS, default=str,
        )
        print(line.decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer for testing."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────

_config_lock = threading.Lock()
_renderer: LogRenderer | None = None
_default_level: int = logging.INFO


def configure_logging(
    format: str = "console",  # noqa: A002 - matches settings field name
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure structured logging for the process. Format: "console", "json" or "none".

    Also sets the level of the stdlib ``accountclient`` logger tree.
    """
    global _renderer, _default_level
    lvl = getattr(logging, level.upper(), logging.INFO)
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    with _config_lock:
        _renderer, _default_level = renderer, lvl
    logging.getLogger("accountclient").setLevel(lvl)
    return renderer


def _get_renderer() -> LogRenderer:
    global _renderer
    with _config_lock:
        if _renderer is None:
            _renderer = ConsoleRenderer()
        return _renderer


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context. bind() returns a new logger with merged context.

    A level of None follows the level set by configure_logging at log time.
    """

    context: JsonDict = field(default_factory=dict)
    level: int | None = None
    renderer: LogRenderer | None = field(default=None, repr=False)

    def bind(self, **kw: Any) -> BoundLogger:
        return BoundLogger(context={**self.context, **kw}, level=self.level, renderer=self.renderer)

    def _log(self, level: int, event: str, **kw: Any) -> None:
        if level < (self.level if self.level is not None else _default_level):
            return
        merged = {**_log_context.get(), **self.context, **kw}
        (self.renderer or _get_renderer()).render(
            LogEntry(time.time(), logging.getLevelName(level).lower(), event, merged)
        )

    def debug(self, event: str, **kw: Any) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: Any) -> None: self._log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: Any) -> None: self._log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: Any) -> None: self._log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log error with the active exception's traceback."""
        self._log(logging.ERROR, event, exc_info=traceback.format_exc(), **kw)


def get_logger(name: str | None = None, **initial_context: Any) -> BoundLogger:
    """Get a structured logger. Name is added to context as 'logger'."""
    return BoundLogger(context={**initial_context, **({"logger": name} if name else {})})


class log_context:
    """Context manager adding key-value pairs to every entry logged inside the scope."""

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: Any) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]
