"""
DexDeps Structured Logger
==========================

Provides :class:`DepsLogger`, a thin facade over :mod:`logging` that
sends colour-coded Rich output to stderr and, optionally, plain-text or
JSON-lines records to a rotating log file.

Every record carries the component name (``tool_name``) and the current
``operation``; extra keyword arguments passed to a log call are kept in a
structured ``context`` field.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

_LOG_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
        "log.level.critical": "bold white on red",
    }
)

_STANDARD_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel"})


# ========================== JSON Formatter =================================


class _JSONFormatter(logging.Formatter):
    """Emit each record as one JSON object per line::

        {"timestamp": "...", "level": "INFO", "logger": "dexdeps.engine",
         "message": "...", "tool_name": "engine", "operation": "decode",
         "context": {"source": "classes2.dex"}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in ("tool_name", "operation"):
            val = getattr(record, attr, None)
            if val is not None:
                entry[attr] = val

        context = getattr(record, "deps_context", None)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def _console_handler(level: str) -> RichHandler:
    return RichHandler(
        level=level,
        console=Console(theme=_LOG_THEME, stderr=True),
        show_path=False,
        show_time=True,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        markup=False,
    )


# ========================== DepsLogger =====================================


class DepsLogger:
    """Context-aware logger bound to one DexDeps component.

    Usage::

        log = DepsLogger("engine", log_file="dexdeps.log", json_logs=True)
        with log.operation("decode"):
            log.info("Decoding %s", name, source=name)
        with log.timed("reference assembly"):
            refs = dex.all_references()

    Args:
        tool_name:      Component name; the stdlib logger is ``dexdeps.<name>``
                        unless the name already starts with ``dexdeps``.
        log_level:      Minimum severity.
        log_file:       Rotating log file path, ``None`` to disable.
        json_logs:      Write JSON lines instead of plain text to the file.
        max_bytes:      Rotation threshold of the log file.
        backup_count:   Rotated files to keep.
        console_output: Attach the Rich stderr handler.
        propagate:      Attach nothing and inherit level and handlers from
                        the parent ``dexdeps`` logger (module loggers).
    """

    def __init__(
        self,
        tool_name: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
        console_output: bool = True,
        propagate: bool = False,
    ) -> None:
        self._tool_name = tool_name
        self._operation: str | None = None

        level = log_level.upper()
        logger_name = (
            tool_name if tool_name.startswith("dexdeps") else f"dexdeps.{tool_name}"
        )
        self._logger = logging.getLogger(logger_name)
        self._logger.handlers.clear()
        self._logger.propagate = propagate
        if propagate:
            self._logger.setLevel(logging.NOTSET)
            return
        self._logger.setLevel(getattr(logging, level, logging.INFO))

        if console_output:
            self._logger.addHandler(_console_handler(level))

        if log_file is not None:
            file_path = Path(log_file)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                filename=str(file_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            fh.setLevel(getattr(logging, level, logging.INFO))
            if json_logs:
                fh.setFormatter(_JSONFormatter())
            else:
                fh.setFormatter(
                    logging.Formatter(
                        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                        datefmt="%Y-%m-%dT%H:%M:%S%z",
                    )
                )
            self._logger.addHandler(fh)

    # ------------------------------------------------------------------ #
    #  Operation scope
    # ------------------------------------------------------------------ #

    class _OperationContext:
        """Temporarily binds an operation name to every record."""

        def __init__(self, parent: DepsLogger, operation: str) -> None:
            self._parent = parent
            self._operation = operation
            self._prev: str | None = None

        def __enter__(self) -> DepsLogger:
            self._prev = self._parent._operation
            self._parent._operation = self._operation
            return self._parent

        def __exit__(self, *exc: Any) -> None:
            self._parent._operation = self._prev

    def operation(self, name: str) -> _OperationContext:
        return self._OperationContext(self, name)

    # ------------------------------------------------------------------ #
    #  Log methods
    # ------------------------------------------------------------------ #

    def _log(self, level: int, msg: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        extra = kwargs.pop("extra", None) or {}
        context = {k: kwargs.pop(k) for k in list(kwargs) if k not in _STANDARD_KWARGS}
        extra["tool_name"] = self._tool_name
        extra["operation"] = self._operation
        if context:
            extra["deps_context"] = context
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, args, kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, kwargs)

    # ------------------------------------------------------------------ #
    #  Timing helper
    # ------------------------------------------------------------------ #

    class _TimingContext:
        """Logs start (DEBUG) and completion with elapsed time (INFO)."""

        def __init__(self, logger_inst: DepsLogger, label: str) -> None:
            self._logger = logger_inst
            self._label = label
            self._start: float = 0.0

        def __enter__(self) -> DepsLogger._TimingContext:
            self._start = time.perf_counter()
            self._logger.debug("Started: %s", self._label)
            return self

        def __exit__(self, *exc: Any) -> None:
            self._logger.info(
                "Completed: %s (%.3f sec)", self._label, self.elapsed
            )

        @property
        def elapsed(self) -> float:
            return time.perf_counter() - self._start

    def timed(self, label: str) -> _TimingContext:
        return self._TimingContext(self, label)

    # ------------------------------------------------------------------ #
    #  Properties
    # ------------------------------------------------------------------ #

    @property
    def tool_name(self) -> str:
        return self._tool_name

    @property
    def underlying(self) -> logging.Logger:
        """The wrapped stdlib :class:`logging.Logger`."""
        return self._logger
