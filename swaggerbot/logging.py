"""Logging helpers for femtologging integration.

This module centralizes log level normalization and formatting so swaggerbot
emits pre-formatted log messages consistently. Components that work on behalf
of a single sync item receive a :class:`BoundLogger`, an immutable value that
carries context fields and renders them on every message.

Example:
>>> from swaggerbot.logging import BoundLogger, get_logger
>>> log = BoundLogger(get_logger(__name__)).bind(project="orders")
>>> log.info("sync.item", "Processing version", version="1.2.0")

"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import msgspec
from femtologging import basicConfig, get_logger


class LogLevel(enum.StrEnum):
    """Supported log levels for femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(enum.StrEnum):
    """Rendering used by :class:`BoundLogger`."""

    TEXT = "text"
    JSON = "json"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Normalize a log level string and report invalid inputs.

    Parameters
    ----------
    level : str | None
        Raw log level string to normalize.

    Returns
    -------
    tuple[str, bool]
        The normalized log level and a flag indicating invalid input.

    """
    if not level:
        return ("INFO", True)

    normalized = level.strip().upper()
    if normalized in LogLevel.__members__:
        return (normalized, False)

    return ("INFO", True)


def normalize_log_format(value: str | None) -> LogFormat:
    """Return the log format for a ``LOG_FORMAT`` value, defaulting to text."""
    if value and value.strip().lower() == LogFormat.JSON:
        return LogFormat.JSON
    return LogFormat.TEXT


def configure_logging(level: str, *, force: bool = False) -> tuple[str, bool]:
    """Configure femtologging and return the normalized level.

    Parameters
    ----------
    level : str
        Raw log level string to normalize.
    force : bool, optional
        Whether to replace any existing handler configuration.

    Returns
    -------
    tuple[str, bool]
        The normalized log level and a flag indicating invalid input.

    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


def _format_message(template: str, *args: object) -> str:
    """Format a message using percent-style interpolation."""
    return template % args


class _SupportsLog(typ.Protocol):
    """Protocol for femtologging-compatible loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _log_at_level(
    logger: _SupportsLog,
    level: str,
    message: str,
    *,
    exc_info: object | None = None,
) -> None:
    """Log a pre-formatted message at the specified level."""
    logger.log(
        level,
        message,
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
) -> None:
    """Log a DEBUG message with percent-style formatting."""
    _log_at_level(logger, "DEBUG", _format_message(template, *args))


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message with percent-style formatting.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the formatted message.
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.
    exc_info : object | None, optional
        Exception information to attach to the log record.

    """
    _log_at_level(
        logger,
        "INFO",
        _format_message(template, *args),
        exc_info=exc_info,
    )


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message with percent-style formatting.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the formatted message.
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.
    exc_info : object | None, optional
        Exception information to attach to the log record.

    """
    _log_at_level(
        logger,
        "WARNING",
        _format_message(template, *args),
        exc_info=exc_info,
    )


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message with percent-style formatting.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the formatted message.
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.
    exc_info : object | None, optional
        Exception information to attach to the log record.

    """
    _log_at_level(
        logger,
        "ERROR",
        _format_message(template, *args),
        exc_info=exc_info,
    )


def _render_value(value: object) -> str:
    if isinstance(value, str):
        return value if value and " " not in value else repr(value)
    return msgspec.json.encode(value, enc_hook=str).decode("utf-8")


@dataclasses.dataclass(frozen=True, slots=True)
class BoundLogger:
    """Logger value carrying immutable context fields.

    ``bind`` never mutates the receiver; it returns a new logger whose fields
    are the union of the existing fields and the new ones. Every message is
    rendered as ``[tag] message key=value ...`` or, with
    :attr:`LogFormat.JSON`, as a single JSON object.

    Parameters
    ----------
    logger
        femtologging logger (or any object with a compatible ``log``).
    fields
        Context fields rendered on every message.
    log_format
        Text or JSON rendering.

    """

    logger: _SupportsLog
    fields: tuple[tuple[str, object], ...] = ()
    log_format: LogFormat = LogFormat.TEXT

    def bind(self, **fields: object) -> BoundLogger:
        """Return a child logger with ``fields`` added to the context."""
        merged = dict(self.fields)
        merged.update(fields)
        return dataclasses.replace(self, fields=tuple(merged.items()))

    def render(self, tag: str, message: str, meta: dict[str, object]) -> str:
        """Render a message with context and per-call fields."""
        context = dict(self.fields)
        context.update(meta)
        if self.log_format is LogFormat.JSON:
            payload: dict[str, object] = {"tag": tag, "message": message}
            payload.update(context)
            return msgspec.json.encode(payload, enc_hook=str).decode("utf-8")
        parts = [f"[{tag}]", message]
        parts.extend(f"{key}={_render_value(value)}" for key, value in context.items())
        return " ".join(parts)

    def debug(self, tag: str, message: str, **meta: object) -> None:
        """Log a DEBUG message."""
        _log_at_level(self.logger, "DEBUG", self.render(tag, message, meta))

    def info(self, tag: str, message: str, **meta: object) -> None:
        """Log an INFO message."""
        _log_at_level(self.logger, "INFO", self.render(tag, message, meta))

    def warning(self, tag: str, message: str, **meta: object) -> None:
        """Log a WARNING message."""
        _log_at_level(self.logger, "WARNING", self.render(tag, message, meta))

    def error(
        self,
        tag: str,
        message: str,
        *,
        exc_info: object | None = None,
        **meta: object,
    ) -> None:
        """Log an ERROR message, optionally attaching exception information."""
        _log_at_level(
            self.logger,
            "ERROR",
            self.render(tag, message, meta),
            exc_info=exc_info,
        )


def bound_logger(name: str, log_format: LogFormat = LogFormat.TEXT) -> BoundLogger:
    """Return a :class:`BoundLogger` for the named femtologging logger."""
    return BoundLogger(get_logger(name), log_format=log_format)


__all__ = [
    "BoundLogger",
    "LogFormat",
    "bound_logger",
    "configure_logging",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "normalize_log_format",
    "normalize_log_level",
]
