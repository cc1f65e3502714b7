"""
Logger configuration for gitsift.

structlog is bridged into the standard logging module so the CLI can keep
stdout reserved for emitted chunks while diagnostics go to stderr or a file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import structlog
from structlog.stdlib import BoundLogger, ProcessorFormatter
from structlog.typing import Processor

_PRE_CHAIN: tuple[Processor, ...] = (
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
)


def _configure_structlog(min_level: int) -> None:
    structlog.configure(
        processors=[*_PRE_CHAIN, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _build_formatter() -> ProcessorFormatter:
    return ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=False),
        foreign_pre_chain=_PRE_CHAIN,
    )


def parse_level(level: Union[int, str]) -> int:
    """Translate a level name such as ``"debug"`` into its numeric value."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    level: Union[int, str] = logging.INFO,
    enable_console: bool = True,
    console_level: Optional[int] = None,
) -> None:
    """
    Configure global logging.

    Parameters
    ----------
    level:
        Base logging level for the root logger.
    enable_console:
        When False, suppress log emission to stderr.
    console_level:
        Severity threshold for messages emitted to stderr. Defaults to ``level``.
    """
    numeric = parse_level(level)
    _configure_structlog(numeric)
    logging.captureWarnings(True)

    handlers: list[logging.Handler] = []
    if enable_console:
        # stderr only; stdout carries the chunk stream
        handler = logging.StreamHandler()
        handler.setLevel(console_level if console_level is not None else numeric)
        handler.setFormatter(_build_formatter())
        handlers.append(handler)
    else:
        handlers.append(logging.NullHandler())

    logging.basicConfig(level=numeric, handlers=handlers, force=True)
    # GitPython logs every command at debug level
    logging.getLogger("git").setLevel(max(numeric, logging.INFO))


def get_logger(name: Optional[str] = None) -> BoundLogger:
    """Retrieve a structlog logger with the provided name."""
    return structlog.get_logger(name)


def redirect_logging_to_file(path: Path, level: Union[int, str] = logging.INFO) -> None:
    """Redirect standard logging output to the given file."""
    numeric = parse_level(level)
    _configure_structlog(numeric)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(_build_formatter())
    root.addHandler(handler)
    root.setLevel(numeric)
