"""Logging setup shared by the docsync CLI and the webhook service.

Every module logs through ``get_logger("<component>")`` so records land under
the ``docsync`` hierarchy (``docsync.planner``, ``docsync.git.publisher``...).
Console lines carry the component so interleaved webhook runs stay readable.
"""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "docsync"
_CONSOLE_FORMAT = "[docsync] %(levelname)s %(component)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _ComponentFilter(logging.Filter):
    """Expose the logger name below ``docsync`` as ``%(component)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        suffix = record.name[len(_ROOT) + 1 :] if record.name.startswith(f"{_ROOT}.") else ""
        record.component = f"{suffix}: " if suffix else ""
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(
    *, verbose: bool = False, log_file: Path | str | None = None
) -> logging.Logger:
    """Install console (and optionally file) handlers on the docsync logger.

    Calling this again replaces the previous handlers, so a long-lived process
    can switch verbosity or log file without duplicating output.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.addFilter(_ComponentFilter())
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(path, encoding="utf-8")
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


__all__ = ["configure_logging", "get_logger"]
