"""Logger hierarchy for metacheck.

Every component logs under ``metacheck.<component>`` (``metacheck.fetch``,
``metacheck.reconciler`` and so on). Fetch attempts and their outcomes are
reported at info or warning, skipped inputs at debug, and the summary of
contracts with missing or invalid sources at warning. The CLI calls
``configure_logging`` once at start-up, before ``check`` or ``serve`` runs;
library users may attach their own handlers instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "metacheck"
_CONSOLE_FORMAT = "[metacheck] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the logger for a metacheck component, e.g. ``get_logger("fetch")``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send metacheck records to stderr and, when ``log_file`` is set, to that file.

    ``verbose`` lowers the threshold to DEBUG so skipped inputs and per-contract
    classification counts become visible. Calling this again replaces the
    handlers installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger"]
