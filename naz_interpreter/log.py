"""
Logging setup shared by the naz CLI and anything embedding the interpreter.

Same layout as the rest of the toolchain: an optional file handler that
captures everything and a rich console handler for the important bits.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler


FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str = "naz_interpreter",
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_file: Optional[Union[str, Path]] = None,
    rich_console: bool = True,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure and return the logger for ``name``.

    The core modules log under ``naz_interpreter.*``, so the default name
    catches diagnostics and the step-level DEBUG output.

    A logger that already has handlers is returned untouched so repeated
    calls (tests, embedding) don't stack duplicate handlers.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(level)

    # ── File handler: captures everything (DEBUG+) ──
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(fh)

    # ── Console handler: only important stuff (WARNING+ default) ──
    if rich_console:
        ch = RichHandler(
            level=console_level,
            console=console or Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        ch.setLevel(console_level)
        logger.addHandler(ch)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.debug("Logger initialized: %s (console level %s)", name,
                 logging.getLevelName(console_level))
    return logger
