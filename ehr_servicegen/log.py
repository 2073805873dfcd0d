from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .config.schema import LoggingConfig

LOGGER_NAME = "ehr_servicegen"


def setup_logging(cfg: Optional[LoggingConfig] = None, *, verbose: bool = False) -> logging.Logger:
    """Configure the package logger from the ``logging`` config section.

    Calling it again replaces previously installed handlers.
    """
    cfg = cfg or LoggingConfig()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = logging.DEBUG if verbose else getattr(logging, cfg.level.upper(), logging.INFO)
    logger.setLevel(level)
    logger.propagate = False

    if cfg.console:
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
        )
        logger.addHandler(handler)

    if cfg.file:
        log_path = Path(cfg.path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
        )
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
