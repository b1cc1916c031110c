"""Logging setup for the CLI and migrations."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for terminal output.

    A no-op when handlers already exist unless ``force`` is set. Pass progress
    is logged at INFO and state transitions at DEBUG, so ``--verbose`` maps to
    ``logging.DEBUG``.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    # keep SQL echo and HTTP request lines out of pass output
    for noisy in ("sqlalchemy.engine", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
