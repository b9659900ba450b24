"""Logging setup for the receipt pipeline and its command line entry point."""
from __future__ import annotations

import logging
import os


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once for a receiptflow run.

    An explicit ``level`` wins; otherwise ``LOG_LEVEL`` is used, falling back
    to ``INFO``. Every stage logs through module loggers, so this single call
    is enough for parser, enrichment, and mapping messages to share a format.
    """

    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
