"""Logging initialization."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(level=level.strip().upper(), format=LOG_FORMAT)
    # asyncio is noisy at DEBUG; keep it tame unless explicitly enabled
    logging.getLogger("asyncio").setLevel(logging.WARNING)


__all__ = ["LOG_FORMAT", "configure_logging"]
