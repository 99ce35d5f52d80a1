"""
Logging setup for command line entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers;
handlers are attached here, once, by whoever owns the process.
"""

import logging
from typing import Optional

from rich.logging import RichHandler

from .config import get_settings


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a rich handler to the root logger at the configured level."""
    resolved = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=resolved,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
