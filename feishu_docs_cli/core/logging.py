"""Logging setup for the CLI.

Progress for humans goes to stdout through ``print`` and ``tqdm``; the
``logging`` tree carries diagnostics and is quiet unless debugging.
"""

import logging
import os
import sys


def configure_logging(debug: bool = False) -> None:
    """Configure root logging; ``DEBUG`` in the environment forces debug level."""
    level = logging.DEBUG if debug or os.getenv("DEBUG") else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.INFO))


__all__ = ["configure_logging"]
