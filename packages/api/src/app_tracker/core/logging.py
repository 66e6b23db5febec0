# This project was developed with assistance from AI tools.
"""Root logger setup. Call ``configure_logging()`` once at startup."""

import logging
import sys

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Attach a stdout handler to the root logger (idempotent)."""
    global _configured  # noqa: PLW0603
    if _configured:
        return
    logging.basicConfig(
        level=level.upper(),
        format=_LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    _configured = True
