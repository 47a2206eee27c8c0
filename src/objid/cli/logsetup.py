"""Logging setup for CLI commands."""

import logging
import sys

from objid.core.redaction import RedactingFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(debug: bool = False, quiet_level: int = logging.WARNING) -> None:
    """
    Configure root logging on stderr with credential redaction.

    Args:
        debug: If True, enable DEBUG level logging
        quiet_level: Level used when not debugging
    """
    level = logging.DEBUG if debug else quiet_level
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(RedactingFilter())


__all__ = ["LOG_FORMAT", "setup_logging"]
