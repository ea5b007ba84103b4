"""
Process-wide logging setup for the entry points.
Library modules only create ``logging.getLogger(__name__)`` loggers.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "convograph"


def configure_logging(level: str = "INFO") -> None:
    """Attach one stderr handler to the root logger and set its level.

    Calling it again only updates the level; handlers are never duplicated.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)

    # Provider SDKs are chatty at INFO.
    for noisy in ("httpx", "botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
