"""Root logger setup for the command line entry points."""

from __future__ import annotations

import logging

from .env import optional_env_var

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger once.

    Without an explicit ``level`` the ``CARDINDEX_LOG_LEVEL`` variable decides,
    falling back to INFO. ``httpx`` logs one line per request, so it is held at
    WARNING or above.
    """

    if level is None:
        name = (optional_env_var("CARDINDEX_LOG_LEVEL") or "INFO").upper()
        level = logging.getLevelNamesMapping().get(name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
