"""
Logging setup for the ledger, the in-memory host and the tools.

Library modules only create module loggers (`logging.getLogger(__name__)`);
entry points call `setup_logging()` once.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union


LOG_LEVEL_ENV_VAR = "STAKEBOOST_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    name = str(level).strip().upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure root logging.

    `level` defaults to `$STAKEBOOST_LOG_LEVEL` (or INFO). When `log_file` is
    given, records go to that file in addition to stderr.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    resolved = resolve_level(level)
    logging.basicConfig(level=resolved, handlers=handlers, force=True)
    logging.getLogger(__name__).debug("logging configured: level=%s", logging.getLevelName(resolved))
