from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "mgpoisson"
_FORMAT = "%(message)s"


def get_logger(name: str) -> logging.Logger:
    """Logger for a module of this package; records go to the package logger."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(
    logfile: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    (Re)attach the handlers of the package logger.

    Messages are printed bare to stdout. With `logfile` they are also written
    to that file (parent dirs created). Calling again replaces the previous
    handlers, so a new run can move its log file.

    Returns
    -------
    logging.Logger
        the package logger
    """
    root = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if logfile is not None:
        logfile = Path(logfile)
        logfile.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(logfile))

    for handler in handlers:
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    root.setLevel(level)
    # console output is ours; keep it out of the application's root logger
    root.propagate = False
    return root
