# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Root logger setup: stderr at the console level, plus an optional rotating
log file at its own level.
"""
import logging
import logging.handlers
import os
import sys
from typing import List, Optional

LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def _level(name: Optional[str], default: int) -> int:
    if not name or name.lower() not in LOG_LEVELS:
        return default
    return getattr(logging, name.upper())


def initialize_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    file_level: Optional[str] = None,
) -> logging.Logger:
    """
    Arguments win over LUSTRE_COLLECTOR_LOG_LEVEL, LUSTRE_COLLECTOR_LOG_FILE
    and LUSTRE_COLLECTOR_LOG_FILE_LEVEL. Calling it twice replaces the
    handlers installed by the first call.
    """
    log_level = _level(
        level or os.getenv("LUSTRE_COLLECTOR_LOG_LEVEL"), logging.INFO
    )
    log_file_level = _level(
        file_level or os.getenv("LUSTRE_COLLECTOR_LOG_FILE_LEVEL"), logging.DEBUG
    )
    log_file = log_file or os.getenv("LUSTRE_COLLECTOR_LOG_FILE")

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_lustre_collector", False):
            root.removeHandler(handler)
            handler.close()

    stderr = logging.StreamHandler(stream=sys.stderr)
    stderr.setFormatter(logging.Formatter(LOG_FORMAT))
    stderr.setLevel(log_level)
    handlers: List[logging.Handler] = [stderr]

    if log_file:
        rotating = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=1024 * 1024 * 5, backupCount=5
        )
        rotating.setFormatter(logging.Formatter(LOG_FORMAT))
        rotating.setLevel(log_file_level)
        handlers.append(rotating)

    for handler in handlers:
        setattr(handler, "_lustre_collector", True)
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))
    return logging.getLogger("lustre-collector")
