from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from taskboard.config import get_config

FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

# Streamlit re-executes page scripts on every interaction; handlers are
# attached once per process.
_configured_file: Optional[Path] = None


def setup_logging(app_name: str = "taskboard") -> Path:
    global _configured_file
    if _configured_file is not None:
        return _configured_file

    cfg = get_config()
    level = getattr(logging, cfg.log_level, logging.INFO)

    cfg.log_dir.mkdir(parents=True, exist_ok=True)
    logfile = cfg.log_dir / f"{app_name}.log"

    root = logging.getLogger()
    root.setLevel(level)

    # File: rotate at 5MB, keep 7 backups
    fh = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=7, encoding="utf-8")
    fh.setFormatter(logging.Formatter(FORMAT, DATEFMT))
    fh.setLevel(level)
    root.addHandler(fh)

    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter(FORMAT, DATEFMT))
    ch.setLevel(level)
    root.addHandler(ch)

    # SQLAlchemy engine logging is noisy at INFO.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _configured_file = logfile
    logging.getLogger(__name__).info("Logging initialized at %s; file: %s", cfg.log_level, logfile)
    return logfile
