"""
Logging configuration for sctool.

Everything goes to a log file; the console only shows warnings and errors on
stderr so stdout stays reserved for command output.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_PATH = Path("sctool_data") / "sctool.log"
LOG_FILE_ENV = "SCTOOL_LOG_FILE"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def default_log_path() -> Path:
    env = os.environ.get(LOG_FILE_ENV)
    return Path(env) if env else LOG_PATH


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    console_level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger for a CLI run.

    Args:
        level: File logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Log file path (default: $SCTOOL_LOG_FILE or sctool_data/sctool.log)
        format_string: Custom format string
        console_level: Console handler level (default WARNING)

    Returns:
        The "sctool" logger
    """
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    log_path = Path(log_file) if log_file is not None else default_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_level = getattr(logging, level.upper())
    root = logging.getLogger()
    root.setLevel(file_level)
    # a second call replaces the previous handlers instead of stacking them
    for h in list(root.handlers):
        root.removeHandler(h)

    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(formatter)
    root.addHandler(fh)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(getattr(logging, (console_level or "WARNING").upper()))
    ch.setFormatter(formatter)
    root.addHandler(ch)

    return logging.getLogger("sctool")
