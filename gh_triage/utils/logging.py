"""Logging setup shared by the webhook server and the CLI."""

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str | None = None, log_file: str | Path | None = None) -> None:
    """Configure the root logger once.

    Args:
        level: Level name, defaults to LOG_LEVEL env var or INFO
        log_file: Optional file to mirror log records into, defaults to LOG_FILE
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE")

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    ):
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        root.addHandler(sh)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if not any(
            isinstance(h, logging.FileHandler)
            and getattr(h, "baseFilename", None) == str(log_path.resolve())
            for h in root.handlers
        ):
            fh = logging.FileHandler(log_path)
            fh.setFormatter(formatter)
            root.addHandler(fh)

    # PyGithub and httpx are chatty at DEBUG
    logging.getLogger("github").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
