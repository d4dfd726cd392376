"""Log rotation and level setup.

Module loggers (``logging.getLogger(__name__)``) and ``app.logger`` both
propagate to the root logger, so one handler there covers services and routes.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "team_attendance.log"


def resolve_level(*, debug: bool, level_name: str | None = None) -> int:
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if debug else logging.INFO


def setup_logging(app: Flask, *, log_dir: str | None = None, level_name: str | None = None) -> None:
    """Install a rotating file handler (10MB × 5 backups) plus console output.

    Calling it again (e.g. one app per test) does not stack handlers.
    """

    level = resolve_level(debug=bool(app.config.get("DEBUG")), level_name=level_name)
    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, "_team_attendance", False) for h in root.handlers):
        formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, LOG_FILE_NAME),
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler._team_attendance = True
            root.addHandler(file_handler)

        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._team_attendance = True
        root.addHandler(console)

    for handler in root.handlers:
        if getattr(handler, "_team_attendance", False):
            handler.setLevel(level)

    app.logger.setLevel(level)
    app.logger.info("logging ready: level=%s dir=%s", logging.getLevelName(level), log_dir or "-")
