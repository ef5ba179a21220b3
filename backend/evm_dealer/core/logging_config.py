"""
Logging setup for the dealer backend

Console output is coloured by level. When file logging is enabled every day
gets its own ``dealer_<date>.log`` plus an ``errors_<date>.log`` that only
receives ERROR and above.
"""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler.executors.default", "aiosqlite")


class LevelColorFormatter(logging.Formatter):
    """Wraps the level name in an ANSI colour, leaves the record untouched"""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2;37m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno)
        if color:
            colored.levelname = f"{color}{record.levelname:<8}{self.RESET}"
        return super().format(colored)


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs"):
    """
    Configure the root logger for the application

    Args:
        log_level: name of the root level, unknown names fall back to INFO
        log_dir: directory for the daily log files, ``None`` keeps output on the console only
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(LevelColorFormatter(CONSOLE_FORMAT, DATE_FORMAT))
    root.addHandler(console)

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        stamp = date.today().isoformat()
        root.addHandler(_file_handler(directory / f"dealer_{stamp}.log", logging.INFO))
        root.addHandler(_file_handler(directory / f"errors_{stamp}.log", logging.ERROR))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).info(
        f"Logging configured at {logging.getLevelName(level)}"
        + (f", files in {log_dir}" if log_dir else "")
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
