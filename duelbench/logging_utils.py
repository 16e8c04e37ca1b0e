from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler

LOG_LEVEL_ENV = "DUELBENCH_LOG_LEVEL"


class JSONLHandler(logging.Handler):
    def __init__(self, path: Path, level=logging.INFO, max_bytes: int = 5_000_000, backup_count: int = 5):
        super().__init__(level)
        self.path = path
        self.max_bytes = int(max_bytes)
        self.backup_count = int(backup_count)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _rotate(self) -> None:
        if not self.path.exists():
            return
        if self.path.stat().st_size <= self.max_bytes:
            return
        # Shift older backups
        for i in range(self.backup_count - 1, 0, -1):
            src = self.path.with_suffix(self.path.suffix + f".{i}")
            dst = self.path.with_suffix(self.path.suffix + f".{i+1}")
            if src.exists():
                src.replace(dst)
        self.path.replace(self.path.with_suffix(self.path.suffix + ".1"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            payload = {
                "ts": record.created,
                "level": record.levelname,
                "msg": record.getMessage(),
                "name": record.name,
                "module": record.module,
                "func": record.funcName,
                "line": record.lineno,
                "thread": record.threadName,
            }
            with self.lock:
                self._rotate()
                with self.path.open("a") as f:
                    f.write(json.dumps(payload) + "\n")
        except Exception:
            self.handleError(record)


def resolve_level(verbosity: int = 0, default: Union[int, str] = logging.WARNING) -> int:
    """Map ``-v`` counts (or ``DUELBENCH_LOG_LEVEL``) onto a logging level.

    The environment variable wins over the configured default; explicit ``-v``
    flags win over both.
    """
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    level = os.environ.get(LOG_LEVEL_ENV) or default
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        return resolved if isinstance(resolved, int) else logging.WARNING
    return int(level)


def setup_logging(log_dir: Optional[str] = "logs", level: int = logging.WARNING,
                  name: Optional[str] = "duelbench") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    console = RichHandler(rich_tracebacks=False, markup=False, show_path=False)
    console.setLevel(level)
    logger.addHandler(console)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(Path(log_dir) / "duelbench.log", maxBytes=5_000_000, backupCount=5)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(threadName)s - %(levelname)s - %(message)s"))
        logger.addHandler(file_handler)

        jsonl_handler = JSONLHandler(Path(log_dir) / "structured.jsonl", level=level, max_bytes=5_000_000, backup_count=5)
        logger.addHandler(jsonl_handler)

    logger.propagate = False
    return logger
