"""Worker pools and fail-fast joining shared by every fan-out level."""

from __future__ import annotations

import logging
from concurrent.futures import (Executor, Future, ProcessPoolExecutor,
                                ThreadPoolExecutor, as_completed)
from typing import Iterable, Iterator, Optional

import psutil

from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

EXECUTOR_KINDS = ("thread", "process")


def default_workers() -> int:
    """Physical core count, falling back to logical cores."""
    return int(psutil.cpu_count(logical=False) or psutil.cpu_count(logical=True) or 1)


def make_executor(kind: str, workers: int, name: Optional[str] = None) -> Executor:
    if workers < 1:
        raise InvalidConfiguration(f"Worker count must be positive, got {workers}")
    if kind == "thread":
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name or "duelbench")
    if kind == "process":
        return ProcessPoolExecutor(max_workers=workers)
    raise InvalidConfiguration(f"Unknown executor kind {kind!r}, expected one of {EXECUTOR_KINDS}")


def completed_fail_fast(futures: Iterable[Future]) -> Iterator[Future]:
    """Yield futures as they finish; on the first failure cancel the rest and re-raise.

    The failing future's exception propagates unchanged. Futures already
    running cannot be interrupted and are left to finish on their own.
    """
    pending = list(futures)
    try:
        for fut in as_completed(pending):
            fut.result()
            yield fut
    except BaseException:
        cancelled = sum(1 for f in pending if f.cancel())
        if cancelled:
            logger.debug(f"Cancelled {cancelled} pending tasks after failure")
        raise
