"""
Error taxonomy for duelbench.
Every harness failure is classified by category and severity so the CLI can
log it consistently. Nothing here retries: these errors describe deterministic
misconfiguration or engine contract breaches.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for classification."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""
    CONFIGURATION = "configuration"
    INVARIANT = "invariant"
    COMPILATION = "compilation"
    UNKNOWN = "unknown"


class BenchError(Exception):
    """Base exception class for duelbench errors."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM, context_data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.context_data = context_data or {}
        self.timestamp = time.time()

    def __str__(self):
        return f"[{self.category.value}:{self.severity.value}] {super().__str__()}"


class InvalidConfiguration(BenchError):
    """Zero rounds, bad worker counts, unresolvable scenarios and similar."""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.CONFIGURATION, ErrorSeverity.HIGH, **kwargs)


class ScenarioNotFound(InvalidConfiguration):
    """A scenario identifier the catalogue does not know."""
    def __init__(self, scenario: str, **kwargs):
        context = kwargs.pop("context_data", None) or {}
        context.setdefault("scenario", scenario)
        super().__init__(f"Unknown scenario {scenario}", context_data=context, **kwargs)
        self.scenario = scenario


class InvariantViolation(BenchError):
    """The simulation engine reported something outside its status contract."""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.INVARIANT, ErrorSeverity.CRITICAL, **kwargs)


class CompileError(BenchError):
    """The external toolchain rejected a piece of agent code."""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.COMPILATION, ErrorSeverity.HIGH, **kwargs)


def log_bench_error(logger: logging.Logger, error: BaseException) -> None:
    """Log error with appropriate severity."""
    if not isinstance(error, BenchError):
        logger.error(f"Unexpected failure: {error!r}")
        return

    if error.severity == ErrorSeverity.CRITICAL:
        logger.critical(str(error))
        logger.debug(f"Error context: {error.context_data}")
    elif error.severity == ErrorSeverity.HIGH:
        logger.error(str(error))
        logger.debug(f"Error context: {error.context_data}")
    elif error.severity == ErrorSeverity.MEDIUM:
        logger.warning(str(error))
    else:
        logger.info(str(error))
