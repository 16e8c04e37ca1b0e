"""Convenience imports for the :mod:`duelbench` package.

The core API is re-exported here::

    from duelbench import run_trial, run_round, compare, run_matrix

Submodules stay importable on their own (``duelbench.report``,
``duelbench.cli``) for the formatting and command line layers.
"""

from .comparator import ComparisonReport, compare
from .competitors import (BuiltinReference, CompiledBinary, Competitor,
                          SourceText, load_competitor, resolve_code)
from .config import BenchSettings, Config
from .errors import (BenchError, CompileError, InvalidConfiguration,
                     InvariantViolation, ScenarioNotFound)
from .interfaces import DRAW, FAILED, RUNNING, Status, StatusKind
from .matrix import (BenchmarkRunner, ProgressCounter, resolve_scenarios,
                     run_matrix)
from .rounds import RoundResult, run_round
from .trial import Outcome, TrialResult, run_trial

__version__ = "0.1.0"

__all__ = [
    "run_trial", "run_round", "compare", "run_matrix", "resolve_scenarios",
    "BenchmarkRunner", "ProgressCounter",
    "Outcome", "TrialResult", "RoundResult", "ComparisonReport",
    "Competitor", "SourceText", "BuiltinReference", "CompiledBinary", "load_competitor", "resolve_code",
    "Status", "StatusKind", "RUNNING", "DRAW", "FAILED",
    "Config", "BenchSettings",
    "BenchError", "InvalidConfiguration", "ScenarioNotFound", "InvariantViolation", "CompileError",
]
