"""
Matrix scheduling: every scenario of a run, compared in parallel.

Scenario bindings (name -> resident opponent) are resolved and compiled once
before dispatch and handed to workers as an immutable snapshot. A failure in
any scenario aborts the whole run; no partial table is returned.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .comparator import ComparisonReport, compare
from .competitors import Code, Competitor, resident_competitor
from .config import BenchSettings
from .errors import InvalidConfiguration, ScenarioNotFound
from .executors import completed_fail_fast, make_executor
from .interfaces import Compiler, ScenarioCatalogue, SimulationEngine
from .rounds import RoundResult, run_round
from .trial import TrialResult, run_trial

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int, int, ComparisonReport], None]


class ProgressCounter:
    """Completed-scenario counter shared by all scheduler workers."""

    def __init__(self, total: int):
        self.total = int(total)
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Add one and return the new count; each call sees a distinct value."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


def resolve_scenarios(names: Iterable[str], catalogue: ScenarioCatalogue,
                      compiler: Compiler) -> Dict[str, Competitor]:
    """Load each scenario once and compile its resident team 1 opponent."""
    mapping: Dict[str, Competitor] = {}
    for name in names:
        if name in mapping:
            continue
        try:
            descriptor = catalogue.load(name)
        except LookupError as e:
            raise ScenarioNotFound(name) from e
        if descriptor is None:
            raise ScenarioNotFound(name)
        codes = list(getattr(descriptor, "initial_code", ()) or ())
        if len(codes) < 2:
            raise InvalidConfiguration(f"Scenario {name} has no resident opponent",
                                       context_data={"scenario": name})
        mapping[name] = resident_competitor(name, codes[1], compiler)
    return mapping


def _snapshot(scenarios: Mapping[str, Union[Competitor, Code]],
              compiler: Optional[Compiler]) -> Tuple[Tuple[str, Competitor], ...]:
    bound = []
    for scene, opponent in dict(scenarios).items():
        if not isinstance(opponent, Competitor):
            if compiler is None:
                raise InvalidConfiguration(f"Scenario {scene} needs a compiler to resolve its opponent",
                                           context_data={"scenario": scene})
            opponent = resident_competitor(scene, opponent, compiler)
        bound.append((scene, opponent))
    return tuple(bound)


def run_matrix(engine: SimulationEngine, scenarios: Mapping[str, Union[Competitor, Code]],
               baseline: Competitor, new: Competitor, rounds: int,
               scenario_workers: int = 1, trial_workers: int = 1, executor: str = "thread",
               max_ticks: Optional[int] = None, progress: Optional[ProgressSink] = None,
               compiler: Optional[Compiler] = None) -> List[ComparisonReport]:
    """Compare baseline and new on every scenario.

    Opponents given as code variants are compiled here, before any work is
    dispatched. Every trial of the run goes through one executor of
    ``trial_workers``; scenario and comparator threads only coordinate.
    Reports come back in the order of ``scenarios``. ``progress`` is called
    once per finished scenario with a strictly increasing count.
    """
    if int(rounds) < 1:
        raise InvalidConfiguration(f"Rounds must be at least 1, got {rounds}")
    snapshot = _snapshot(scenarios, compiler)
    if not snapshot:
        return []
    counter = ProgressCounter(len(snapshot))
    shared = trial_workers > 1 or (scenario_workers > 1 and len(snapshot) > 1)
    trial_pool = make_executor(executor, int(trial_workers), name="trial") if shared else None

    def run_one(scene: str, opponent: Competitor) -> ComparisonReport:
        report = compare(engine, scene, opponent, baseline, new, rounds,
                         trial_workers=trial_workers, executor=executor, max_ticks=max_ticks,
                         pool=trial_pool)
        completed = counter.increment()
        logger.info(f"Completed {completed}/{counter.total} benchmarks")
        if progress is not None:
            progress(completed, counter.total, report)
        return report

    reports: Dict[str, ComparisonReport] = {}
    try:
        if scenario_workers <= 1:
            for scene, opponent in snapshot:
                reports[scene] = run_one(scene, opponent)
        else:
            pool = make_executor("thread", min(int(scenario_workers), len(snapshot)), name="scenario")
            try:
                futures = {pool.submit(run_one, scene, opponent): scene for scene, opponent in snapshot}
                for fut in completed_fail_fast(futures):
                    reports[futures[fut]] = fut.result()
            except BaseException:
                # Drop queued trials so the remaining coordinators unwind
                if trial_pool is not None:
                    trial_pool.shutdown(wait=False, cancel_futures=True)
                raise
            finally:
                pool.shutdown(wait=True, cancel_futures=True)
    except BaseException as e:
        logger.error(f"Benchmark matrix aborted: {e}")
        raise
    finally:
        if trial_pool is not None:
            trial_pool.shutdown(wait=True, cancel_futures=True)

    return [reports[scene] for scene, _ in snapshot]


class BenchmarkRunner:
    """Main benchmark execution engine: an engine bound to resolved settings."""

    def __init__(self, engine: SimulationEngine, settings: Optional[BenchSettings] = None,
                 progress: Optional[ProgressSink] = None, compiler: Optional[Compiler] = None):
        self.engine = engine
        self.settings = settings or BenchSettings()
        self.settings.validate()
        self.progress = progress
        self.compiler = compiler

    def run_trial(self, scenario: str, seed: int, competitors: Tuple[Competitor, Competitor]) -> TrialResult:
        return run_trial(self.engine, scenario, seed, competitors, self.settings.max_ticks)

    def run_round(self, scenario: str, competitors: Tuple[Competitor, Competitor],
                  rounds: Optional[int] = None) -> RoundResult:
        s = self.settings
        return run_round(self.engine, scenario, competitors, s.rounds if rounds is None else rounds,
                         workers=s.trial_workers, executor=s.executor, max_ticks=s.max_ticks)

    def compare(self, scenario: str, resident_opponent: Competitor, baseline: Competitor,
                new: Competitor, rounds: Optional[int] = None) -> ComparisonReport:
        s = self.settings
        return compare(self.engine, scenario, resident_opponent, baseline, new,
                       s.rounds if rounds is None else rounds,
                       trial_workers=s.trial_workers, executor=s.executor, max_ticks=s.max_ticks)

    def run_matrix(self, scenarios: Mapping[str, Union[Competitor, Code]], baseline: Competitor,
                   new: Competitor, rounds: Optional[int] = None) -> List[ComparisonReport]:
        s = self.settings
        logger.info(f"Initialized benchmark runner with {len(scenarios)} scenarios")
        return run_matrix(self.engine, scenarios, baseline, new,
                          s.rounds if rounds is None else rounds,
                          scenario_workers=s.scenario_workers, trial_workers=s.trial_workers,
                          executor=s.executor, max_ticks=s.max_ticks, progress=self.progress,
                          compiler=self.compiler)
