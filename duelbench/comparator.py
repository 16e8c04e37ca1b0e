"""Baseline vs. new comparison against one scenario's resident opponent."""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .competitors import Competitor
from .executors import completed_fail_fast, make_executor
from .interfaces import SimulationEngine
from .rounds import RoundResult, run_round
from .stats import elo_estimate, mean_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonReport:
    """Both rounds for one scenario plus the derived deltas."""
    scene: str
    baseline: RoundResult
    new: RoundResult
    baseline_name: str = "baseline"
    new_name: str = "new"
    opponent_name: str = "Enemy"

    @property
    def win_delta(self) -> int:
        return len(self.new.team0_wins) - len(self.baseline.team0_wins)

    @property
    def baseline_avg_time(self) -> float:
        return mean_time(self.baseline.times)

    @property
    def new_avg_time(self) -> float:
        return mean_time(self.new.times)

    @property
    def avg_time_delta(self) -> float:
        return self.new_avg_time - self.baseline_avg_time

    def to_dict(self) -> Dict[str, Any]:
        elo_b = elo_estimate(self.baseline.score, self.baseline.rounds)
        elo_n = elo_estimate(self.new.score, self.new.rounds)
        return {
            "scene": self.scene,
            "baseline_name": self.baseline_name,
            "new_name": self.new_name,
            "opponent_name": self.opponent_name,
            "baseline": self.baseline.to_dict(),
            "new": self.new.to_dict(),
            "win_delta": self.win_delta,
            "avg_time_delta": self.avg_time_delta,
            "baseline_elo": list(elo_b),
            "new_elo": list(elo_n),
        }


def compare(engine: SimulationEngine, scene: str, resident_opponent: Competitor,
            baseline: Competitor, new: Competitor, rounds: int,
            trial_workers: int = 1, executor: str = "thread",
            max_ticks: Optional[int] = None, pool: Optional[Executor] = None) -> ComparisonReport:
    """Run baseline and new against the same resident opponent and diff them.

    The two rounds run side by side; if either fails the error propagates and
    no report is built. Trials of both rounds share one executor: ``pool`` when
    given, otherwise one of ``trial_workers`` built here. With a single trial
    worker and no pool the rounds run one after the other in this thread.
    """
    logger.info(f"Running Scene: {scene}")
    pairs = {
        "baseline": (baseline, resident_opponent),
        "new": (new, resident_opponent),
    }
    results: Dict[str, RoundResult] = {}
    if pool is None and trial_workers <= 1:
        for key, pair in pairs.items():
            results[key] = run_round(engine, scene, pair, rounds, max_ticks=max_ticks)
        return _report(scene, results, baseline, new, resident_opponent)

    trial_pool = pool
    owned = pool is None
    if owned:
        trial_pool = make_executor(executor, trial_workers, name=f"trial-{scene}")
    # Round threads only wait on trial futures
    coordinators = make_executor("thread", 2, name=f"compare-{scene}")
    try:
        futures = {
            coordinators.submit(run_round, engine, scene, pair, rounds, trial_workers, executor, max_ticks,
                                trial_pool): key
            for key, pair in pairs.items()
        }
        for fut in completed_fail_fast(futures):
            results[futures[fut]] = fut.result()
    except BaseException:
        if owned:
            trial_pool.shutdown(wait=False, cancel_futures=True)
        raise
    finally:
        coordinators.shutdown(wait=True, cancel_futures=True)
        if owned:
            trial_pool.shutdown(wait=True)

    return _report(scene, results, baseline, new, resident_opponent)


def _report(scene: str, results: Dict[str, RoundResult], baseline: Competitor, new: Competitor,
            resident_opponent: Competitor) -> ComparisonReport:
    report = ComparisonReport(
        scene=scene,
        baseline=results["baseline"],
        new=results["new"],
        baseline_name=baseline.name,
        new_name=new.name,
        opponent_name=resident_opponent.name,
    )
    # avg_time_delta raises InvalidConfiguration for an empty round
    logger.info(f"Scene {scene}: win change {report.win_delta:+d}, avg time change {report.avg_time_delta:+.3f}")
    return report
