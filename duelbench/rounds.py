"""
Round aggregation: one scenario, one competitor pair, seeds ``0..rounds-1``.

Trials are independent and may finish in any order, so results are folded
with ``RoundResult.merge``, which is associative and commutative on the seed
buckets. Only ``times`` keeps completion order.
"""

from __future__ import annotations

import heapq
import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from .competitors import Competitor
from .errors import InvalidConfiguration, InvariantViolation
from .executors import completed_fail_fast, make_executor
from .interfaces import SimulationEngine
from .stats import mean_time, time_std, wilson_interval
from .trial import Outcome, TrialResult, run_trial

logger = logging.getLogger(__name__)


def _merge_seeds(a: Tuple[int, ...], b: Tuple[int, ...]) -> Tuple[int, ...]:
    return tuple(heapq.merge(a, b))


@dataclass(frozen=True)
class RoundResult:
    """Seeds bucketed by outcome plus elapsed times in completion order."""
    team0_wins: Tuple[int, ...] = ()
    team1_wins: Tuple[int, ...] = ()
    draws: Tuple[int, ...] = ()
    timeouts: Tuple[int, ...] = ()
    times: Tuple[float, ...] = field(default=())

    @classmethod
    def from_trial(cls, trial: TrialResult) -> "RoundResult":
        bucket = {
            Outcome.WIN_TEAM0: "team0_wins",
            Outcome.WIN_TEAM1: "team1_wins",
            Outcome.DRAW: "draws",
            Outcome.TIMED_OUT: "timeouts",
        }[trial.outcome]
        return cls(**{bucket: (trial.seed,)}, times=(float(trial.elapsed_time),))

    def merge(self, other: "RoundResult") -> "RoundResult":
        return RoundResult(
            team0_wins=_merge_seeds(self.team0_wins, other.team0_wins),
            team1_wins=_merge_seeds(self.team1_wins, other.team1_wins),
            draws=_merge_seeds(self.draws, other.draws),
            timeouts=_merge_seeds(self.timeouts, other.timeouts),
            times=self.times + other.times,
        )

    @property
    def rounds(self) -> int:
        return len(self.times)

    @property
    def team0_losses(self) -> Tuple[int, ...]:
        """Team 1 wins plus time-outs, both scored against team 0."""
        return _merge_seeds(self.team1_wins, self.timeouts)

    @property
    def win_rate(self) -> float:
        return len(self.team0_wins) / self.rounds if self.rounds else 0.0

    @property
    def score(self) -> float:
        """Team 0 score rate: 1 per win, 0.5 per draw."""
        if not self.rounds:
            return 0.0
        return (len(self.team0_wins) + 0.5 * len(self.draws)) / self.rounds

    @property
    def mean_time(self) -> float:
        return mean_time(self.times)

    @property
    def time_std(self) -> float:
        return time_std(self.times)

    def seeds(self) -> Tuple[int, ...]:
        return _merge_seeds(_merge_seeds(self.team0_wins, self.team1_wins),
                            _merge_seeds(self.draws, self.timeouts))

    def to_dict(self) -> Dict[str, Any]:
        lo, hi = wilson_interval(self.score, self.rounds)
        return {
            "team0_wins": list(self.team0_wins),
            "team1_wins": list(self.team1_wins),
            "draws": list(self.draws),
            "timeouts": list(self.timeouts),
            "times": list(self.times),
            "rounds": self.rounds,
            "win_rate": self.win_rate,
            "score": self.score,
            "score_interval": [lo, hi],
            "mean_time": self.mean_time if self.times else None,
        }


def _check_complete(result: RoundResult, rounds: int, scenario: str) -> None:
    buckets = (result.team0_wins, result.team1_wins, result.draws, result.timeouts)
    seeds = result.seeds()
    if (sum(len(b) for b in buckets) != rounds or seeds != tuple(range(rounds))
            or len(result.times) != rounds):
        raise InvariantViolation(
            f"Round for {scenario} is incomplete: expected seeds 0..{rounds - 1}",
            context_data={"scenario": scenario, "seeds": list(seeds)},
        )


def run_round(engine: SimulationEngine, scenario: str, competitors: Sequence[Competitor], rounds: int,
              workers: int = 1, executor: str = "thread", max_ticks: Optional[int] = None,
              pool: Optional[Executor] = None) -> RoundResult:
    """Run ``rounds`` seeded trials for one competitor pair and fold the results.

    With ``pool`` given, trials are submitted to that shared executor and
    ``workers``/``executor`` are ignored; the caller owns its lifetime.
    Any trial error aborts the whole round; partial tallies are discarded.
    """
    if int(rounds) < 1:
        raise InvalidConfiguration(f"Rounds must be at least 1, got {rounds}",
                                   context_data={"scenario": scenario})
    rounds = int(rounds)
    names = " vs ".join(c.name for c in competitors)
    logger.info(f"Running {rounds} simulations of {scenario}: {names}")

    result = RoundResult()
    if pool is None and (workers <= 1 or rounds == 1):
        for seed in range(rounds):
            result = result.merge(RoundResult.from_trial(run_trial(engine, scenario, seed, competitors, max_ticks)))
    else:
        owned = pool is None
        if owned:
            pool = make_executor(executor, min(int(workers), rounds), name=f"trial-{scenario}")
        try:
            futures = [pool.submit(run_trial, engine, scenario, seed, tuple(competitors), max_ticks)
                       for seed in range(rounds)]
            for fut in completed_fail_fast(futures):
                result = result.merge(RoundResult.from_trial(fut.result()))
        finally:
            if owned:
                pool.shutdown(wait=True, cancel_futures=True)

    _check_complete(result, rounds, scenario)
    logger.info(f"Simulation complete: {scenario} ({names}) "
                f"W/L/D/T={len(result.team0_wins)}/{len(result.team1_wins)}/"
                f"{len(result.draws)}/{len(result.timeouts)}")
    return result
