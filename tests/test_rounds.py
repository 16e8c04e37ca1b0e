"""Round aggregation: seed coverage, folding and all-or-nothing failure."""

import itertools
from concurrent.futures import ThreadPoolExecutor

import pytest

from duelbench.errors import InvalidConfiguration, InvariantViolation
from duelbench.rounds import RoundResult, run_round
from duelbench.stats import wilson_interval
from duelbench.trial import Outcome, TrialResult
from tests.fakes import PicklableEngine, ScriptedEngine, make_competitor


def _buckets(result):
    return [set(result.team0_wins), set(result.team1_wins), set(result.draws), set(result.timeouts)]


@pytest.mark.parametrize("rounds", [1, 2, 7, 20])
@pytest.mark.parametrize("workers", [1, 4])
def test_seed_buckets_partition_the_seed_range(jitter_engine, opponent, rounds, workers):
    result = run_round(jitter_engine, "duel", [make_competitor("mixed"), opponent], rounds, workers=workers)

    buckets = _buckets(result)
    for a, b in itertools.combinations(buckets, 2):
        assert not (a & b)
    assert set().union(*buckets) == set(range(rounds))
    assert len(result.times) == rounds
    assert result.rounds == rounds


def test_mixed_strategy_lands_in_expected_buckets(engine, opponent):
    result = run_round(engine, "duel", [make_competitor("mixed"), opponent], 8)
    assert list(result.team0_wins) == [0, 4]
    assert list(result.team1_wins) == [1, 5]
    assert list(result.draws) == [2, 6]
    assert list(result.timeouts) == [3, 7]
    assert list(result.team0_losses) == [1, 3, 5, 7]


@pytest.mark.parametrize("rounds", [0, -3])
def test_non_positive_rounds_are_rejected(engine, opponent, winner, rounds):
    with pytest.raises(InvalidConfiguration):
        run_round(engine, "duel", [winner, opponent], rounds)
    assert engine.created == []


@pytest.mark.error_handling
@pytest.mark.parametrize("workers", [1, 3])
def test_invariant_violation_aborts_the_round(opponent, workers):
    engine = ScriptedEngine(broken_scenarios={"duel"})
    with pytest.raises(InvariantViolation, match="Invalid team 2"):
        run_round(engine, "duel", [make_competitor("win"), opponent], 6, workers=workers)


@pytest.mark.concurrency
def test_parallel_and_sequential_rounds_agree(engine, jitter_engine, opponent):
    pair = [make_competitor("mixed"), opponent]
    sequential = run_round(engine, "duel", pair, 12, workers=1)
    parallel = run_round(jitter_engine, "duel", pair, 12, workers=6)

    assert _buckets(sequential) == _buckets(parallel)
    assert sorted(sequential.times) == sorted(parallel.times)
    assert sequential.mean_time == pytest.approx(parallel.mean_time)


@pytest.mark.concurrency
@pytest.mark.slow
def test_process_pool_round(opponent):
    result = run_round(PicklableEngine(), "duel", [make_competitor("mixed"), opponent], 8,
                       workers=2, executor="process")
    assert list(result.team0_wins) == [0, 4]
    assert len(result.times) == 8


def test_unknown_executor_kind_is_rejected(engine, opponent, winner):
    with pytest.raises(InvalidConfiguration, match="executor"):
        run_round(engine, "duel", [winner, opponent], 4, workers=2, executor="fiber")


def test_merge_is_order_independent():
    trials = [
        TrialResult(0, Outcome.WIN_TEAM0, 1.0),
        TrialResult(1, Outcome.DRAW, 2.0),
        TrialResult(2, Outcome.TIMED_OUT, 3.0),
        TrialResult(3, Outcome.WIN_TEAM1, 4.0),
        TrialResult(4, Outcome.WIN_TEAM0, 5.0),
    ]
    parts = [RoundResult.from_trial(t) for t in trials]

    forward = RoundResult()
    for p in parts:
        forward = forward.merge(p)
    backward = RoundResult()
    for p in reversed(parts):
        backward = backward.merge(p)
    grouped = parts[0].merge(parts[1]).merge(parts[2].merge(parts[3].merge(parts[4])))

    for other in (backward, grouped):
        assert _buckets(other) == _buckets(forward)
        assert other.team0_wins == forward.team0_wins
        assert sorted(other.times) == sorted(forward.times)
    # Times keep fold order, not seed order
    assert backward.times == (5.0, 4.0, 3.0, 2.0, 1.0)


def test_round_statistics():
    result = RoundResult(team0_wins=(0, 1), team1_wins=(2,), draws=(3,), timeouts=(),
                         times=(1.0, 2.0, 3.0, 6.0))
    assert result.win_rate == pytest.approx(0.5)
    assert result.score == pytest.approx(0.625)
    assert result.mean_time == pytest.approx(3.0)
    data = result.to_dict()
    assert data["rounds"] == 4
    assert data["team0_wins"] == [0, 1]
    lo, hi = data["score_interval"]
    assert 0.0 <= lo < result.score < hi <= 1.0


def test_empty_round_has_no_mean():
    with pytest.raises(InvalidConfiguration):
        RoundResult().mean_time


def test_merge_interleaves_sorted_seed_buckets():
    left = RoundResult(team0_wins=(0, 3, 8), draws=(5,), times=(1.0, 1.0, 1.0, 1.0))
    right = RoundResult(team0_wins=(1, 2, 9), timeouts=(4,), times=(2.0, 2.0, 2.0, 2.0))
    merged = left.merge(right)
    assert merged.team0_wins == (0, 1, 2, 3, 8, 9)
    assert merged.draws == (5,)
    assert merged.timeouts == (4,)
    assert merged.seeds() == (0, 1, 2, 3, 4, 5, 8, 9)


@pytest.mark.concurrency
def test_round_on_a_shared_pool_leaves_it_open(engine, opponent, winner):
    with ThreadPoolExecutor(max_workers=3) as pool:
        first = run_round(engine, "duel", [winner, opponent], 5, pool=pool)
        second = run_round(engine, "duel", [winner, opponent], 5, pool=pool)
    assert list(first.team0_wins) == list(second.team0_wins) == [0, 1, 2, 3, 4]


def test_wilson_interval_bounds():
    lo, hi = wilson_interval(0.5, 10)
    assert lo == pytest.approx(0.2366, abs=1e-3)
    assert hi == pytest.approx(0.7634, abs=1e-3)
    assert wilson_interval(1.0, 5)[1] == 1.0
    assert wilson_interval(0.3, 0) == (0.0, 0.0)
