"""
Command line entry point.

Usage:
    duelbench baseline.rs new.rs scenarios.txt --backend mysim.bench:backend
    duelbench baseline.rs new.rs duel,chase --rounds 50 --trial-workers 8
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from tqdm import tqdm

from .backend import load_backend
from .comparator import ComparisonReport
from .competitors import load_competitor
from .config import BenchSettings, Config
from .errors import BenchError, InvalidConfiguration, log_bench_error
from .executors import EXECUTOR_KINDS
from .listing import parse_scene_listing
from .logging_utils import resolve_level, setup_logging
from .matrix import BenchmarkRunner, resolve_scenarios
from .report import print_reports

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "config.yaml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="duelbench", description="Compare two agent programs across scenarios")
    parser.add_argument("baseline_shortcode", help="Source file of the baseline agent")
    parser.add_argument("new_shortcode", help="Source file of the new agent")
    parser.add_argument("scene_listing", help="File with one scenario per line, or a comma-separated list")
    parser.add_argument("-r", "--rounds", type=int, default=None, help="Seeds per scenario and competitor (default 10)")
    parser.add_argument("--config", type=str, default=None, help=f"YAML config (default {DEFAULT_CONFIG} if present)")
    parser.add_argument("--backend", type=str, default=None, help="Simulation backend as module:attribute")
    parser.add_argument("--trial-workers", type=int, default=None, help="Concurrent trials per round")
    parser.add_argument("--scenario-workers", type=int, default=None, help="Concurrent scenarios")
    parser.add_argument("--executor", choices=EXECUTOR_KINDS, default=None, help="Trial-level pool kind")
    parser.add_argument("--max-ticks", type=int, default=None, help="Override the engine tick budget")
    parser.add_argument("--log-dir", type=str, default=None, help="Directory for log files (default logs)")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug")
    return parser


def _load_config(path: Optional[str]) -> Config:
    if path is not None:
        return Config.load(path)
    if Path(DEFAULT_CONFIG).is_file():
        return Config.load(DEFAULT_CONFIG)
    return Config()


def run(args: argparse.Namespace, cfg: Optional[Config] = None,
        console: Optional[Console] = None) -> List[ComparisonReport]:
    console = console or Console()
    cfg = cfg if cfg is not None else _load_config(args.config)
    settings = BenchSettings.from_config(
        cfg,
        rounds=args.rounds,
        trial_workers=args.trial_workers,
        scenario_workers=args.scenario_workers,
        executor=args.executor,
        max_ticks=args.max_ticks,
        backend=args.backend,
    )
    if not settings.backend:
        raise InvalidConfiguration("No simulation backend configured (use --backend or simulation.backend)")
    backend = load_backend(settings.backend)

    names = parse_scene_listing(args.scene_listing)
    scenarios = resolve_scenarios(names, backend.catalogue, backend.compiler)

    console.print("Compiling inputted AIs", style="bright_blue")
    baseline = load_competitor(args.baseline_shortcode, backend.compiler)
    new = load_competitor(args.new_shortcode, backend.compiler)

    console.print("Running Benchmarks", style="bright_blue")
    pbar = None if args.no_progress else tqdm(total=len(scenarios), desc="Benchmarks", unit="scenario")

    def on_progress(completed: int, total: int, report: ComparisonReport) -> None:
        if pbar is not None:
            pbar.update(1)
            pbar.set_postfix({"last": report.scene, "done": f"{completed}/{total}"})

    runner = BenchmarkRunner(backend.engine, settings, progress=on_progress, compiler=backend.compiler)
    try:
        reports = runner.run_matrix(scenarios, baseline, new)
    finally:
        if pbar is not None:
            pbar.close()
    print_reports(reports, console)
    return reports


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = _load_config(args.config)
    except BenchError as e:
        # No usable config: console logging plus an explicit --log-dir only
        setup_logging(args.log_dir, level=resolve_level(args.verbose))
        log_bench_error(logger, e)
        return 1

    log_cfg = cfg.logging()
    log_dir = args.log_dir if args.log_dir is not None else log_cfg.get("log_dir", "logs")
    setup_logging(log_dir, level=resolve_level(args.verbose, log_cfg.get("level", logging.WARNING)))
    try:
        run(args, cfg)
    except BenchError as e:
        log_bench_error(logger, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
