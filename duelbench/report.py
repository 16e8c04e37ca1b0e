"""Human-readable rendering of comparison reports."""

from __future__ import annotations

from typing import Iterable, Optional

from rich import box
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .comparator import ComparisonReport
from .stats import wilson_interval


def win_change_text(report: ComparisonReport) -> Text:
    text = Text()
    text.append("Win change", style="bold")
    text.append(" ")
    change = report.win_delta
    if change > 0:
        text.append(f"+{change}", style="bold bright_green")
    elif change == 0:
        text.append("None", style="green")
    else:
        text.append(f"{change}", style="bold bright_red")
    text.append(f" ({len(report.baseline.team0_wins)} -> {len(report.new.team0_wins)})")
    return text


def time_change_text(report: ComparisonReport) -> Text:
    baseline_avg = report.baseline_avg_time
    new_avg = report.new_avg_time
    text = Text()
    text.append("Avg time change", style="bold")
    text.append(" ")
    if new_avg < baseline_avg:
        text.append(f"-{baseline_avg - new_avg:.3f}", style="bold bright_green")
    elif new_avg == baseline_avg:
        text.append("None", style="green")
    else:
        text.append(f"{new_avg - baseline_avg:.3f}", style="bold bright_red")
    text.append(f" ({baseline_avg:.3f} -> {new_avg:.3f})")
    return text


def render_report(report: ComparisonReport) -> Group:
    header = Text()
    header.append("Results for ", style="bright_blue")
    header.append(report.scene, style="bold bright_blue")
    return Group(header, win_change_text(report), time_change_text(report))


def summary_table(reports: Iterable[ComparisonReport], title: str = "Benchmark summary") -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Scenario", justify="left")
    table.add_column("Base W/L/D", justify="right")
    table.add_column("New W/L/D", justify="right")
    table.add_column("Win Δ", justify="right")
    table.add_column("New score 95%", justify="right")
    table.add_column("Base avg t", justify="right")
    table.add_column("New avg t", justify="right")
    table.add_column("Time Δ", justify="right")

    for r in reports:
        b, n = r.baseline, r.new
        lo, hi = wilson_interval(n.score, n.rounds)
        delta_style = "bright_green" if r.win_delta > 0 else ("bright_red" if r.win_delta < 0 else "")
        time_style = "bright_green" if r.avg_time_delta < 0 else ("bright_red" if r.avg_time_delta > 0 else "")
        table.add_row(
            r.scene,
            f"{len(b.team0_wins)}/{len(b.team0_losses)}/{len(b.draws)}",
            f"{len(n.team0_wins)}/{len(n.team0_losses)}/{len(n.draws)}",
            Text(f"{r.win_delta:+d}", style=delta_style),
            f"{n.score:.2f} [{lo:.2f},{hi:.2f}]",
            f"{r.baseline_avg_time:.3f}",
            f"{r.new_avg_time:.3f}",
            Text(f"{r.avg_time_delta:+.3f}", style=time_style),
        )
    return table


def print_reports(reports: Iterable[ComparisonReport], console: Optional[Console] = None) -> None:
    console = console or Console()
    reports = list(reports)
    console.print(Text("Results", style="bright_blue"))
    for report in reports:
        console.print(render_report(report))
    if reports:
        console.print(summary_table(reports))
