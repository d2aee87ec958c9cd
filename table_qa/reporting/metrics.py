"""
Metrics Engine - cross-run statistics for the dashboard
"""
from typing import Dict, List, Optional, Sequence

from ..config import settings
from ..models import (
    BrowserStats,
    BrowserType,
    CategoryStats,
    ExecutionComparison,
    ExecutionMode,
    ExecutionModeMetrics,
    GlobalStats,
    HistorySummary,
    RunGroup,
    TestCategory,
    TestExecutionRecord,
)
from ..models.execution_record import DETAILED_OUTCOME, RUN_OUTCOME
from ..utils.helpers import js_round
from .aggregator import classify_run, group_runs, sort_runs

SPEEDUP_PLACEHOLDER = "-"


def recent_window(
    history: Sequence[TestExecutionRecord],
    size: Optional[int] = None
) -> List[TestExecutionRecord]:
    """Last `size` records in append order."""
    size = settings.RECENT_WINDOW if size is None else size
    if size <= 0:
        return []
    return list(history[-size:])


def calculate_browser_stats(records: Sequence[TestExecutionRecord]) -> List[BrowserStats]:
    """
    Per-browser totals over the given records.

    Browsers without records are left out.
    """
    stats = {
        browser: {"passed": 0, "failed": 0, "total_duration": 0, "count": 0}
        for browser in BrowserType
    }

    for record in records:
        entry = stats[record.browser]
        entry["count"] += 1
        entry["total_duration"] += record.duration
        entry[RUN_OUTCOME[record.status]] += 1

    return [
        BrowserStats(
            browser=browser,
            passed=s["passed"],
            failed=s["failed"],
            total=s["count"],
            avg_duration=js_round(s["total_duration"] / s["count"]),
            stability=js_round(s["passed"] / s["count"] * 100),
        )
        for browser, s in stats.items()
        if s["count"] > 0
    ]


def calculate_category_stats(records: Sequence[TestExecutionRecord]) -> List[CategoryStats]:
    """Per-category totals, in category declaration order."""
    counts = {category: {"passed": 0, "failed": 0} for category in TestCategory}
    for record in records:
        counts[record.category][RUN_OUTCOME[record.status]] += 1

    result = []
    for category, c in counts.items():
        total = c["passed"] + c["failed"]
        if total == 0:
            continue
        result.append(CategoryStats(
            category=category.value,
            total=total,
            passed=c["passed"],
            failed=c["failed"],
            pass_rate=js_round(c["passed"] / total * 100),
        ))
    return result


def _mode_metrics(groups: List[RunGroup], mode: str) -> ExecutionModeMetrics:
    if not groups:
        return ExecutionModeMetrics(mode=mode)

    counts = {"passed": 0, "failed": 0, "skipped": 0}
    total_duration = 0
    total_tests = 0
    total_wall_clock = 0.0

    for group in groups:
        total_wall_clock += group.wall_clock_time
        for record in group.results:
            total_tests += 1
            total_duration += record.duration
            counts[DETAILED_OUTCOME[record.status]] += 1

    return ExecutionModeMetrics(
        mode=mode,
        total_runs=len(groups),
        total_tests=total_tests,
        avg_duration=js_round(total_duration / total_tests) if total_tests else 0,
        avg_run_time=js_round(total_wall_clock / len(groups)),
        pass_rate=js_round(counts["passed"] / total_tests * 100) if total_tests else 0,
        **counts,
    )


def calculate_execution_mode_metrics(runs: Dict[str, RunGroup]) -> ExecutionComparison:
    """
    Compare parallel and sequential runs.

    Each group is classified from its first result rather than from its
    stored execution mode.
    """
    parallel: List[RunGroup] = []
    sequential: List[RunGroup] = []

    for group in runs.values():
        if classify_run(group) == ExecutionMode.SEQUENTIAL:
            sequential.append(group)
        else:
            parallel.append(group)

    return ExecutionComparison(
        parallel=_mode_metrics(parallel, "Parallel"),
        sequential=_mode_metrics(sequential, "Sequential"),
    )


def calculate_global_stats(
    history: Sequence[TestExecutionRecord],
    window: Optional[int] = None
) -> GlobalStats:
    """Totals over the trailing window of the history."""
    recent = recent_window(history, window)
    total = len(recent)
    if total == 0:
        return GlobalStats()

    counts = {"passed": 0, "failed": 0, "skipped": 0}
    for record in recent:
        counts[DETAILED_OUTCOME[record.status]] += 1

    return GlobalStats(
        total=total,
        pass_rate=round(counts["passed"] / total * 100, 1),
        avg_duration=js_round(sum(r.duration for r in recent) / total),
        **counts,
    )


def calculate_speedup(metrics: ExecutionComparison) -> Optional[float]:
    """
    How many times faster parallel runs finish than sequential ones.

    None unless both average run times are positive.
    """
    parallel = metrics.parallel.avg_run_time
    sequential = metrics.sequential.avg_run_time
    if parallel > 0 and sequential > 0:
        return sequential / parallel
    return None


def format_speedup(speedup: Optional[float]) -> str:
    """Speedup label such as '2.5x', or the placeholder."""
    if speedup is None:
        return SPEEDUP_PLACEHOLDER
    return f"{speedup:.1f}x"


def summarize_history(
    history: Sequence[TestExecutionRecord],
    window: Optional[int] = None
) -> HistorySummary:
    """
    Run the whole aggregation pass over one history snapshot.

    Args:
        history: Records in append order
        window: Trailing window size for global, browser and category stats

    Returns:
        HistorySummary with runs, sorted runs and all derived metrics
    """
    runs = group_runs(history)
    recent = recent_window(history, window)
    execution_metrics = calculate_execution_mode_metrics(runs)

    return HistorySummary(
        runs=runs,
        sorted_runs=sort_runs(runs),
        global_stats=calculate_global_stats(history, window),
        browser_stats=calculate_browser_stats(recent),
        category_stats=calculate_category_stats(recent),
        execution_metrics=execution_metrics,
        speedup=calculate_speedup(execution_metrics),
    )
