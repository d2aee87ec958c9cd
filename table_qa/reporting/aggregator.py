"""
Run Aggregator - groups execution records into runs
"""
import logging
import math
from typing import Dict, Iterable, List, Optional

from ..models import ExecutionMode, RunGroup, TestExecutionRecord
from ..models.execution_record import RUN_OUTCOME
from ..utils.helpers import timestamp_to_ms

logger = logging.getLogger(__name__)

LEGACY_RUN_ID = "LEGACY-RUN"

# Tags written by default tool invocations that run tests in parallel.
PARALLEL_TAGS = ("test", "npx")


def classify_execution_mode(tag: Optional[str]) -> ExecutionMode:
    """
    Classify an execution mode tag.

    Anything that is not recognisably sequential is treated as parallel,
    including empty and "unknown" tags.
    """
    tag = tag or "unknown"
    if "parallel" in tag or tag in PARALLEL_TAGS:
        return ExecutionMode.PARALLEL
    if "sequential" in tag:
        return ExecutionMode.SEQUENTIAL
    return ExecutionMode.PARALLEL


def classify_run(group: RunGroup) -> ExecutionMode:
    """Re-derive a group's mode from its first result."""
    first = group.results[0] if group.results else None
    return classify_execution_mode(first.execution_mode if first else None)


def calculate_wall_clock_time(records: List[TestExecutionRecord]) -> float:
    """
    Elapsed time from the earliest start to the latest end, in ms.

    A record whose timestamp does not parse makes the result NaN.
    """
    if not records:
        return 0.0
    starts = [timestamp_to_ms(r.timestamp) for r in records]
    if any(math.isnan(s) for s in starts):
        return math.nan
    ends = [start + r.duration for start, r in zip(starts, records)]
    return float(max(ends) - min(starts))


def group_runs(records: Iterable[TestExecutionRecord]) -> Dict[str, RunGroup]:
    """
    Group records by run id, in encounter order.

    Args:
        records: Execution records as stored

    Returns:
        Mapping of run id to its RunGroup
    """
    runs: Dict[str, RunGroup] = {}

    for record in records:
        run_id = record.run_id or LEGACY_RUN_ID
        group = runs.get(run_id)
        if group is None:
            group = RunGroup(id=run_id, timestamp=record.timestamp)
            runs[run_id] = group

        group.results.append(record)
        if RUN_OUTCOME[record.status] == "passed":
            group.passed += 1
        else:
            group.failed += 1
        group.duration += record.duration
        if record.browser not in group.browsers:
            group.browsers.append(record.browser)

    for group in runs.values():
        group.wall_clock_time = calculate_wall_clock_time(group.results)
        group.execution_mode = classify_run(group)
        if math.isnan(group.wall_clock_time):
            logger.warning(f"Run {group.id} has a malformed timestamp; wall-clock time is NaN")

    return runs


def _sort_key(group: RunGroup) -> float:
    started = timestamp_to_ms(group.timestamp)
    return -math.inf if math.isnan(started) else started


def sort_runs(runs: Dict[str, RunGroup]) -> List[RunGroup]:
    """Most recent run first; ties keep encounter order."""
    return sorted(runs.values(), key=_sort_key, reverse=True)
