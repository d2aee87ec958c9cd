"""
Run Summary Data Models

Derived structures recomputed on every aggregation pass. Nothing here is
persisted.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from .execution_record import BrowserType, CamelModel, TestExecutionRecord


class ExecutionMode(str, Enum):
    """How the tests of a run were scheduled."""

    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"
    UNKNOWN = "unknown"


class RunGroup(CamelModel):
    """All records sharing a run id."""

    id: str
    timestamp: str
    results: List[TestExecutionRecord] = Field(default_factory=list)
    passed: int = 0
    failed: int = 0
    duration: int = 0
    wall_clock_time: float = 0  # ms, NaN when a timestamp is malformed
    browsers: List[BrowserType] = Field(default_factory=list)
    execution_mode: ExecutionMode = ExecutionMode.UNKNOWN


class BrowserStats(CamelModel):
    """Aggregated results for one browser."""

    browser: BrowserType
    passed: int
    failed: int
    total: int
    avg_duration: int
    stability: int  # percent


class CategoryStats(CamelModel):
    """Aggregated results for one test category."""

    category: str
    total: int
    passed: int
    failed: int
    pass_rate: int


class ExecutionModeMetrics(CamelModel):
    """Metrics for the runs of one execution mode."""

    mode: str
    total_runs: int = 0
    total_tests: int = 0
    avg_duration: int = 0
    avg_run_time: float = 0
    pass_rate: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0


class ExecutionComparison(CamelModel):
    """Parallel vs sequential metrics."""

    parallel: ExecutionModeMetrics
    sequential: ExecutionModeMetrics


class GlobalStats(CamelModel):
    """Statistics over the trailing window of records."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    pass_rate: float = 0.0
    avg_duration: int = 0


class HistorySummary(CamelModel):
    """Everything the dashboard and the API derive from one history snapshot."""

    runs: Dict[str, RunGroup] = Field(default_factory=dict)
    sorted_runs: List[RunGroup] = Field(default_factory=list)
    global_stats: GlobalStats = Field(default_factory=GlobalStats)
    browser_stats: List[BrowserStats] = Field(default_factory=list)
    category_stats: List[CategoryStats] = Field(default_factory=list)
    execution_metrics: ExecutionComparison
    speedup: Optional[float] = None
