"""Models package"""
from .execution_record import (
    BrowserType,
    TestCategory,
    TestError,
    TestExecutionRecord,
    TestStatus,
    TestStep,
)
from .run_summary import (
    BrowserStats,
    CategoryStats,
    ExecutionComparison,
    ExecutionMode,
    ExecutionModeMetrics,
    GlobalStats,
    HistorySummary,
    RunGroup,
)

__all__ = [
    "BrowserType",
    "TestCategory",
    "TestError",
    "TestExecutionRecord",
    "TestStatus",
    "TestStep",
    "BrowserStats",
    "CategoryStats",
    "ExecutionComparison",
    "ExecutionMode",
    "ExecutionModeMetrics",
    "GlobalStats",
    "HistorySummary",
    "RunGroup",
]
