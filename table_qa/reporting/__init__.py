"""Reporting package"""
from .aggregator import LEGACY_RUN_ID, classify_execution_mode, group_runs, sort_runs
from .dashboard import DashboardRenderer, generate_report
from .history_store import ExecutionHistoryStore, HistoryCorruptError, HistoryError
from .metrics import (
    SPEEDUP_PLACEHOLDER,
    calculate_browser_stats,
    calculate_category_stats,
    calculate_execution_mode_metrics,
    calculate_global_stats,
    calculate_speedup,
    format_speedup,
    summarize_history,
)
from .recorder import StepRecorder
from .reporter import ExecutionReporter, FinishedStep, FinishedTest, RunContext

__all__ = [
    "LEGACY_RUN_ID",
    "classify_execution_mode",
    "group_runs",
    "sort_runs",
    "DashboardRenderer",
    "generate_report",
    "ExecutionHistoryStore",
    "HistoryCorruptError",
    "HistoryError",
    "SPEEDUP_PLACEHOLDER",
    "calculate_browser_stats",
    "calculate_category_stats",
    "calculate_execution_mode_metrics",
    "calculate_global_stats",
    "calculate_speedup",
    "format_speedup",
    "summarize_history",
    "StepRecorder",
    "ExecutionReporter",
    "FinishedStep",
    "FinishedTest",
    "RunContext",
]
