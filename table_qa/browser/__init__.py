"""Browser package"""
from .artifact_capture import ScreenshotArchiver
from .controller import BrowserController
from .waiters import (
    RetryExhaustedError,
    StabilityTimeoutError,
    WaitOptions,
    wait_for_condition,
    wait_for_network_quiet,
    wait_for_quiet,
    wait_for_stable_count,
    wait_for_table_stability,
    with_retry,
)

__all__ = [
    "BrowserController",
    "ScreenshotArchiver",
    "RetryExhaustedError",
    "StabilityTimeoutError",
    "WaitOptions",
    "wait_for_condition",
    "wait_for_network_quiet",
    "wait_for_quiet",
    "wait_for_stable_count",
    "wait_for_table_stability",
    "with_retry",
]
