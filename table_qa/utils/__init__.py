"""Utilities package"""
from .helpers import (
    format_chart_label,
    format_duration,
    format_seconds,
    format_timestamp,
    js_round,
    sanitize_filename,
    timestamp_now,
    timestamp_to_ms,
)

__all__ = [
    "format_chart_label",
    "format_duration",
    "format_seconds",
    "format_timestamp",
    "js_round",
    "sanitize_filename",
    "timestamp_now",
    "timestamp_to_ms",
]
