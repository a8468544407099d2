"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    format_clock_time,
    get_app_timezone,
    isoformat_or_none,
    now_in_app_timezone,
    parse_clock_time,
    resolve_timezone,
)

__all__ = [
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "format_clock_time",
    "get_app_timezone",
    "isoformat_or_none",
    "now_in_app_timezone",
    "parse_clock_time",
    "resolve_timezone",
]
