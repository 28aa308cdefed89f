"""
Core Utilities Package

This package contains utility functions and helpers used throughout the application.

Modules:
    - time: Timestamp conversion and normalization utilities
    - tasks: Concurrent fan-out that cancels its siblings on failure
"""

from core.utils.tasks import gather_or_cancel
from core.utils.time import to_utc_datetime, datetime_to_timestamp

__all__ = ["gather_or_cancel", "to_utc_datetime", "datetime_to_timestamp"]
