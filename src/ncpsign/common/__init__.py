"""Common utilities for ncpsign."""

from ncpsign.common.clock import Clock, FixedClock, SystemClock, timestamp_millis
from ncpsign.common.settings import Settings, get_settings

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "timestamp_millis",
    "Settings",
    "get_settings",
]
