"""
Analytics component port definitions.

Reports read the interaction event store and the widget store (to join
custom-link clicks back to live widgets).
"""

from __future__ import annotations

from src.core.ports.db import EventStorePort, WidgetRepoPort
from src.core.ports.time import TimePort

__all__ = [
    "EventStorePort",
    "TimePort",
    "WidgetRepoPort",
]
