"""
Interactions component port definitions.

The ingestion service writes to the event store, reads actor locations and
bumps view counters on the content stores.
"""

from __future__ import annotations

from src.core.ports.db import (
    ActorLocationRepoPort,
    BusinessProfileRepoPort,
    EventStorePort,
    PageRepoPort,
    WidgetRepoPort,
)
from src.core.ports.time import TimePort

__all__ = [
    "ActorLocationRepoPort",
    "BusinessProfileRepoPort",
    "EventStorePort",
    "PageRepoPort",
    "TimePort",
    "WidgetRepoPort",
]
