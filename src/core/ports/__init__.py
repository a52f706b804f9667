# Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.db import (
    ActorLocationRepoPort,
    BusinessProfileRepoPort,
    DuplicateInteractionError,
    EventQuery,
    EventStorePort,
    PageRepoPort,
    StoreError,
    WidgetRepoPort,
)
from src.core.ports.time import TimePort

__all__ = [
    # Stores
    "ActorLocationRepoPort",
    "BusinessProfileRepoPort",
    "EventQuery",
    "EventStorePort",
    "PageRepoPort",
    "WidgetRepoPort",
    # Errors
    "DuplicateInteractionError",
    "StoreError",
    # Time
    "TimePort",
]
