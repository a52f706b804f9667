"""
Store interfaces (Protocols) for the interaction analytics engine.

Implementations: SQLite (src.adapters.sqlite.repos) and in-memory fakes
(src.components.interactions._impl, src.components.targets._impl).

The event store serialises individual writes but offers no cross-document
consistency; every aggregation is eventually consistent with concurrent
ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.core.entities import (
    ActorLocation,
    BusinessProfile,
    InteractionEvent,
    Page,
    TargetKind,
    Widget,
)

# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------


class StoreError(RuntimeError):
    """Underlying persistence failure."""


class DuplicateInteractionError(StoreError):
    """
    Raised when the store rejects an insert that would break the
    one-click-per-target or one-view-per-day invariant.

    Callers treat this as a normal duplicate outcome, not a failure.
    """

    def __init__(self, actor_id: UUID, target_id: UUID, kind: TargetKind) -> None:
        self.actor_id = actor_id
        self.target_id = target_id
        self.kind = kind
        super().__init__(f"Duplicate {kind.value} for actor {actor_id} on target {target_id}")


# -----------------------------------------------------------------------------
# Event Store
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class EventQuery:
    """
    Filter over the event store.

    ``start``/``end`` are inclusive bounds; ``before`` is an exclusive upper
    bound used for history look-ups. ``kinds=None`` means every kind.
    """

    owner_id: UUID | None = None
    target_id: UUID | None = None
    actor_id: UUID | None = None
    kinds: frozenset[TargetKind] | None = None
    start: datetime | None = None
    end: datetime | None = None
    before: datetime | None = None
    actor_ids: frozenset[UUID] | None = None
    limit: int | None = None
    newest_first: bool = False


class EventStorePort(Protocol):
    """
    Append-only interaction event store.

    Invariants:
    - events are never updated or deleted by this package
    - ``append`` raises DuplicateInteractionError when a uniqueness
      constraint rejects the row
    """

    def append(self, event: InteractionEvent) -> InteractionEvent:
        """Insert a new event."""
        ...

    def find_click(
        self, actor_id: UUID, target_id: UUID, kind: TargetKind
    ) -> InteractionEvent | None:
        """Existing click by this actor on this target, if any."""
        ...

    def find_view(
        self, actor_id: UUID, target_id: UUID, start: datetime, end: datetime
    ) -> InteractionEvent | None:
        """Existing view in ``[start, end)``, if any."""
        ...

    def query(self, query: EventQuery) -> list[InteractionEvent]:
        """Events matching the filter, oldest first unless newest_first."""
        ...

    def count(self, query: EventQuery) -> int:
        """Number of events matching the filter."""
        ...

    def distinct_actors(self, query: EventQuery) -> set[UUID]:
        """Distinct actor ids over the matching events."""
        ...


# -----------------------------------------------------------------------------
# Content collaborators
# -----------------------------------------------------------------------------


class PageRepoPort(Protocol):
    def get_by_id(self, page_id: UUID) -> Page | None:
        ...

    def increment_view_count(self, page_id: UUID) -> None:
        ...


class BusinessProfileRepoPort(Protocol):
    def get_by_id(self, profile_id: UUID) -> BusinessProfile | None:
        ...

    def increment_view_count(self, profile_id: UUID) -> None:
        ...


class WidgetRepoPort(Protocol):
    def get_by_id(self, widget_id: UUID) -> Widget | None:
        ...

    def list_by_owner(self, owner_id: UUID, kind: str | None = None) -> list[Widget]:
        """Widgets owned by ``owner_id``, optionally filtered by kind tag."""
        ...

    def increment_view_count(self, widget_id: UUID) -> None:
        ...


class ActorLocationRepoPort(Protocol):
    def get(self, actor_id: UUID) -> ActorLocation | None:
        ...

    def save(self, location: ActorLocation) -> ActorLocation:
        """Upsert the actor's last-known location."""
        ...
