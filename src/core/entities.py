"""
Domain entities for the interaction analytics engine.

- InteractionEvent: the append-only fact record (one row per click or view)
- Page / BusinessProfile / Widget: owner-published content, read-only here
- ActorLocation: an actor's last-known coordinates

Content entities are owned by the external authoring layer; this package only
looks them up by id and bumps their denormalised view counters.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TargetKind(str, Enum):
    """What an interaction event was recorded against."""

    PAGE = "page"
    BUSINESS_PROFILE = "business_profile"
    CUSTOM_LINK = "custom_link"
    VIEW = "view"


CLICK_KINDS: frozenset[TargetKind] = frozenset(
    {TargetKind.PAGE, TargetKind.BUSINESS_PROFILE, TargetKind.CUSTOM_LINK}
)

CUSTOM_LINK_WIDGET_KIND = "custom_link"


# --- Interaction Event ---


class InteractionEvent(BaseModel):
    """
    A single recorded click or view.

    Invariants:
    - at most one click event per (actor_id, target_id, target_kind)
    - at most one view event per (actor_id, target_id, UTC calendar day)
    - never mutated after insert

    Display fields are captured at write time so reports never need to
    re-resolve (possibly deleted or renamed) targets.
    """

    id: UUID = Field(default_factory=uuid4)
    actor_id: UUID
    target_id: UUID
    target_kind: TargetKind
    owner_id: UUID

    longitude: float = 0.0
    latitude: float = 0.0
    timestamp: datetime = Field(default_factory=_utcnow)

    # Provenance (carried, not consumed by aggregation)
    session_id: str | None = None
    user_agent: str | None = None
    referrer: str | None = None

    # Denormalised display fields
    target_url: str = ""
    target_title: str = ""
    target_thumbnail: str = ""

    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_view(self) -> bool:
        return self.target_kind == TargetKind.VIEW

    @property
    def coordinates(self) -> tuple[float, float]:
        """(longitude, latitude) pair."""
        return (self.longitude, self.latitude)


# --- Content collaborators ---


class Page(BaseModel):
    """Builder page. May belong to a parent business profile."""

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    business_id: UUID | None = None
    title: str | None = None
    slug: str | None = None
    cover: str | None = None
    logo: str | None = None
    view_count: int = 0


class BusinessProfile(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    business_name: str | None = None
    username: str | None = None
    cover_image: str | None = None
    logo: str | None = None
    view_count: int = 0


class Widget(BaseModel):
    """
    Page widget. Only widgets whose kind is ``custom_link`` are trackable.

    Custom-link data lives under ``settings["specific"]["custom_link"]`` and
    may be a single mapping or a list of mappings, each optionally carrying
    its own ``id``.
    """

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID
    page_id: UUID | None = None
    name: str | None = None
    kind: str = CUSTOM_LINK_WIDGET_KIND
    category: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    view_count: int = 0

    def custom_links(self) -> list[dict[str, Any]]:
        """Custom-link entries from settings, normalised to a list."""
        specific = self.settings.get("specific") or {}
        data = specific.get("custom_link")
        if isinstance(data, list):
            return [d for d in data if isinstance(d, dict)]
        if isinstance(data, dict):
            return [data]
        return []


class ActorLocation(BaseModel):
    actor_id: UUID
    longitude: float
    latitude: float
    city: str | None = None
    address: str | None = None
    updated_at: datetime = Field(default_factory=_utcnow)
