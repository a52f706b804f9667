"""
InteractionIngestionService - de-duplicated click/view recording.

Key behaviors:
- Target ids are resolved through the ordered resolver chain before any write
- Clicks are de-duplicated permanently per (actor, target, kind)
- Views are de-duplicated per (actor, target, UTC calendar day)
- A duplicate rejected by the store's unique index is a normal duplicate
  outcome, not a failure
- View counters are updated after the event write as a separate best-effort
  step; failures there are logged and never reach the caller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from src.components.targets import ResolvedTarget, TargetResolver
from src.core.entities import ActorLocation, InteractionEvent, TargetKind
from src.core.errors import TARGET_NOT_FOUND, AnalyticsValidationError
from src.core.ports.db import DuplicateInteractionError, EventQuery

from .ports import (
    ActorLocationRepoPort,
    BusinessProfileRepoPort,
    EventStorePort,
    PageRepoPort,
    TimePort,
    WidgetRepoPort,
)

logger = logging.getLogger(__name__)


class DefaultTimePort:
    """Default time provider."""

    def now_utc(self) -> datetime:
        return datetime.now(UTC)


# --- Validation Functions ---


def validate_required_id(value: UUID | None, field_name: str) -> list[AnalyticsValidationError]:
    if value is None:
        return [
            AnalyticsValidationError(
                code=f"{field_name}_required",
                message=f"Field '{field_name}' is required",
                field_name=field_name,
            )
        ]
    return []


def validate_coordinates(
    longitude: float | None, latitude: float | None
) -> list[AnalyticsValidationError]:
    """Both coordinates are required and range-checked."""
    errors: list[AnalyticsValidationError] = []

    if longitude is None:
        errors.append(
            AnalyticsValidationError(
                code="longitude_required",
                message="Longitude is required",
                field_name="longitude",
            )
        )
    elif not -180.0 <= longitude <= 180.0:
        errors.append(
            AnalyticsValidationError(
                code="invalid_longitude",
                message="Longitude must be between -180 and 180",
                field_name="longitude",
            )
        )

    if latitude is None:
        errors.append(
            AnalyticsValidationError(
                code="latitude_required",
                message="Latitude is required",
                field_name="latitude",
            )
        )
    elif not -90.0 <= latitude <= 90.0:
        errors.append(
            AnalyticsValidationError(
                code="invalid_latitude",
                message="Latitude must be between -90 and 90",
                field_name="latitude",
            )
        )

    return errors


def target_not_found_error(target_id: UUID) -> AnalyticsValidationError:
    return AnalyticsValidationError(
        code=TARGET_NOT_FOUND,
        message=f"No content found for id {target_id}",
        field_name="target_id",
    )


def utc_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """``[today 00:00, tomorrow 00:00)`` in UTC."""
    start = now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


# --- Result records ---


@dataclass(frozen=True)
class ClickResult:
    event: InteractionEvent
    created: bool


@dataclass(frozen=True)
class ViewResult:
    event: InteractionEvent | None
    created: bool
    already_today: bool


# --- Ingestion Service ---


class InteractionIngestionService:
    """
    Records clicks and views against resolved targets.

    ``record_click`` / ``record_view`` return None when the target does not
    resolve; store failures on the event write propagate.
    """

    def __init__(
        self,
        event_store: EventStorePort,
        resolver: TargetResolver,
        pages: PageRepoPort,
        profiles: BusinessProfileRepoPort,
        widgets: WidgetRepoPort,
        locations: ActorLocationRepoPort | None = None,
        time_port: TimePort | None = None,
    ) -> None:
        self._events = event_store
        self._resolver = resolver
        self._pages = pages
        self._profiles = profiles
        self._widgets = widgets
        self._locations = locations
        self._time = time_port or DefaultTimePort()

    def record_click(
        self,
        actor_id: UUID,
        target_id: UUID,
        provenance: dict[str, Any] | None = None,
    ) -> ClickResult | None:
        target = self._resolver.resolve(target_id)
        if target is None:
            return None

        existing = self._events.find_click(actor_id, target.target_id, target.kind)
        if existing is not None:
            logger.debug("Duplicate click by %s on %s", actor_id, target_id)
            return ClickResult(existing, created=False)

        event = self._build_event(actor_id, target, target.kind, provenance)
        try:
            stored = self._events.append(event)
        except DuplicateInteractionError:
            # Lost a race with a concurrent identical click
            logger.debug("Concurrent duplicate click by %s on %s", actor_id, target_id)
            winner = self._events.find_click(actor_id, target.target_id, target.kind)
            return ClickResult(winner or event, created=False)

        logger.info(
            "Recorded %s click %s by %s on %s",
            target.kind.value,
            stored.id,
            actor_id,
            target_id,
        )
        return ClickResult(stored, created=True)

    def record_view(
        self,
        actor_id: UUID,
        target_id: UUID,
        provenance: dict[str, Any] | None = None,
    ) -> ViewResult | None:
        target = self._resolver.resolve(target_id)
        if target is None:
            return None

        day_start, day_end = utc_day_bounds(self._time.now_utc())
        existing = self._events.find_view(actor_id, target.target_id, day_start, day_end)
        if existing is not None:
            logger.debug("View by %s on %s already recorded today", actor_id, target_id)
            return ViewResult(existing, created=False, already_today=True)

        event = self._build_event(actor_id, target, TargetKind.VIEW, provenance)
        try:
            stored = self._events.append(event)
        except DuplicateInteractionError:
            logger.debug("Concurrent duplicate view by %s on %s", actor_id, target_id)
            return ViewResult(None, created=False, already_today=True)

        logger.info("Recorded view %s by %s on %s", stored.id, actor_id, target_id)
        self.update_view_counters(target)
        return ViewResult(stored, created=True, already_today=False)

    def update_view_counters(self, target: ResolvedTarget) -> None:
        """
        Bump view counters on the viewed content and, for a page inside a
        business, on the parent profile too. Never raises.
        """
        try:
            if target.kind == TargetKind.PAGE:
                self._pages.increment_view_count(target.target_id)
                if target.business_id is not None:
                    self._profiles.increment_view_count(target.business_id)
            elif target.kind == TargetKind.BUSINESS_PROFILE:
                self._profiles.increment_view_count(target.target_id)
            elif target.kind == TargetKind.CUSTOM_LINK:
                self._widgets.increment_view_count(target.target_id)
        except Exception:
            logger.exception("View counter update failed for %s", target.target_id)

    def update_location(
        self,
        actor_id: UUID,
        longitude: float,
        latitude: float,
        city: str | None = None,
        address: str | None = None,
    ) -> ActorLocation:
        if self._locations is None:
            raise RuntimeError("ActorLocationRepoPort is required to update locations")
        location = ActorLocation(
            actor_id=actor_id,
            longitude=longitude,
            latitude=latitude,
            city=city,
            address=address,
            updated_at=self._time.now_utc(),
        )
        saved = self._locations.save(location)
        logger.info("Updated location for %s", actor_id)
        return saved

    def _coordinates_for(self, actor_id: UUID) -> tuple[float, float]:
        if self._locations is None:
            return 0.0, 0.0
        location = self._locations.get(actor_id)
        if location is None:
            return 0.0, 0.0
        return location.longitude, location.latitude

    def _build_event(
        self,
        actor_id: UUID,
        target: ResolvedTarget,
        kind: TargetKind,
        provenance: dict[str, Any] | None,
    ) -> InteractionEvent:
        provenance = provenance or {}
        longitude, latitude = self._coordinates_for(actor_id)
        now = self._time.now_utc()
        return InteractionEvent(
            actor_id=actor_id,
            target_id=target.target_id,
            target_kind=kind,
            owner_id=target.owner_id,
            longitude=longitude,
            latitude=latitude,
            timestamp=now,
            session_id=provenance.get("session_id"),
            user_agent=provenance.get("user_agent"),
            referrer=provenance.get("referrer"),
            target_url=target.url,
            target_title=target.title,
            target_thumbnail=target.thumbnail,
            created_at=now,
        )


# --- In-memory stores (tests / local runs) ---


def event_matches(event: InteractionEvent, query: EventQuery) -> bool:
    """Whether ``event`` satisfies every filter in ``query``."""
    if query.owner_id is not None and event.owner_id != query.owner_id:
        return False
    if query.target_id is not None and event.target_id != query.target_id:
        return False
    if query.actor_id is not None and event.actor_id != query.actor_id:
        return False
    if query.kinds is not None and event.target_kind not in query.kinds:
        return False
    if query.actor_ids is not None and event.actor_id not in query.actor_ids:
        return False
    if query.start is not None and event.timestamp < query.start:
        return False
    if query.end is not None and event.timestamp > query.end:
        return False
    if query.before is not None and event.timestamp >= query.before:
        return False
    return True


class InMemoryInteractionStore:
    """
    In-memory event store for testing/dev.

    Enforces the same uniqueness rules as the SQLite indexes.
    """

    def __init__(self) -> None:
        self._events: list[InteractionEvent] = []

    def append(self, event: InteractionEvent) -> InteractionEvent:
        for existing in self._events:
            if existing.actor_id != event.actor_id or existing.target_id != event.target_id:
                continue
            if event.is_view:
                same_day = (
                    existing.is_view
                    and existing.timestamp.astimezone(UTC).date()
                    == event.timestamp.astimezone(UTC).date()
                )
                if same_day:
                    raise DuplicateInteractionError(
                        event.actor_id, event.target_id, event.target_kind
                    )
            elif existing.target_kind == event.target_kind:
                raise DuplicateInteractionError(event.actor_id, event.target_id, event.target_kind)
        self._events.append(event)
        return event

    def find_click(
        self, actor_id: UUID, target_id: UUID, kind: TargetKind
    ) -> InteractionEvent | None:
        for e in self._events:
            if e.actor_id == actor_id and e.target_id == target_id and e.target_kind == kind:
                return e
        return None

    def find_view(
        self, actor_id: UUID, target_id: UUID, start: datetime, end: datetime
    ) -> InteractionEvent | None:
        for e in self._events:
            if (
                e.is_view
                and e.actor_id == actor_id
                and e.target_id == target_id
                and start <= e.timestamp < end
            ):
                return e
        return None

    def query(self, query: EventQuery) -> list[InteractionEvent]:
        matched = [e for e in self._events if event_matches(e, query)]
        matched.sort(key=lambda e: e.timestamp, reverse=query.newest_first)
        if query.limit is not None:
            matched = matched[: query.limit]
        return matched

    def count(self, query: EventQuery) -> int:
        return sum(1 for e in self._events if event_matches(e, query))

    def distinct_actors(self, query: EventQuery) -> set[UUID]:
        return {e.actor_id for e in self._events if event_matches(e, query)}

    def get_all(self) -> list[InteractionEvent]:
        """Get all stored events (for testing)."""
        return list(self._events)


class InMemoryActorLocationRepo:
    def __init__(self) -> None:
        self._locations: dict[UUID, ActorLocation] = {}

    def get(self, actor_id: UUID) -> ActorLocation | None:
        return self._locations.get(actor_id)

    def save(self, location: ActorLocation) -> ActorLocation:
        self._locations[location.actor_id] = location
        return location
