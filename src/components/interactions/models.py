"""
Interactions component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from src.core.entities import ActorLocation, InteractionEvent
from src.core.errors import AnalyticsValidationError

# --- Input Models ---


@dataclass(frozen=True)
class RecordClickInput:
    """Input for registering a click on a target."""

    actor_id: UUID | None
    target_id: UUID | None
    session_id: str | None = None
    user_agent: str | None = None
    referrer: str | None = None


@dataclass(frozen=True)
class RecordViewInput:
    """Input for registering a (once-per-day) view of a target."""

    actor_id: UUID | None
    target_id: UUID | None
    session_id: str | None = None
    user_agent: str | None = None
    referrer: str | None = None


@dataclass(frozen=True)
class UpdateLocationInput:
    actor_id: UUID | None
    longitude: float | None
    latitude: float | None
    city: str | None = None
    address: str | None = None


# --- Output Models ---


@dataclass(frozen=True)
class RecordClickOutput:
    """
    ``created`` is False for a repeat click; ``event`` is then the
    previously stored click.
    """

    event: InteractionEvent | None
    created: bool = False
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RecordViewOutput:
    event: InteractionEvent | None
    created: bool = False
    already_today: bool = False
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class UpdateLocationOutput:
    location: ActorLocation | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True
