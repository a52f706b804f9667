"""
Interactions component - de-duplicated click/view ingestion.
"""

from ._impl import (
    ClickResult,
    DefaultTimePort,
    InMemoryActorLocationRepo,
    InMemoryInteractionStore,
    InteractionIngestionService,
    ViewResult,
    event_matches,
    utc_day_bounds,
    validate_coordinates,
    validate_required_id,
)
from .component import run_record_click, run_record_view, run_update_location
from .models import (
    RecordClickInput,
    RecordClickOutput,
    RecordViewInput,
    RecordViewOutput,
    UpdateLocationInput,
    UpdateLocationOutput,
)

__all__ = [
    # Entry points
    "run_record_click",
    "run_record_view",
    "run_update_location",
    # Input models
    "RecordClickInput",
    "RecordViewInput",
    "UpdateLocationInput",
    # Output models
    "RecordClickOutput",
    "RecordViewOutput",
    "UpdateLocationOutput",
    # Service
    "ClickResult",
    "DefaultTimePort",
    "InteractionIngestionService",
    "ViewResult",
    "event_matches",
    "utc_day_bounds",
    "validate_coordinates",
    "validate_required_id",
    # In-memory stores
    "InMemoryActorLocationRepo",
    "InMemoryInteractionStore",
]
