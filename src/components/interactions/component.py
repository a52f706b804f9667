"""
Interactions component - click/view recording and actor location.

Invariants:
- At most one click per (actor, target, kind), ever
- At most one view per (actor, target, UTC calendar day)
- Duplicates are successful outcomes with ``created=False`` and no side effects
- Counter updates never fail the call
"""

from __future__ import annotations

from ._impl import (
    InteractionIngestionService,
    target_not_found_error,
    validate_coordinates,
    validate_required_id,
)
from .models import (
    RecordClickInput,
    RecordClickOutput,
    RecordViewInput,
    RecordViewOutput,
    UpdateLocationInput,
    UpdateLocationOutput,
)


def _provenance(inp: RecordClickInput | RecordViewInput) -> dict[str, str | None]:
    return {
        "session_id": inp.session_id,
        "user_agent": inp.user_agent,
        "referrer": inp.referrer,
    }


# --- Component Entry Points ---


def run_record_click(
    inp: RecordClickInput, *, service: InteractionIngestionService
) -> RecordClickOutput:
    """
    Register a click on a target.

    Args:
        inp: Acting user, target id and provenance.
        service: Ingestion service.

    Returns:
        RecordClickOutput; ``target_not_found`` when the id resolves to nothing.
    """
    errors = validate_required_id(inp.actor_id, "actor_id")
    errors.extend(validate_required_id(inp.target_id, "target_id"))
    if errors:
        return RecordClickOutput(event=None, errors=errors, success=False)

    assert inp.actor_id is not None and inp.target_id is not None
    result = service.record_click(inp.actor_id, inp.target_id, _provenance(inp))
    if result is None:
        return RecordClickOutput(
            event=None, errors=[target_not_found_error(inp.target_id)], success=False
        )
    return RecordClickOutput(event=result.event, created=result.created)


def run_record_view(
    inp: RecordViewInput, *, service: InteractionIngestionService
) -> RecordViewOutput:
    """Register a view of a target, at most once per UTC day."""
    errors = validate_required_id(inp.actor_id, "actor_id")
    errors.extend(validate_required_id(inp.target_id, "target_id"))
    if errors:
        return RecordViewOutput(event=None, errors=errors, success=False)

    assert inp.actor_id is not None and inp.target_id is not None
    result = service.record_view(inp.actor_id, inp.target_id, _provenance(inp))
    if result is None:
        return RecordViewOutput(
            event=None, errors=[target_not_found_error(inp.target_id)], success=False
        )
    return RecordViewOutput(
        event=result.event,
        created=result.created,
        already_today=result.already_today,
    )


def run_update_location(
    inp: UpdateLocationInput, *, service: InteractionIngestionService
) -> UpdateLocationOutput:
    errors = validate_required_id(inp.actor_id, "actor_id")
    errors.extend(validate_coordinates(inp.longitude, inp.latitude))
    if errors:
        return UpdateLocationOutput(location=None, errors=errors, success=False)

    assert inp.actor_id is not None
    assert inp.longitude is not None and inp.latitude is not None
    location = service.update_location(
        inp.actor_id,
        float(inp.longitude),
        float(inp.latitude),
        city=inp.city,
        address=inp.address,
    )
    return UpdateLocationOutput(location=location)
