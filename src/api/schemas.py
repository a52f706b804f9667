from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import BaseModel, Field

from src.core.errors import AnalyticsValidationError, has_not_found


# --- Ingestion ---
class TrackRequest(BaseModel):
    """Click or view of a target by the acting user."""

    target_id: UUID
    session_id: str | None = Field(None, description="Client session identifier")
    user_agent: str | None = Field(None, description="Overrides the User-Agent header")
    referrer: str | None = Field(None, description="Overrides the Referer header")


class TrackClickResponse(BaseModel):
    ok: bool = True
    click_id: UUID | None
    is_unique: bool


class TrackViewResponse(BaseModel):
    ok: bool = True
    view_id: UUID | None
    already_viewed: bool


class UpdateLocationRequest(BaseModel):
    longitude: float | None = None
    latitude: float | None = None
    city: str | None = None
    address: str | None = None


class LocationResponse(BaseModel):
    ok: bool = True
    actor_id: UUID
    longitude: float
    latitude: float
    city: str | None = None
    address: str | None = None


# --- Reports ---
class ExportRequest(BaseModel):
    owner_id: UUID | None = None
    target_id: UUID | None = None
    date_range: str | None = None
    format: str = "json"
    metrics: list[str] = Field(
        default_factory=lambda: ["location", "links", "peak_hours", "time_series"]
    )


# --- Errors ---
class ErrorDetail(BaseModel):
    code: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    """Error response."""

    ok: bool = False
    errors: list[ErrorDetail]


class ErrorEnvelope(BaseModel):
    """Body of a 400 or 404: the error response under ``detail``."""

    detail: ErrorResponse


def error_payload(errors: list[AnalyticsValidationError]) -> dict[str, Any]:
    return {
        "ok": False,
        "errors": [
            {"code": e.code, "message": e.message, "field": e.field_name} for e in errors
        ],
    }


def raise_for_errors(errors: list[AnalyticsValidationError]) -> None:
    """404 when any error is a not-found outcome, 400 otherwise."""
    if not errors:
        return
    code = status.HTTP_404_NOT_FOUND if has_not_found(errors) else status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=code, detail=error_payload(errors))
