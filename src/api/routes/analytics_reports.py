"""
Analytics Reports API.

Owner-scoped reports over recorded interactions. Target-keyed routes resolve
the target to its owner first; ``/me/*`` routes use the acting user as owner.

Every route requires the ``X-Actor-Id`` header. Validation errors are 400,
unresolved targets/owners 404, store failures 500.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from src.api.deps import get_actor_id, get_report_service
from src.api.schemas import ErrorEnvelope, ExportRequest, raise_for_errors
from src.components.analytics import (
    DASHBOARD_SECTIONS,
    AnalyticsReportService,
    ClickHistoryInput,
    CollectiveReportInput,
    ContentPerformanceInput,
    DashboardInput,
    ExportInput,
    LinkReportInput,
    LocationReportInput,
    PeakHourReportInput,
    RealtimeReportInput,
    Segmentation,
    TimeSeriesReportInput,
    TimeSeriesReportOutput,
    TopLinksReportInput,
    run_click_history,
    run_collective_report,
    run_content_performance,
    run_dashboard,
    run_export,
    run_link_report,
    run_location_report,
    run_peak_hour_report,
    run_realtime_report,
    run_time_series_report,
    run_top_links_report,
)
from src.core.entities import TargetKind

router = APIRouter(
    dependencies=[Depends(get_actor_id)],
    responses={
        400: {"model": ErrorEnvelope},
        401: {"description": "Missing X-Actor-Id header"},
        404: {"model": ErrorEnvelope},
    },
)

DATE_RANGE_HELP = "weekly, monthly, yearly or YYYY-MM-DD; omitted means today"


# --- Helper Functions ---


def _ok(**fields: Any) -> dict[str, Any]:
    result: dict[str, Any] = jsonable_encoder({"ok": True, **fields})
    return result


def _time_series(output: TimeSeriesReportOutput | None) -> dict[str, Any] | None:
    if output is None:
        return None
    trend = None
    if output.trend is not None:
        trend = {**asdict(output.trend), "direction": output.trend.direction}
    return {"granularity": output.granularity, "buckets": output.buckets, "trend": trend}


def _segmentation(seg: Segmentation | None) -> dict[str, Any] | None:
    if seg is None:
        return None
    return {
        "total_customers": seg.total_customers,
        "new_customers": len(seg.new),
        "returning_customers": len(seg.returning),
        "new_clicks": seg.new_clicks,
        "returning_clicks": seg.returning_clicks,
        "new_rate": seg.new_rate,
        "returning_rate": seg.returning_rate,
    }


def _parse_include(include: str | None) -> frozenset[str]:
    if include is None:
        return frozenset(DASHBOARD_SECTIONS)
    return frozenset(part.strip() for part in include.split(",") if part.strip())


# --- Target-keyed reports ---


@router.get("/location", response_model=dict[str, Any])
def location_report(
    target_id: UUID | None = Query(None, description="Any target owned by the report owner"),
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    limit: int | None = Query(None, description="Maximum buckets returned"),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    """Clicks grouped by exact coordinates, ranked by count."""
    result = run_location_report(
        LocationReportInput(target_id=target_id, date_range=date_range, limit=limit),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(buckets=result.buckets, summary=result.summary, window=result.window)


@router.get("/links", response_model=dict[str, Any])
def link_report(
    target_id: UUID | None = Query(None),
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    kind: TargetKind | None = Query(None, description="Restrict to one target kind"),
    limit: int | None = Query(None, description="Size of the top_links list"),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    """Per-target click buckets with each target's share of clicks."""
    result = run_link_report(
        LinkReportInput(target_id=target_id, date_range=date_range, kind=kind, limit=limit),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(
        buckets=result.buckets,
        top_links=result.top_links,
        summary=result.summary,
        window=result.window,
    )


@router.get("/peak-hours", response_model=dict[str, Any])
def peak_hours_report(
    target_id: UUID | None = Query(None),
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    group_by: str = Query("hour_of_week", description="hour, day_of_week or hour_of_week"),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    result = run_peak_hour_report(
        PeakHourReportInput(
            target_id=target_id,
            date_range=date_range,
            group_by=group_by,  # type: ignore[arg-type]
        ),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(
        hours=result.hours,
        weekdays=result.weekdays,
        insights=result.insights,
        window=result.window,
    )


@router.get("/time-filtered", response_model=dict[str, Any])
def time_series_report(
    target_id: UUID | None = Query(None),
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    granularity: str = Query("day", description="hour, day, week or month"),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    result = run_time_series_report(
        TimeSeriesReportInput(
            target_id=target_id,
            date_range=date_range,
            granularity=granularity,  # type: ignore[arg-type]
        ),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(time_series=_time_series(result), window=result.window)


@router.get("/dashboard", response_model=dict[str, Any])
async def dashboard_report(
    target_id: UUID | None = Query(None),
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    include: str | None = Query(
        None, description="Comma-separated sections: " + ", ".join(DASHBOARD_SECTIONS)
    ),
    granularity: str = Query("day", description="Granularity of the base time series"),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    """
    Base time series plus the requested sections, computed concurrently.

    A failed section is listed under ``section_errors`` and left out; the
    remaining sections are still returned.
    """
    result = await run_dashboard(
        DashboardInput(
            target_id=target_id,
            date_range=date_range,
            include=_parse_include(include),
            granularity=granularity,  # type: ignore[arg-type]
        ),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(
        time_series=_time_series(result.time_series),
        sections=result.sections,
        section_errors=result.section_errors,
        window=result.window,
    )


@router.get("/top-performing-links", response_model=dict[str, Any])
def top_links_report(
    target_id: UUID | None = Query(None),
    owner_id: UUID | None = Query(None, description="Defaults to the acting user"),
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    limit: int | None = Query(None),
    actor_id: UUID = Depends(get_actor_id),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    """
    Custom links ranked by clicks, joined to their live widgets.

    Scoped to ``owner_id``, else the owner of ``target_id``, else the acting
    user.
    """
    if owner_id is None and target_id is None:
        owner_id = actor_id
    result = run_top_links_report(
        TopLinksReportInput(
            target_id=target_id, owner_id=owner_id, date_range=date_range, limit=limit
        ),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(links=result.links, total_clicks=result.total_clicks, window=result.window)


@router.get("/real-time", response_model=dict[str, Any])
def realtime_report(
    target_id: UUID | None = Query(None),
    minutes: int | None = Query(None, description="Rolling window length, 1-1440"),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    result = run_realtime_report(
        RealtimeReportInput(target_id=target_id, minutes=minutes), service=service
    )
    raise_for_errors(result.errors)
    return _ok(
        active_actors=result.active_actors,
        active_sessions=result.active_sessions,
        per_minute=result.per_minute,
        by_kind=result.by_kind,
        top_locations=result.top_locations,
        window=result.window,
    )


@router.get("/content-performance/{target_id}", response_model=dict[str, Any])
def content_performance(
    target_id: UUID,
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    result = run_content_performance(
        ContentPerformanceInput(target_id=target_id, date_range=date_range), service=service
    )
    raise_for_errors(result.errors)
    return _ok(
        target_id=result.target_id,
        target_kind=result.target_kind,
        title=result.title,
        url=result.url,
        thumbnail=result.thumbnail,
        total_clicks=result.total_clicks,
        unique_clicks=result.unique_clicks,
        total_views=result.total_views,
        window=result.window,
    )


@router.post("/export", response_model=dict[str, Any])
def export_report(
    body: ExportRequest,
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    """Report sections for download. Only JSON is produced."""
    result = run_export(
        ExportInput(
            target_id=body.target_id,
            owner_id=body.owner_id,
            date_range=body.date_range,
            format=body.format,
            metrics=tuple(body.metrics),
        ),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(
        format=result.format,
        data=result.data,
        export_info=result.export_info,
        message=result.message,
    )


# --- Owner-keyed reports ---


@router.get("/user/{owner_id}/collective", response_model=dict[str, Any])
def collective_report(
    owner_id: UUID,
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    """Owner-wide metrics with the new/returning customer breakdown."""
    result = run_collective_report(
        CollectiveReportInput(owner_id=owner_id, date_range=date_range), service=service
    )
    raise_for_errors(result.errors)
    return _ok(
        owner_id=result.owner_id,
        metrics=result.metrics,
        customer_breakdown=_segmentation(result.segmentation),
        content_breakdown=result.content_breakdown,
        locations=result.locations,
        daily=result.daily,
        hourly_activity=result.hourly_activity,
        window=result.window,
    )


@router.get("/history", response_model=dict[str, Any])
def click_history(
    date_range: str | None = Query(None, description="Omitted means all time"),
    kind: TargetKind | None = Query(None),
    limit: int | None = Query(None),
    actor_id: UUID = Depends(get_actor_id),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    """The acting user's own interactions, newest first."""
    result = run_click_history(
        ClickHistoryInput(actor_id=actor_id, date_range=date_range, kind=kind, limit=limit),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(events=result.events, window=result.window)


@router.get("/me/location", response_model=dict[str, Any])
def my_location_report(
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    limit: int | None = Query(None),
    actor_id: UUID = Depends(get_actor_id),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    result = run_location_report(
        LocationReportInput(owner_id=actor_id, date_range=date_range, limit=limit),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(buckets=result.buckets, summary=result.summary, window=result.window)


@router.get("/me/links", response_model=dict[str, Any])
def my_link_report(
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    kind: TargetKind | None = Query(None),
    limit: int | None = Query(None),
    actor_id: UUID = Depends(get_actor_id),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    result = run_link_report(
        LinkReportInput(owner_id=actor_id, date_range=date_range, kind=kind, limit=limit),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(
        buckets=result.buckets,
        top_links=result.top_links,
        summary=result.summary,
        window=result.window,
    )


@router.get("/me/peak-hours", response_model=dict[str, Any])
def my_peak_hours_report(
    date_range: str | None = Query(None, description=DATE_RANGE_HELP),
    group_by: str = Query("hour_of_week"),
    actor_id: UUID = Depends(get_actor_id),
    service: AnalyticsReportService = Depends(get_report_service),
) -> dict[str, Any]:
    result = run_peak_hour_report(
        PeakHourReportInput(
            owner_id=actor_id,
            date_range=date_range,
            group_by=group_by,  # type: ignore[arg-type]
        ),
        service=service,
    )
    raise_for_errors(result.errors)
    return _ok(
        hours=result.hours,
        weekdays=result.weekdays,
        insights=result.insights,
        window=result.window,
    )
