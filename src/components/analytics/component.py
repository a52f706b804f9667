"""
Analytics component - owner-scoped reports over interaction events.

Every entry point validates its input (window token, ids, limits) before
touching any store, then returns a typed output record. Validation and
not-found outcomes are reported in ``errors`` with ``success=False``;
store failures propagate.

Invariants:
- Percentages are taken over the full bucket set before truncation
- Peak-hour output always has 24 hour entries
- Trend is 0 with fewer than 14 periods
- Segmentation partitions the window's actors into new and returning
- Dashboard sections fail independently; the base time series does not
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, get_args
from uuid import UUID

from src.core.errors import AnalyticsValidationError

from ._dashboard import compose_dashboard
from ._impl import (
    AnalyticsReportService,
    target_not_found_error,
    validate_limit,
    validate_scope,
)
from ._window import (
    MAX_REALTIME_MINUTES,
    MIN_REALTIME_MINUTES,
    rolling_window,
    validate_window,
)
from .models import (
    DASHBOARD_SECTIONS,
    EXPORT_METRICS,
    ClickHistoryInput,
    ClickHistoryOutput,
    CollectiveReportInput,
    CollectiveReportOutput,
    ContentPerformanceInput,
    ContentPerformanceOutput,
    DashboardInput,
    DashboardOutput,
    ExportFormat,
    ExportInput,
    ExportOutput,
    Granularity,
    LinkReportInput,
    LinkReportOutput,
    LocationReportInput,
    LocationReportOutput,
    PeakGroupBy,
    PeakHourReportInput,
    PeakHourReportOutput,
    RealtimeReportInput,
    RealtimeReportOutput,
    ReportingWindow,
    ReportInput,
    TimeSeriesReportInput,
    TimeSeriesReportOutput,
    TopLinksReportInput,
    TopLinksReportOutput,
)


def _prepare(
    inp: ReportInput, service: AnalyticsReportService
) -> tuple[UUID | None, ReportingWindow | None, list[AnalyticsValidationError]]:
    """Validate scope and window, then resolve the owner."""
    errors = validate_scope(inp.target_id, inp.owner_id)
    if errors:
        return None, None, errors

    window, errors = validate_window(inp.date_range, service.now())
    if errors:
        return None, None, errors

    owner_id, errors = service.resolve_owner(inp.target_id, inp.owner_id)
    return owner_id, window, errors


def _choice_error(
    field_name: str, value: str, allowed: tuple[str, ...]
) -> AnalyticsValidationError:
    return AnalyticsValidationError(
        code=f"invalid_{field_name}",
        message=f"{field_name} must be one of: {', '.join(allowed)} (got '{value}')",
        field_name=field_name,
    )


# --- Component Entry Points ---


def run_location_report(
    inp: LocationReportInput, *, service: AnalyticsReportService
) -> LocationReportOutput:
    """
    Geographic distribution of the owner's clicks.

    Args:
        inp: Scope, window token and optional limit.
        service: Report service.

    Returns:
        LocationReportOutput with ranked buckets and summary.
    """
    limit, errors = validate_limit(inp.limit, service.config.default_limit, service.config)
    if errors:
        return LocationReportOutput(
            buckets=[], summary=None, window=None, errors=errors, success=False
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return LocationReportOutput(
            buckets=[], summary=None, window=window, errors=errors, success=False
        )

    buckets, summary = service.location_report(owner_id, window, limit)
    return LocationReportOutput(buckets=buckets, summary=summary, window=window)


def run_link_report(inp: LinkReportInput, *, service: AnalyticsReportService) -> LinkReportOutput:
    """Per-link click buckets with each link's share of all clicks."""
    limit, errors = validate_limit(inp.limit, service.config.top_links_limit, service.config)
    if errors:
        return LinkReportOutput(
            buckets=[], top_links=[], summary=None, window=None, errors=errors, success=False
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return LinkReportOutput(
            buckets=[], top_links=[], summary=None, window=window, errors=errors, success=False
        )

    buckets, top, summary = service.link_report(owner_id, window, inp.kind, limit)
    return LinkReportOutput(buckets=buckets, top_links=top, summary=summary, window=window)


def run_peak_hour_report(
    inp: PeakHourReportInput, *, service: AnalyticsReportService
) -> PeakHourReportOutput:
    """24-hour and weekday activity with peak/quietest insights."""
    allowed: tuple[str, ...] = get_args(PeakGroupBy)
    if inp.group_by not in allowed:
        return PeakHourReportOutput(
            hours=[],
            weekdays=[],
            insights=None,
            window=None,
            errors=[_choice_error("group_by", inp.group_by, allowed)],
            success=False,
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return PeakHourReportOutput(
            hours=[], weekdays=[], insights=None, window=window, errors=errors, success=False
        )

    hours, weekdays, insights = service.peak_hour_report(owner_id, window, inp.group_by)
    return PeakHourReportOutput(hours=hours, weekdays=weekdays, insights=insights, window=window)


def run_time_series_report(
    inp: TimeSeriesReportInput, *, service: AnalyticsReportService
) -> TimeSeriesReportOutput:
    """Calendar-bucketed clicks with a 7-vs-7 period trend."""
    allowed: tuple[str, ...] = get_args(Granularity)
    if inp.granularity not in allowed:
        return TimeSeriesReportOutput(
            buckets=[],
            trend=None,
            granularity=inp.granularity,
            window=None,
            errors=[_choice_error("granularity", inp.granularity, allowed)],
            success=False,
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return TimeSeriesReportOutput(
            buckets=[],
            trend=None,
            granularity=inp.granularity,
            window=window,
            errors=errors,
            success=False,
        )

    buckets, trend = service.time_series_report(owner_id, window, inp.granularity)
    return TimeSeriesReportOutput(
        buckets=buckets, trend=trend, granularity=inp.granularity, window=window
    )


def run_top_links_report(
    inp: TopLinksReportInput, *, service: AnalyticsReportService
) -> TopLinksReportOutput:
    """Custom links ranked by clicks, restricted to live widgets."""
    limit, errors = validate_limit(inp.limit, service.config.top_links_limit, service.config)
    if errors:
        return TopLinksReportOutput(
            links=[], total_clicks=0, window=None, errors=errors, success=False
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return TopLinksReportOutput(
            links=[], total_clicks=0, window=window, errors=errors, success=False
        )

    links, total = service.top_links_report(owner_id, window, limit)
    return TopLinksReportOutput(links=links, total_clicks=total, window=window)


async def run_dashboard(inp: DashboardInput, *, service: AnalyticsReportService) -> DashboardOutput:
    """
    Composed dashboard. Sections run concurrently; a failed section is
    reported in ``section_errors`` while the rest are returned.
    """
    unknown = sorted(set(inp.include) - set(DASHBOARD_SECTIONS))
    errors = [_choice_error("include", name, DASHBOARD_SECTIONS) for name in unknown]
    if inp.granularity not in get_args(Granularity):
        errors.append(_choice_error("granularity", inp.granularity, get_args(Granularity)))
    if errors:
        return DashboardOutput(
            time_series=None,
            sections={},
            section_errors={},
            window=None,
            errors=errors,
            success=False,
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return DashboardOutput(
            time_series=None,
            sections={},
            section_errors={},
            window=window,
            errors=errors,
            success=False,
        )

    return await compose_dashboard(service, owner_id, window, inp.include, inp.granularity)


def run_collective_report(
    inp: CollectiveReportInput, *, service: AnalyticsReportService
) -> CollectiveReportOutput:
    """Owner-wide metrics, customer segmentation and breakdowns."""

    def failed(
        errors: list[AnalyticsValidationError], window: ReportingWindow | None = None
    ) -> CollectiveReportOutput:
        return CollectiveReportOutput(
            owner_id=inp.owner_id,
            metrics=None,
            segmentation=None,
            content_breakdown=[],
            locations=[],
            daily=[],
            hourly_activity=[],
            window=window,
            errors=errors,
            success=False,
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return failed(errors, window)

    if inp.target_id is None and not service.owner_is_known(owner_id):
        return failed([service.owner_not_found(owner_id)], window)

    return service.collective_report(owner_id, window)


def run_content_performance(
    inp: ContentPerformanceInput, *, service: AnalyticsReportService
) -> ContentPerformanceOutput:
    def failed(
        errors: list[AnalyticsValidationError], window: ReportingWindow | None = None
    ) -> ContentPerformanceOutput:
        return ContentPerformanceOutput(
            target_id=inp.target_id,
            target_kind=None,
            title="",
            url="",
            thumbnail="",
            total_clicks=0,
            unique_clicks=0,
            total_views=0,
            window=window,
            errors=errors,
            success=False,
        )

    errors = validate_scope(inp.target_id, None)
    if errors or inp.target_id is None:
        return failed(errors)

    window, errors = validate_window(inp.date_range, service.now())
    if errors or window is None:
        return failed(errors)

    target = service.resolve_target(inp.target_id)
    if target is None:
        return failed([target_not_found_error(inp.target_id)], window)

    return service.content_performance(target, window)


def run_realtime_report(
    inp: RealtimeReportInput, *, service: AnalyticsReportService
) -> RealtimeReportOutput:
    """Activity on one target over the last N minutes (polling, not streaming)."""

    def failed(errors: list[AnalyticsValidationError]) -> RealtimeReportOutput:
        return RealtimeReportOutput(
            active_actors=0,
            active_sessions=0,
            per_minute=[],
            by_kind={},
            top_locations=[],
            window=None,
            errors=errors,
            success=False,
        )

    errors = validate_scope(inp.target_id, None)
    minutes = inp.minutes if inp.minutes is not None else service.config.realtime_minutes
    if not MIN_REALTIME_MINUTES <= minutes <= MAX_REALTIME_MINUTES:
        errors.append(
            AnalyticsValidationError(
                code="invalid_minutes",
                message=(
                    f"Minutes must be between {MIN_REALTIME_MINUTES} and {MAX_REALTIME_MINUTES}"
                ),
                field_name="minutes",
            )
        )
    if errors or inp.target_id is None:
        return failed(errors)

    target = service.resolve_target(inp.target_id)
    if target is None:
        return failed([target_not_found_error(inp.target_id)])

    window = rolling_window(service.now(), minutes)
    snapshot = service.realtime(target.target_id, window)
    return RealtimeReportOutput(
        active_actors=snapshot.active_actors,
        active_sessions=snapshot.active_sessions,
        per_minute=snapshot.per_minute,
        by_kind=snapshot.by_kind,
        top_locations=snapshot.top_locations,
        window=window,
    )


def run_click_history(
    inp: ClickHistoryInput, *, service: AnalyticsReportService
) -> ClickHistoryOutput:
    """The actor's own interactions, newest first. No window means all time."""
    errors: list[AnalyticsValidationError] = []
    if inp.actor_id is None:
        errors.append(
            AnalyticsValidationError(
                code="actor_id_required",
                message="Field 'actor_id' is required",
                field_name="actor_id",
            )
        )
    limit, limit_errors = validate_limit(inp.limit, service.config.history_limit, service.config)
    errors.extend(limit_errors)

    window: ReportingWindow | None = None
    if inp.date_range:
        window, window_errors = validate_window(inp.date_range, service.now())
        errors.extend(window_errors)

    if errors or inp.actor_id is None:
        return ClickHistoryOutput(events=[], window=window, errors=errors, success=False)

    events = service.click_history(inp.actor_id, window, inp.kind, limit)
    return ClickHistoryOutput(events=events, window=window)


def run_export(inp: ExportInput, *, service: AnalyticsReportService) -> ExportOutput:
    """
    Collect report sections for export.

    Only ``json`` is produced; ``csv`` and ``xlsx`` return the same data with
    a message that file generation is not available.
    """
    formats: tuple[str, ...] = get_args(ExportFormat)
    errors: list[AnalyticsValidationError] = []
    if inp.format not in formats:
        errors.append(_choice_error("format", inp.format, formats))
    unknown = sorted(set(inp.metrics) - set(EXPORT_METRICS))
    errors.extend(_choice_error("metrics", name, EXPORT_METRICS) for name in unknown)
    if not inp.metrics:
        errors.append(
            AnalyticsValidationError(
                code="metrics_required",
                message="At least one metric is required",
                field_name="metrics",
            )
        )
    if errors:
        return ExportOutput(
            format=inp.format, data={}, export_info={}, errors=errors, success=False
        )

    owner_id, window, errors = _prepare(inp, service)
    if errors or owner_id is None or window is None:
        return ExportOutput(
            format=inp.format, data={}, export_info={}, errors=errors, success=False
        )

    data: dict[str, Any] = {}
    for metric in inp.metrics:
        if metric == "location":
            buckets, summary = service.location_report(owner_id, window)
            data[metric] = {"buckets": buckets, "summary": summary}
        elif metric == "links":
            buckets, top, link_summary = service.link_report(owner_id, window)
            data[metric] = {"buckets": buckets, "top_links": top, "summary": link_summary}
        elif metric == "peak_hours":
            hours, weekdays, insights = service.peak_hour_report(owner_id, window)
            data[metric] = {"hours": hours, "weekdays": weekdays, "insights": insights}
        elif metric == "time_series":
            series, trend = service.time_series_report(owner_id, window)
            data[metric] = {"buckets": series, "trend": trend}

    export_info = {
        "owner_id": owner_id,
        "format": inp.format,
        "metrics": list(inp.metrics),
        "window": asdict(window),
        "generated_at": service.now(),
    }
    message = None
    if inp.format != "json":
        message = f"{inp.format.upper()} export is not implemented; returning JSON data"
    return ExportOutput(format=inp.format, data=data, export_info=export_info, message=message)
