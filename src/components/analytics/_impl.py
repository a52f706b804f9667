"""
AnalyticsReportService - store-backed reports over the aggregation engine.

Fetches the event set for ``(owner, window)`` from the event store and hands
it to the pure functions in ``_aggregate`` / ``_segment``. Holds no state
between calls.

Key behaviors:
- Owner scope comes from an explicit owner id or from resolving a target id
- Click reports consider click events only; views feed the collective
  metrics, device and referral breakdowns and the segmentation history
- Store failures propagate to the caller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from src.components.targets import ResolvedTarget, TargetResolver
from src.core.entities import CLICK_KINDS, CUSTOM_LINK_WIDGET_KIND, InteractionEvent, TargetKind
from src.core.errors import OWNER_NOT_FOUND, TARGET_NOT_FOUND, AnalyticsValidationError
from src.core.ports.db import EventQuery

from ._aggregate import (
    AggregateConfig,
    RealtimeSnapshot,
    aggregate_content_kinds,
    aggregate_devices,
    aggregate_links,
    aggregate_locations,
    aggregate_peak_hours,
    aggregate_realtime,
    aggregate_referrers,
    aggregate_time_series,
    aggregate_top_links,
    compute_trend,
    daily_counts,
    hour_activity,
)
from ._segment import collective_metrics, segment_owner
from .models import (
    CollectiveReportOutput,
    ContentPerformanceOutput,
    DeviceBucket,
    Granularity,
    HourBucket,
    LinkBucket,
    LinkSummary,
    LocationBucket,
    LocationSummary,
    PeakGroupBy,
    PeakInsights,
    PeriodBucket,
    ReferrerBucket,
    ReportingWindow,
    TopLinkBucket,
    Trend,
    WeekdayBucket,
)
from .ports import EventStorePort, TimePort, WidgetRepoPort

logger = logging.getLogger(__name__)


# --- Configuration ---


@dataclass(frozen=True)
class ReportConfig:
    """Report limits and defaults (see rules.yaml ``analytics``)."""

    default_limit: int = 50
    max_limit: int = 500
    top_links_limit: int = 10
    history_limit: int = 50
    collective_location_limit: int = 10
    dashboard_section_limit: int = 10
    realtime_minutes: int = 30
    daily_series_days: int = 30
    aggregate: AggregateConfig = field(default_factory=AggregateConfig)


DEFAULT_CONFIG = ReportConfig()


class DefaultTimePort:
    """Default time provider."""

    def now_utc(self) -> datetime:
        return datetime.now(UTC)


# --- Validation Functions ---


def validate_limit(
    limit: int | None, default: int, config: ReportConfig = DEFAULT_CONFIG
) -> tuple[int, list[AnalyticsValidationError]]:
    """Apply the default when absent; reject values outside ``1..max_limit``."""
    if limit is None:
        return default, []
    if not 1 <= limit <= config.max_limit:
        return default, [
            AnalyticsValidationError(
                code="invalid_limit",
                message=f"Limit must be between 1 and {config.max_limit}",
                field_name="limit",
            )
        ]
    return limit, []


def validate_scope(
    target_id: UUID | None, owner_id: UUID | None
) -> list[AnalyticsValidationError]:
    if target_id is None and owner_id is None:
        return [
            AnalyticsValidationError(
                code="target_id_required",
                message="Either target_id or owner_id is required",
                field_name="target_id",
            )
        ]
    return []


def target_not_found_error(target_id: UUID) -> AnalyticsValidationError:
    return AnalyticsValidationError(
        code=TARGET_NOT_FOUND,
        message=f"No content found for id {target_id}",
        field_name="target_id",
    )


# --- Report Service ---


class AnalyticsReportService:
    """Read-side analytics over the interaction event store."""

    def __init__(
        self,
        event_store: EventStorePort,
        resolver: TargetResolver,
        widgets: WidgetRepoPort,
        time_port: TimePort | None = None,
        config: ReportConfig | None = None,
    ) -> None:
        self._events = event_store
        self._resolver = resolver
        self._widgets = widgets
        self._time = time_port or DefaultTimePort()
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> ReportConfig:
        return self._config

    def now(self) -> datetime:
        return self._time.now_utc()

    # --- Scope ---

    def resolve_target(self, target_id: UUID) -> ResolvedTarget | None:
        return self._resolver.resolve(target_id)

    def resolve_owner(
        self, target_id: UUID | None, owner_id: UUID | None
    ) -> tuple[UUID | None, list[AnalyticsValidationError]]:
        """
        Owner scope for a report. An explicit owner id wins; otherwise the
        target id is resolved and its owner used.
        """
        if owner_id is not None:
            return owner_id, []
        if target_id is None:
            return None, validate_scope(target_id, owner_id)

        target = self._resolver.resolve(target_id)
        if target is None:
            return None, [target_not_found_error(target_id)]
        return target.owner_id, []

    def owner_is_known(self, owner_id: UUID) -> bool:
        """An owner is known once it has any tracked content or interaction."""
        if self._events.count(EventQuery(owner_id=owner_id, limit=1)) > 0:
            return True
        return bool(self._widgets.list_by_owner(owner_id))

    def owner_not_found(self, owner_id: UUID) -> AnalyticsValidationError:
        return AnalyticsValidationError(
            code=OWNER_NOT_FOUND,
            message=f"No content or activity found for owner {owner_id}",
            field_name="owner_id",
        )

    # --- Event fetch ---

    def window_events(
        self,
        owner_id: UUID,
        window: ReportingWindow,
        kinds: frozenset[TargetKind] | None = CLICK_KINDS,
    ) -> list[InteractionEvent]:
        return self._events.query(
            EventQuery(owner_id=owner_id, kinds=kinds, start=window.start, end=window.end)
        )

    # --- Reports ---

    def location_report(
        self, owner_id: UUID, window: ReportingWindow, limit: int | None = None
    ) -> tuple[list[LocationBucket], LocationSummary]:
        events = self.window_events(owner_id, window)
        return aggregate_locations(
            events,
            limit=limit if limit is not None else self._config.default_limit,
            config=self._config.aggregate,
        )

    def link_report(
        self,
        owner_id: UUID,
        window: ReportingWindow,
        kind: TargetKind | None = None,
        limit: int | None = None,
    ) -> tuple[list[LinkBucket], list[LinkBucket], LinkSummary]:
        """All link buckets, the top ``limit`` of them, and the summary."""
        events = self.window_events(owner_id, window)
        buckets, summary = aggregate_links(events, kind=kind, config=self._config.aggregate)
        top = buckets[: limit if limit is not None else self._config.top_links_limit]
        return buckets, top, summary

    def peak_hour_report(
        self, owner_id: UUID, window: ReportingWindow, group_by: PeakGroupBy = "hour_of_week"
    ) -> tuple[list[HourBucket], list[WeekdayBucket], PeakInsights]:
        events = self.window_events(owner_id, window)
        return aggregate_peak_hours(events, group_by=group_by, config=self._config.aggregate)

    def time_series_report(
        self, owner_id: UUID, window: ReportingWindow, granularity: Granularity = "day"
    ) -> tuple[list[PeriodBucket], Trend]:
        events = self.window_events(owner_id, window)
        buckets = aggregate_time_series(events, granularity)
        return buckets, compute_trend(buckets, self._config.aggregate)

    def top_links_report(
        self, owner_id: UUID, window: ReportingWindow, limit: int | None = None
    ) -> tuple[list[TopLinkBucket], int]:
        events = self.window_events(owner_id, window, kinds=frozenset({TargetKind.CUSTOM_LINK}))
        widgets = self._widgets.list_by_owner(owner_id, kind=CUSTOM_LINK_WIDGET_KIND)
        return aggregate_top_links(
            events,
            widgets,
            limit=limit if limit is not None else self._config.top_links_limit,
            config=self._config.aggregate,
        )

    def device_report(self, owner_id: UUID, window: ReportingWindow) -> list[DeviceBucket]:
        return aggregate_devices(self.window_events(owner_id, window, kinds=None))

    def referral_report(
        self, owner_id: UUID, window: ReportingWindow, limit: int | None = None
    ) -> list[ReferrerBucket]:
        return aggregate_referrers(self.window_events(owner_id, window, kinds=None), limit=limit)

    def collective_report(self, owner_id: UUID, window: ReportingWindow) -> CollectiveReportOutput:
        agg = self._config.aggregate
        events = self.window_events(owner_id, window, kinds=None)
        clicks = [e for e in events if e.target_kind in CLICK_KINDS]
        locations, _ = aggregate_locations(
            clicks, limit=self._config.collective_location_limit, config=agg
        )
        return CollectiveReportOutput(
            owner_id=owner_id,
            metrics=collective_metrics(events, agg),
            segmentation=segment_owner(self._events, owner_id, window, agg),
            content_breakdown=aggregate_content_kinds(events),
            locations=locations,
            daily=daily_counts(clicks, self._config.daily_series_days),
            hourly_activity=hour_activity(clicks),
            window=window,
        )

    def content_performance(
        self, target: ResolvedTarget, window: ReportingWindow
    ) -> ContentPerformanceOutput:
        click_query = EventQuery(
            target_id=target.target_id,
            kinds=frozenset({target.kind}),
            start=window.start,
            end=window.end,
        )
        view_query = EventQuery(
            target_id=target.target_id,
            kinds=frozenset({TargetKind.VIEW}),
            start=window.start,
            end=window.end,
        )
        return ContentPerformanceOutput(
            target_id=target.target_id,
            target_kind=target.kind,
            title=target.title,
            url=target.url,
            thumbnail=target.thumbnail,
            total_clicks=self._events.count(click_query),
            unique_clicks=len(self._events.distinct_actors(click_query)),
            total_views=self._events.count(view_query),
            window=window,
        )

    def realtime(self, target_id: UUID, window: ReportingWindow) -> RealtimeSnapshot:
        events = self._events.query(
            EventQuery(target_id=target_id, start=window.start, end=window.end)
        )
        return aggregate_realtime(events)

    def click_history(
        self,
        actor_id: UUID,
        window: ReportingWindow | None = None,
        kind: TargetKind | None = None,
        limit: int | None = None,
    ) -> list[InteractionEvent]:
        return self._events.query(
            EventQuery(
                actor_id=actor_id,
                kinds=frozenset({kind}) if kind is not None else None,
                start=window.start if window else None,
                end=window.end if window else None,
                limit=limit if limit is not None else self._config.history_limit,
                newest_first=True,
            )
        )
