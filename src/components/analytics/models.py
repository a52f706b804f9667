"""
Analytics component input/output models.

Every report is an explicit record type; percentages are always computed
against the full bucket set before any limit is applied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from src.core.entities import InteractionEvent, TargetKind
from src.core.errors import AnalyticsValidationError

# --- Enums ---


Granularity = Literal["hour", "day", "week", "month"]
PeakGroupBy = Literal["hour", "day_of_week", "hour_of_week"]
DeviceClass = Literal["bot", "tablet", "mobile", "desktop", "unknown"]
ExportFormat = Literal["json", "csv", "xlsx"]

DASHBOARD_SECTIONS: tuple[str, ...] = ("location", "links", "peak_hours", "devices", "referrals")
EXPORT_METRICS: tuple[str, ...] = ("location", "links", "peak_hours", "time_series")


# --- Window ---


@dataclass(frozen=True)
class ReportingWindow:
    """Inclusive ``[start, end]`` UTC interval."""

    start: datetime
    end: datetime
    token: str = "today"


# --- Buckets ---


@dataclass(frozen=True)
class LocationBucket:
    longitude: float
    latitude: float
    label: str
    count: int
    unique_actors: int
    percentage: float
    last_click: datetime


@dataclass(frozen=True)
class LinkBucket:
    """
    Per-target click bucket. ``click_through_rate`` is the link's share of
    all clicks in the window.
    """

    target_id: UUID
    target_kind: TargetKind
    url: str
    title: str
    thumbnail: str
    count: int
    unique_actors: int
    click_through_rate: float
    last_click: datetime


@dataclass(frozen=True)
class HourBucket:
    hour: int
    count: int
    unique_actors: int
    engagement_rate: float


@dataclass(frozen=True)
class WeekdayBucket:
    weekday: int
    day_name: str
    count: int
    unique_actors: int
    engagement_rate: float


@dataclass(frozen=True)
class PeriodBucket:
    period: str
    total_clicks: int
    unique_clicks: int


@dataclass(frozen=True)
class TopLinkBucket:
    target_id: UUID
    widget_id: UUID
    widget_name: str | None
    title: str
    url: str
    thumbnail: str
    count: int
    unique_actors: int
    percentage: float
    last_click: datetime
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeviceBucket:
    device: str
    count: int
    unique_actors: int


@dataclass(frozen=True)
class ReferrerBucket:
    source: str
    count: int
    unique_actors: int


@dataclass(frozen=True)
class MinuteBucket:
    minute: str
    count: int


@dataclass(frozen=True)
class KindBucket:
    kind: TargetKind
    clicks: int
    unique_clicks: int


@dataclass(frozen=True)
class DailyCount:
    date: str
    clicks: int


@dataclass(frozen=True)
class HourActivity:
    hour: int
    activity: int


# --- Summaries ---


@dataclass(frozen=True)
class LocationSummary:
    total_clicks: int
    unique_actors: int
    total_locations: int


@dataclass(frozen=True)
class LinkSummary:
    total_clicks: int
    unique_actors: int
    total_links: int


@dataclass(frozen=True)
class PeakInsights:
    peak_hour: HourBucket | None
    quietest_hour: HourBucket | None
    peak_day: WeekdayBucket | None
    quietest_day: WeekdayBucket | None
    avg_views_per_hour: float
    avg_views_per_day: float


@dataclass(frozen=True)
class Trend:
    """7-vs-7 bucket comparison; ``unique_percentage`` compares unique clicks."""

    recent_avg: float
    previous_avg: float
    percentage: float
    unique_percentage: float = 0.0

    @property
    def direction(self) -> str:
        if self.percentage > 0:
            return "up"
        if self.percentage < 0:
            return "down"
        return "flat"


@dataclass(frozen=True)
class Segmentation:
    """
    New vs returning actors for a window.

    ``returning`` have interacted strictly before the window start; ``new``
    have not. Together they partition the window's click actors.
    """

    returning: frozenset[UUID]
    new: frozenset[UUID]
    returning_clicks: int
    new_clicks: int
    returning_rate: float
    new_rate: float

    @property
    def total_customers(self) -> int:
        return len(self.returning) + len(self.new)


@dataclass(frozen=True)
class CollectiveMetrics:
    total_clicks: int
    unique_clicks: int
    total_views: int
    unique_views: int
    ctr: float
    average_clicks_per_user: float


# --- Input Models ---


@dataclass(frozen=True)
class ReportInput:
    """
    Common report input.

    Exactly one of ``target_id`` (resolved to its owner) or ``owner_id`` must
    be given. ``date_range`` is a window token: absent, ``weekly``,
    ``monthly``, ``yearly`` or ``YYYY-MM-DD``.
    """

    target_id: UUID | None = None
    owner_id: UUID | None = None
    date_range: str | None = None


@dataclass(frozen=True)
class LocationReportInput(ReportInput):
    limit: int | None = None


@dataclass(frozen=True)
class LinkReportInput(ReportInput):
    kind: TargetKind | None = None
    limit: int | None = None


@dataclass(frozen=True)
class PeakHourReportInput(ReportInput):
    group_by: PeakGroupBy = "hour_of_week"


@dataclass(frozen=True)
class TimeSeriesReportInput(ReportInput):
    granularity: Granularity = "day"


@dataclass(frozen=True)
class TopLinksReportInput(ReportInput):
    limit: int | None = None


@dataclass(frozen=True)
class DashboardInput(ReportInput):
    include: frozenset[str] = frozenset(DASHBOARD_SECTIONS)
    granularity: Granularity = "day"


@dataclass(frozen=True)
class CollectiveReportInput(ReportInput):
    pass


@dataclass(frozen=True)
class ContentPerformanceInput:
    target_id: UUID | None
    date_range: str | None = None


@dataclass(frozen=True)
class RealtimeReportInput:
    target_id: UUID | None
    minutes: int | None = None


@dataclass(frozen=True)
class ClickHistoryInput:
    actor_id: UUID | None
    date_range: str | None = None
    kind: TargetKind | None = None
    limit: int | None = None


@dataclass(frozen=True)
class ExportInput(ReportInput):
    format: str = "json"
    metrics: tuple[str, ...] = EXPORT_METRICS


# --- Output Models ---


@dataclass(frozen=True)
class LocationReportOutput:
    buckets: list[LocationBucket]
    summary: LocationSummary | None
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class LinkReportOutput:
    buckets: list[LinkBucket]
    top_links: list[LinkBucket]
    summary: LinkSummary | None
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PeakHourReportOutput:
    hours: list[HourBucket]
    weekdays: list[WeekdayBucket]
    insights: PeakInsights | None
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class TimeSeriesReportOutput:
    buckets: list[PeriodBucket]
    trend: Trend | None
    granularity: Granularity
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class TopLinksReportOutput:
    links: list[TopLinkBucket]
    total_clicks: int
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class DashboardOutput:
    """
    Composed report. ``sections`` holds each included sub-report that
    succeeded; ``section_errors`` names each that failed.
    """

    time_series: TimeSeriesReportOutput | None
    sections: dict[str, Any]
    section_errors: dict[str, str]
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class CollectiveReportOutput:
    owner_id: UUID | None
    metrics: CollectiveMetrics | None
    segmentation: Segmentation | None
    content_breakdown: list[KindBucket]
    locations: list[LocationBucket]
    daily: list[DailyCount]
    hourly_activity: list[HourActivity]
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ContentPerformanceOutput:
    target_id: UUID | None
    target_kind: TargetKind | None
    title: str
    url: str
    thumbnail: str
    total_clicks: int
    unique_clicks: int
    total_views: int
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RealtimeReportOutput:
    active_actors: int
    active_sessions: int
    per_minute: list[MinuteBucket]
    by_kind: dict[str, int]
    top_locations: list[str]
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ClickHistoryOutput:
    events: list[InteractionEvent]
    window: ReportingWindow | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ExportOutput:
    format: str
    data: dict[str, Any]
    export_info: dict[str, Any]
    message: str | None = None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True
