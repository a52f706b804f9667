"""
Analytics component - aggregation and segmentation over interaction events.
"""

from ._aggregate import (
    AggregateConfig,
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
    location_label,
    period_key,
)
from ._classify import classify_device, referrer_source
from ._dashboard import compose_dashboard
from ._impl import (
    AnalyticsReportService,
    ReportConfig,
    validate_limit,
    validate_scope,
)
from ._segment import classify_customers, collective_metrics, segment_owner
from ._window import (
    InvalidWindowError,
    resolve_window,
    rolling_window,
    validate_window,
)
from .component import (
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
from .models import (
    DASHBOARD_SECTIONS,
    EXPORT_METRICS,
    ClickHistoryInput,
    ClickHistoryOutput,
    CollectiveMetrics,
    CollectiveReportInput,
    CollectiveReportOutput,
    ContentPerformanceInput,
    ContentPerformanceOutput,
    DashboardInput,
    DashboardOutput,
    DeviceBucket,
    ExportInput,
    ExportOutput,
    HourBucket,
    LinkBucket,
    LinkReportInput,
    LinkReportOutput,
    LocationBucket,
    LocationReportInput,
    LocationReportOutput,
    PeakHourReportInput,
    PeakHourReportOutput,
    PeakInsights,
    PeriodBucket,
    RealtimeReportInput,
    RealtimeReportOutput,
    ReferrerBucket,
    ReportingWindow,
    Segmentation,
    TimeSeriesReportInput,
    TimeSeriesReportOutput,
    TopLinkBucket,
    TopLinksReportInput,
    TopLinksReportOutput,
    Trend,
    WeekdayBucket,
)

__all__ = [
    # Entry points
    "run_click_history",
    "run_collective_report",
    "run_content_performance",
    "run_dashboard",
    "run_export",
    "run_link_report",
    "run_location_report",
    "run_peak_hour_report",
    "run_realtime_report",
    "run_time_series_report",
    "run_top_links_report",
    # Input models
    "ClickHistoryInput",
    "CollectiveReportInput",
    "ContentPerformanceInput",
    "DashboardInput",
    "ExportInput",
    "LinkReportInput",
    "LocationReportInput",
    "PeakHourReportInput",
    "RealtimeReportInput",
    "TimeSeriesReportInput",
    "TopLinksReportInput",
    # Output models
    "ClickHistoryOutput",
    "CollectiveReportOutput",
    "ContentPerformanceOutput",
    "DashboardOutput",
    "ExportOutput",
    "LinkReportOutput",
    "LocationReportOutput",
    "PeakHourReportOutput",
    "RealtimeReportOutput",
    "TimeSeriesReportOutput",
    "TopLinksReportOutput",
    # Buckets
    "CollectiveMetrics",
    "DeviceBucket",
    "HourBucket",
    "LinkBucket",
    "LocationBucket",
    "PeakInsights",
    "PeriodBucket",
    "ReferrerBucket",
    "ReportingWindow",
    "Segmentation",
    "TopLinkBucket",
    "Trend",
    "WeekdayBucket",
    "DASHBOARD_SECTIONS",
    "EXPORT_METRICS",
    # Window
    "InvalidWindowError",
    "resolve_window",
    "rolling_window",
    "validate_window",
    # Engine
    "AggregateConfig",
    "aggregate_content_kinds",
    "aggregate_devices",
    "aggregate_links",
    "aggregate_locations",
    "aggregate_peak_hours",
    "aggregate_realtime",
    "aggregate_referrers",
    "aggregate_time_series",
    "aggregate_top_links",
    "classify_customers",
    "classify_device",
    "collective_metrics",
    "compute_trend",
    "daily_counts",
    "hour_activity",
    "location_label",
    "period_key",
    "referrer_source",
    "segment_owner",
    # Service
    "AnalyticsReportService",
    "ReportConfig",
    "compose_dashboard",
    "validate_limit",
    "validate_scope",
]
