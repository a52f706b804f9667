"""
Aggregation engine - pure groupings over interaction event lists.

Key behaviors:
- Percentages are computed against the full bucket set, then rows are
  ranked and truncated; truncation never changes the percentage base
- Locations group by the exact coordinate pair (no rounding or clustering)
- Hour-of-day output always has 24 zero-filled entries
- Quietest hour/day is picked from non-zero buckets only
- Trend compares the mean of the last 7 periods against the 7 before; it is
  0 with fewer than 14 periods or a zero previous mean

All functions are side-effect free; callers fetch events for the window.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from src.core.entities import CLICK_KINDS, InteractionEvent, TargetKind, Widget

from ._classify import classify_device, referrer_source
from .models import (
    DailyCount,
    DeviceBucket,
    Granularity,
    HourActivity,
    HourBucket,
    KindBucket,
    LinkBucket,
    LinkSummary,
    LocationBucket,
    LocationSummary,
    MinuteBucket,
    PeakGroupBy,
    PeakInsights,
    PeriodBucket,
    ReferrerBucket,
    TopLinkBucket,
    Trend,
    WeekdayBucket,
)

DAY_NAMES: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

PERIOD_FORMATS: dict[str, str] = {
    "hour": "%Y-%m-%d %H:00:00",
    "day": "%Y-%m-%d",
    "week": "%Y-%U",
    "month": "%Y-%m",
}

MINUTE_FORMAT = "%Y-%m-%d %H:%M"

DEFAULT_PRECISION = 2
TREND_WINDOW = 7


@dataclass(frozen=True)
class AggregateConfig:
    """Aggregation tunables (see rules.yaml ``analytics``)."""

    percentage_precision: int = DEFAULT_PRECISION
    trend_window: int = TREND_WINDOW


DEFAULT_CONFIG = AggregateConfig()


# --- Helpers ---


@dataclass
class _Group:
    """Mutable accumulator for one bucket."""

    count: int = 0
    actors: set[UUID] = field(default_factory=set)
    last: datetime | None = None
    first_event: InteractionEvent | None = None

    def add(self, event: InteractionEvent) -> None:
        self.count += 1
        self.actors.add(event.actor_id)
        if self.first_event is None:
            self.first_event = event
        if self.last is None or event.timestamp > self.last:
            self.last = event.timestamp


def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def percentage(part: int, total: int, precision: int = DEFAULT_PRECISION) -> float:
    if total <= 0:
        return 0.0
    return round(part / total * 100, precision)


def location_label(longitude: float, latitude: float) -> str:
    """Placeholder label; no reverse geocoding is performed."""
    return f"Location ({longitude:.4f}, {latitude:.4f})"


def weekday_index(dt: datetime) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (_utc(dt).weekday() + 1) % 7


def click_events(events: Iterable[InteractionEvent]) -> list[InteractionEvent]:
    return [e for e in events if e.target_kind in CLICK_KINDS]


def _group_by(events: Iterable[InteractionEvent], key: Any) -> dict[Any, _Group]:
    groups: dict[Any, _Group] = defaultdict(_Group)
    for event in sorted(events, key=lambda e: e.timestamp):
        groups[key(event)].add(event)
    return dict(groups)


# --- Location ---


def aggregate_locations(
    events: Sequence[InteractionEvent],
    limit: int | None = None,
    config: AggregateConfig = DEFAULT_CONFIG,
) -> tuple[list[LocationBucket], LocationSummary]:
    """Group by exact (longitude, latitude); rank by count descending."""
    groups = _group_by(events, lambda e: e.coordinates)
    total = len(events)

    buckets = [
        LocationBucket(
            longitude=lon,
            latitude=lat,
            label=location_label(lon, lat),
            count=g.count,
            unique_actors=len(g.actors),
            percentage=percentage(g.count, total, config.percentage_precision),
            last_click=g.last,  # type: ignore[arg-type]
        )
        for (lon, lat), g in groups.items()
    ]
    buckets.sort(key=lambda b: (-b.count, -b.last_click.timestamp()))

    summary = LocationSummary(
        total_clicks=total,
        unique_actors=len({e.actor_id for e in events}),
        total_locations=len(buckets),
    )
    if limit is not None:
        buckets = buckets[:limit]
    return buckets, summary


# --- Links ---


def aggregate_links(
    events: Sequence[InteractionEvent],
    kind: TargetKind | None = None,
    config: AggregateConfig = DEFAULT_CONFIG,
) -> tuple[list[LinkBucket], LinkSummary]:
    """
    Group by target id, keeping the first-seen display metadata.

    ``click_through_rate`` is each link's share of all clicks considered.
    """
    considered = [e for e in events if kind is None or e.target_kind == kind]
    groups = _group_by(considered, lambda e: e.target_id)
    total = len(considered)

    buckets: list[LinkBucket] = []
    for target_id, g in groups.items():
        first = g.first_event
        assert first is not None
        buckets.append(
            LinkBucket(
                target_id=target_id,
                target_kind=first.target_kind,
                url=first.target_url,
                title=first.target_title,
                thumbnail=first.target_thumbnail,
                count=g.count,
                unique_actors=len(g.actors),
                click_through_rate=percentage(g.count, total, config.percentage_precision),
                last_click=g.last,  # type: ignore[arg-type]
            )
        )
    buckets.sort(key=lambda b: (-b.count, -b.last_click.timestamp()))

    summary = LinkSummary(
        total_clicks=total,
        unique_actors=len({e.actor_id for e in considered}),
        total_links=len(buckets),
    )
    return buckets, summary


# --- Peak hours ---


def _engagement_rate(count: int) -> float:
    # Every ingested interaction is also its own view here
    return 100.0 if count > 0 else 0.0


def aggregate_peak_hours(
    events: Sequence[InteractionEvent],
    group_by: PeakGroupBy = "hour_of_week",
    config: AggregateConfig = DEFAULT_CONFIG,
) -> tuple[list[HourBucket], list[WeekdayBucket], PeakInsights]:
    """
    Hour-of-day (24 zero-filled entries) and day-of-week groupings.

    ``group_by`` selects which insights are derived: ``hour`` for peak and
    quietest hour, ``day_of_week`` for peak and quietest day,
    ``hour_of_week`` for both.
    """
    by_hour = _group_by(events, lambda e: _utc(e.timestamp).hour)
    by_day = _group_by(events, lambda e: weekday_index(e.timestamp))

    empty = _Group()
    hours = [
        HourBucket(
            hour=h,
            count=by_hour.get(h, empty).count,
            unique_actors=len(by_hour.get(h, empty).actors),
            engagement_rate=_engagement_rate(by_hour.get(h, empty).count),
        )
        for h in range(24)
    ]
    weekdays = [
        WeekdayBucket(
            weekday=d,
            day_name=DAY_NAMES[d],
            count=g.count,
            unique_actors=len(g.actors),
            engagement_rate=_engagement_rate(g.count),
        )
        for d, g in sorted(by_day.items())
    ]

    peak_hour = quietest_hour = None
    peak_day = quietest_day = None
    avg_per_hour = avg_per_day = 0.0

    if group_by in ("hour", "hour_of_week"):
        active_hours = [h for h in hours if h.count > 0]
        if active_hours:
            # max/min keep the earliest hour on ties
            peak_hour = max(active_hours, key=lambda h: h.count)
            quietest_hour = min(active_hours, key=lambda h: h.count)
        avg_per_hour = round(sum(h.count for h in hours) / 24, config.percentage_precision)

    if group_by in ("day_of_week", "hour_of_week"):
        active_days = [d for d in weekdays if d.count > 0]
        if active_days:
            peak_day = max(active_days, key=lambda d: d.count)
            quietest_day = min(active_days, key=lambda d: d.count)
            avg_per_day = round(
                sum(d.count for d in active_days) / len(active_days),
                config.percentage_precision,
            )

    insights = PeakInsights(
        peak_hour=peak_hour,
        quietest_hour=quietest_hour,
        peak_day=peak_day,
        quietest_day=quietest_day,
        avg_views_per_hour=avg_per_hour,
        avg_views_per_day=avg_per_day,
    )
    return hours, weekdays, insights


# --- Time series ---


def period_key(ts: datetime, granularity: Granularity) -> str:
    try:
        fmt = PERIOD_FORMATS[granularity]
    except KeyError:
        raise ValueError(f"Unknown granularity: {granularity}") from None
    return _utc(ts).strftime(fmt)


def aggregate_time_series(
    events: Sequence[InteractionEvent], granularity: Granularity = "day"
) -> list[PeriodBucket]:
    """Calendar buckets sorted ascending by period key."""
    groups = _group_by(events, lambda e: period_key(e.timestamp, granularity))
    return [
        PeriodBucket(period=period, total_clicks=g.count, unique_clicks=len(g.actors))
        for period, g in sorted(groups.items())
    ]


def _change(recent: float, previous: float, precision: int) -> float:
    if previous == 0:
        return 0.0
    return round((recent - previous) / previous * 100, precision)


def compute_trend(
    buckets: Sequence[PeriodBucket], config: AggregateConfig = DEFAULT_CONFIG
) -> Trend:
    window = config.trend_window
    if len(buckets) < window * 2:
        return Trend(recent_avg=0.0, previous_avg=0.0, percentage=0.0)

    recent = buckets[-window:]
    previous = buckets[-window * 2 : -window]
    recent_avg = sum(b.total_clicks for b in recent) / window
    previous_avg = sum(b.total_clicks for b in previous) / window
    recent_unique = sum(b.unique_clicks for b in recent) / window
    previous_unique = sum(b.unique_clicks for b in previous) / window

    return Trend(
        recent_avg=round(recent_avg, config.percentage_precision),
        previous_avg=round(previous_avg, config.percentage_precision),
        percentage=_change(recent_avg, previous_avg, config.percentage_precision),
        unique_percentage=_change(recent_unique, previous_unique, config.percentage_precision),
    )


# --- Top links ---


def custom_link_index(widgets: Iterable[Widget]) -> dict[UUID, Widget]:
    """
    Map every trackable id to its live widget: the widget id itself and any
    per-link ``id`` / ``_id`` carried in its custom-link settings.
    """
    index: dict[UUID, Widget] = {}
    for widget in widgets:
        index[widget.id] = widget
        for link in widget.custom_links():
            raw = link.get("id") or link.get("_id")
            if not raw:
                continue
            try:
                index[UUID(str(raw))] = widget
            except ValueError:
                continue
    return index


def aggregate_top_links(
    events: Sequence[InteractionEvent],
    widgets: Iterable[Widget],
    limit: int | None = None,
    config: AggregateConfig = DEFAULT_CONFIG,
) -> tuple[list[TopLinkBucket], int]:
    """
    Rank custom-link clicks, keeping only links whose widget still exists.

    Stale ids drop out before ranking and before the percentage base is
    taken, so the limit always applies to live links.
    """
    index = custom_link_index(widgets)
    live = [
        e for e in events if e.target_kind == TargetKind.CUSTOM_LINK and e.target_id in index
    ]
    groups = _group_by(live, lambda e: e.target_id)
    total = len(live)

    links: list[TopLinkBucket] = []
    for target_id, g in groups.items():
        widget = index[target_id]
        first = g.first_event
        assert first is not None
        links.append(
            TopLinkBucket(
                target_id=target_id,
                widget_id=widget.id,
                widget_name=widget.name,
                title=first.target_title,
                url=first.target_url,
                thumbnail=first.target_thumbnail,
                count=g.count,
                unique_actors=len(g.actors),
                percentage=percentage(g.count, total, config.percentage_precision),
                last_click=g.last,  # type: ignore[arg-type]
                settings=dict(widget.settings),
            )
        )
    links.sort(key=lambda b: (-b.count, -b.unique_actors, -b.last_click.timestamp()))
    if limit is not None:
        links = links[:limit]
    return links, total


# --- Devices / referrals ---


def aggregate_devices(events: Sequence[InteractionEvent]) -> list[DeviceBucket]:
    groups = _group_by(events, lambda e: classify_device(e.user_agent))
    buckets = [
        DeviceBucket(device=device, count=g.count, unique_actors=len(g.actors))
        for device, g in groups.items()
    ]
    buckets.sort(key=lambda b: (-b.count, b.device))
    return buckets


def aggregate_referrers(
    events: Sequence[InteractionEvent], limit: int | None = None
) -> list[ReferrerBucket]:
    groups = _group_by(events, lambda e: referrer_source(e.referrer))
    buckets = [
        ReferrerBucket(source=source, count=g.count, unique_actors=len(g.actors))
        for source, g in groups.items()
    ]
    buckets.sort(key=lambda b: (-b.count, b.source))
    if limit is not None:
        buckets = buckets[:limit]
    return buckets


# --- Real-time ---


@dataclass(frozen=True)
class RealtimeSnapshot:
    active_actors: int
    active_sessions: int
    per_minute: list[MinuteBucket]
    by_kind: dict[str, int]
    top_locations: list[str]


def aggregate_realtime(events: Sequence[InteractionEvent], top: int = 5) -> RealtimeSnapshot:
    """
    Activity over a rolling window.

    Sessions fall back to actor identity when no session id was carried.
    """
    sessions = {e.session_id or f"actor:{e.actor_id}" for e in events}

    per_minute = [
        MinuteBucket(minute=minute, count=g.count)
        for minute, g in sorted(
            _group_by(events, lambda e: _utc(e.timestamp).strftime(MINUTE_FORMAT)).items()
        )
    ]

    by_kind: dict[str, int] = {}
    for event in events:
        if event.is_view:
            continue
        by_kind[event.target_kind.value] = by_kind.get(event.target_kind.value, 0) + 1

    locations, _ = aggregate_locations(events, limit=top)

    return RealtimeSnapshot(
        active_actors=len({e.actor_id for e in events}),
        active_sessions=len(sessions),
        per_minute=per_minute,
        by_kind=by_kind,
        top_locations=[b.label for b in locations],
    )


# --- Collective breakdowns ---


def aggregate_content_kinds(events: Sequence[InteractionEvent]) -> list[KindBucket]:
    groups = _group_by(click_events(events), lambda e: e.target_kind)
    buckets = [
        KindBucket(kind=kind, clicks=g.count, unique_clicks=len(g.actors))
        for kind, g in groups.items()
    ]
    buckets.sort(key=lambda b: (-b.clicks, b.kind.value))
    return buckets


def daily_counts(events: Sequence[InteractionEvent], max_days: int = 30) -> list[DailyCount]:
    """Per-day click counts, ascending, the most recent ``max_days`` days."""
    series = aggregate_time_series(events, "day")
    return [DailyCount(date=b.period, clicks=b.total_clicks) for b in series[-max_days:]]


def hour_activity(events: Sequence[InteractionEvent]) -> list[HourActivity]:
    """Active hours only, busiest first."""
    groups = _group_by(events, lambda e: _utc(e.timestamp).hour)
    rows = [HourActivity(hour=h, activity=g.count) for h, g in groups.items()]
    rows.sort(key=lambda r: (-r.activity, r.hour))
    return rows
