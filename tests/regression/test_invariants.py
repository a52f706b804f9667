"""
Regression guards for the engine's core invariants.

Each test pins one behaviour that reports and ingestion depend on: dedup,
zero-filled hour buckets, percentage totals, segmentation partitions,
trend thresholds and resolver priority.
"""

import random
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.components.analytics import (
    AnalyticsReportService,
    PeriodBucket,
    TimeSeriesReportInput,
    aggregate_locations,
    aggregate_peak_hours,
    classify_customers,
    compute_trend,
    resolve_window,
    run_time_series_report,
    segment_owner,
)
from src.components.interactions import InMemoryInteractionStore, InteractionIngestionService
from src.components.targets import (
    InMemoryBusinessProfileRepo,
    InMemoryPageRepo,
    InMemoryWidgetRepo,
    create_target_resolver,
)
from src.core.entities import InteractionEvent, Page, TargetKind, Widget

DAY_1 = datetime(2025, 3, 4, 10, 0, tzinfo=UTC)
DAY_5 = DAY_1 + timedelta(days=4)
REPORT_NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


def _click(actor_id, target_id, owner_id, ts, lon=0.0, lat=0.0):
    return InteractionEvent(
        actor_id=actor_id,
        target_id=target_id,
        target_kind=TargetKind.CUSTOM_LINK,
        owner_id=owner_id,
        timestamp=ts,
        longitude=lon,
        latitude=lat,
    )


@pytest.fixture
def repos():
    pages = InMemoryPageRepo()
    profiles = InMemoryBusinessProfileRepo()
    widgets = InMemoryWidgetRepo()
    return pages, profiles, widgets, create_target_resolver(pages, profiles, widgets)


# --- R1: Dedup ---
def test_R1_click_and_view_dedup(repos, clock):
    """R1: Repeat clicks store one event; repeat views store one per UTC day."""
    pages, profiles, widgets, resolver = repos
    page = pages.add(Page(owner_id=uuid4(), slug="menu"))
    store = InMemoryInteractionStore()
    service = InteractionIngestionService(
        store, resolver, pages, profiles, widgets, time_port=clock
    )
    actor = uuid4()

    first = service.record_click(actor, page.id)
    second = service.record_click(actor, page.id)
    service.record_view(actor, page.id)
    clock.advance(timedelta(hours=6))
    service.record_view(actor, page.id)

    assert first is not None and first.created
    assert second is not None and not second.created
    kinds = sorted(e.target_kind.value for e in store.get_all())
    assert kinds == ["page", "view"]


# --- R2: Percentages ---
def test_R2_location_percentages_sum_to_100():
    """R2: Unlimited location buckets account for every click."""
    rng = random.Random(7)
    owner = uuid4()
    points = [(rng.choice([1.0, 2.0, 3.0]), rng.choice([4.0, 5.0, 6.0])) for _ in range(97)]
    events = [_click(uuid4(), uuid4(), owner, REPORT_NOW, lon, lat) for lon, lat in points]

    buckets, summary = aggregate_locations(events)

    assert summary.total_clicks == 97
    assert abs(sum(b.percentage for b in buckets) - 100) <= 0.1


def test_R2_percentages_computed_before_limit():
    """R2: A limit truncates buckets without renormalising."""
    owner = uuid4()
    events = [_click(uuid4(), uuid4(), owner, REPORT_NOW, float(i % 4), 0.0) for i in range(8)]

    buckets, summary = aggregate_locations(events, limit=1)

    assert len(buckets) == 1
    assert buckets[0].percentage == 25.0
    assert summary.total_locations == 4


# --- R3: Peak hours ---
def test_R3_peak_hours_always_24_buckets():
    """R3: Hour buckets are zero-filled even with no events."""
    hours, weekdays, insights = aggregate_peak_hours([])

    assert [h.hour for h in hours] == list(range(24))
    assert all(h.count == 0 for h in hours)
    assert weekdays == []
    assert insights.peak_hour is None and insights.quietest_hour is None


def test_R3_quietest_hour_never_zero():
    """R3: The quietest hour is the least-active hour that had activity."""
    owner = uuid4()
    base = datetime(2025, 3, 10, tzinfo=UTC)
    events = [_click(uuid4(), uuid4(), owner, base.replace(hour=9)) for _ in range(3)]
    events.append(_click(uuid4(), uuid4(), owner, base.replace(hour=22)))

    _, _, insights = aggregate_peak_hours(events, group_by="hour")

    assert insights.quietest_hour is not None
    assert insights.quietest_hour.hour == 22
    assert insights.quietest_hour.count == 1
    assert insights.peak_hour is not None and insights.peak_hour.hour == 9


# --- R4: Segmentation ---
def test_R4_segmentation_partitions_period_actors():
    """R4: returning and new are disjoint and cover every period actor."""
    rng = random.Random(11)
    owner = uuid4()
    actors = [uuid4() for _ in range(20)]
    history = set(rng.sample(actors, 8)) | {uuid4()}
    period = [_click(rng.choice(actors), uuid4(), owner, REPORT_NOW) for _ in range(40)]

    seg = classify_customers(history, period)

    period_actors = {e.actor_id for e in period}
    assert seg.returning & seg.new == frozenset()
    assert seg.returning | seg.new == period_actors
    assert seg.returning_clicks + seg.new_clicks == len(period)


def test_R4_segmentation_scenario():
    """R4: A and B are new until A has history before the window."""
    owner, target = uuid4(), uuid4()
    actor_a, actor_b = uuid4(), uuid4()
    window = resolve_window("weekly", REPORT_NOW)
    store = InMemoryInteractionStore()
    store.append(_click(actor_a, target, owner, DAY_1))
    store.append(
        InteractionEvent(
            actor_id=actor_a,
            target_id=target,
            target_kind=TargetKind.VIEW,
            owner_id=owner,
            timestamp=DAY_5,
        )
    )
    store.append(_click(actor_b, target, owner, DAY_5))

    seg = segment_owner(store, owner, window)
    assert seg.new == {actor_a, actor_b}
    assert seg.returning == frozenset()

    store.append(_click(actor_a, uuid4(), owner, window.start - timedelta(days=2)))

    seg = segment_owner(store, owner, window)
    assert seg.returning == {actor_a}
    assert seg.new == {actor_b}


# --- R5: Trend ---
@pytest.mark.parametrize("n", [0, 1, 7, 13])
def test_R5_trend_zero_below_fourteen_buckets(n):
    """R5: Fewer than two full trend windows means no trend."""
    buckets = [
        PeriodBucket(period=f"p{i:02d}", total_clicks=i * 10, unique_clicks=i) for i in range(n)
    ]

    assert compute_trend(buckets).percentage == 0


def test_R5_weekly_series_with_no_events(repos, clock):
    """R5: An empty weekly series is an empty list with zero trend."""
    pages, _, widgets, resolver = repos
    page = pages.add(Page(owner_id=uuid4()))
    service = AnalyticsReportService(InMemoryInteractionStore(), resolver, widgets, clock)

    result = run_time_series_report(
        TimeSeriesReportInput(target_id=page.id, date_range="weekly"), service=service
    )

    assert result.success
    assert result.buckets == []
    assert result.trend is not None and result.trend.percentage == 0


# --- R6: Resolver priority ---
def test_R6_page_wins_over_widget_with_same_id(repos):
    """R6: Resolution follows page, business profile, custom link order."""
    pages, _, widgets, resolver = repos
    shared_id = uuid4()
    pages.add(Page(id=shared_id, owner_id=uuid4(), title="Landing"))
    widgets.add(Widget(id=shared_id, owner_id=uuid4(), name="Link"))

    resolved = resolver.resolve(shared_id)

    assert resolved is not None
    assert resolved.kind == TargetKind.PAGE
    assert resolved.title == "Landing"
    assert resolver.order == ("page", "business_profile", "custom_link")
