"""
Segmentation engine - new vs returning actors for an owner's window.

A returning actor has interacted with the owner's content strictly before
the window start; every other actor who clicked in the window is new. This is a
snapshot comparison, not a cohort model.

The history set considers every interaction event (clicks and views); the
period set is the window's click actors only, so viewers who never clicked
are not customers.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from src.core.entities import InteractionEvent
from src.core.ports.db import EventQuery, EventStorePort

from ._aggregate import DEFAULT_CONFIG, AggregateConfig, click_events, percentage
from .models import CollectiveMetrics, ReportingWindow, Segmentation


def classify_customers(
    history: set[UUID],
    period_events: Sequence[InteractionEvent],
    config: AggregateConfig = DEFAULT_CONFIG,
) -> Segmentation:
    """
    Partition the period's click actors against the history set, then count
    the period's clicks per segment. View events in ``period_events`` are
    ignored.
    """
    clicks = click_events(period_events)
    period = {e.actor_id for e in clicks}
    returning = period & history
    new = period - history

    returning_clicks = sum(1 for e in clicks if e.actor_id in returning)
    new_clicks = sum(1 for e in clicks if e.actor_id in new)

    return Segmentation(
        returning=frozenset(returning),
        new=frozenset(new),
        returning_clicks=returning_clicks,
        new_clicks=new_clicks,
        returning_rate=percentage(len(returning), len(period), config.percentage_precision),
        new_rate=percentage(len(new), len(period), config.percentage_precision),
    )


def segment_owner(
    store: EventStorePort,
    owner_id: UUID,
    window: ReportingWindow,
    config: AggregateConfig = DEFAULT_CONFIG,
) -> Segmentation:
    """Segment ``owner_id``'s actors for ``window`` using the event store."""
    history = store.distinct_actors(EventQuery(owner_id=owner_id, before=window.start))
    period_events = store.query(
        EventQuery(owner_id=owner_id, start=window.start, end=window.end)
    )
    return classify_customers(history, period_events, config)


def collective_metrics(
    events: Sequence[InteractionEvent], config: AggregateConfig = DEFAULT_CONFIG
) -> CollectiveMetrics:
    """
    Click and view totals for a window.

    ``ctr`` is clicks per view as a percentage, 0 with no views.
    """
    clicks = click_events(events)
    views = [e for e in events if e.is_view]
    click_actors = {e.actor_id for e in clicks}

    ctr = (
        round(len(clicks) / len(views) * 100, config.percentage_precision) if views else 0.0
    )
    per_user = (
        round(len(clicks) / len(click_actors), config.percentage_precision)
        if click_actors
        else 0.0
    )
    return CollectiveMetrics(
        total_clicks=len(clicks),
        unique_clicks=len(click_actors),
        total_views=len(views),
        unique_views=len({e.actor_id for e in views}),
        ctr=ctr,
        average_clicks_per_user=per_user,
    )
