"""
Dashboard composition.

Sub-reports are independent reads and run concurrently in worker threads.
The base time series is required: its failure fails the dashboard. Any
other section that fails is logged, reported in ``section_errors`` and
left out, without affecting its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

from ._impl import AnalyticsReportService
from .models import (
    DASHBOARD_SECTIONS,
    DashboardOutput,
    Granularity,
    ReportingWindow,
    TimeSeriesReportOutput,
)

logger = logging.getLogger(__name__)


def _section_calls(
    service: AnalyticsReportService, owner_id: UUID, window: ReportingWindow
) -> dict[str, Callable[[], Any]]:
    limit = service.config.dashboard_section_limit
    return {
        "location": lambda: service.location_report(owner_id, window, limit),
        "links": lambda: service.link_report(owner_id, window, limit=limit),
        "peak_hours": lambda: service.peak_hour_report(owner_id, window),
        "devices": lambda: service.device_report(owner_id, window),
        "referrals": lambda: service.referral_report(owner_id, window, limit),
    }


def _shape_section(name: str, result: Any) -> dict[str, Any]:
    if name == "location":
        buckets, summary = result
        return {"buckets": buckets, "summary": summary}
    if name == "links":
        buckets, top, summary = result
        return {"buckets": buckets, "top_links": top, "summary": summary}
    if name == "peak_hours":
        hours, weekdays, insights = result
        return {"hours": hours, "weekdays": weekdays, "insights": insights}
    return {"buckets": result}


async def compose_dashboard(
    service: AnalyticsReportService,
    owner_id: UUID,
    window: ReportingWindow,
    include: frozenset[str] = frozenset(DASHBOARD_SECTIONS),
    granularity: Granularity = "day",
) -> DashboardOutput:
    """Run the base time series plus each included section concurrently."""
    calls = _section_calls(service, owner_id, window)
    names = [n for n in DASHBOARD_SECTIONS if n in include]

    base_task = asyncio.to_thread(service.time_series_report, owner_id, window, granularity)
    section_tasks = [asyncio.to_thread(calls[name]) for name in names]

    results = await asyncio.gather(base_task, *section_tasks, return_exceptions=True)
    base, section_results = results[0], results[1:]

    if isinstance(base, BaseException):
        logger.error("Dashboard base time series failed for owner %s: %s", owner_id, base)
        raise base

    sections: dict[str, Any] = {}
    section_errors: dict[str, str] = {}
    for name, result in zip(names, section_results, strict=True):
        if isinstance(result, Exception):
            logger.warning("Dashboard section %s failed for owner %s: %s", name, owner_id, result)
            section_errors[name] = str(result) or type(result).__name__
            continue
        if isinstance(result, BaseException):
            raise result
        sections[name] = _shape_section(name, result)

    buckets, trend = base
    return DashboardOutput(
        time_series=TimeSeriesReportOutput(
            buckets=buckets, trend=trend, granularity=granularity, window=window
        ),
        sections=sections,
        section_errors=section_errors,
        window=window,
    )
