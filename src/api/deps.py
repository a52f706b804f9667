import os
from functools import lru_cache
from pathlib import Path
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import (
    SQLiteActorLocationRepo,
    SQLiteBusinessProfileRepo,
    SQLiteInteractionEventRepo,
    SQLitePageRepo,
    SQLiteWidgetRepo,
)

# Atomic components are stateless, so we import them here for dependency injection.
# Dependencies are injected as ports/repos/adapters.
from src.components.analytics import AggregateConfig, AnalyticsReportService, ReportConfig
from src.components.interactions import InteractionIngestionService
from src.components.targets import TargetResolver, create_target_resolver
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ANALYTICS_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "analytics.db")
        self.rules_path = Path(
            os.environ.get("ANALYTICS_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = self.base_dir / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


def build_report_config(rules: Rules) -> ReportConfig:
    analytics = rules.analytics
    return ReportConfig(
        default_limit=analytics.limits.default,
        max_limit=analytics.limits.max,
        top_links_limit=analytics.limits.top_links,
        history_limit=analytics.limits.history,
        collective_location_limit=analytics.limits.collective_locations,
        dashboard_section_limit=analytics.limits.dashboard_section,
        realtime_minutes=analytics.realtime.default_minutes,
        daily_series_days=analytics.daily_series_days,
        aggregate=AggregateConfig(
            percentage_precision=analytics.percentage_precision,
            trend_window=analytics.trend_window,
        ),
    )


# --- Repos ---
def get_event_repo(settings: Settings = Depends(get_settings)) -> SQLiteInteractionEventRepo:
    return SQLiteInteractionEventRepo(settings.db_path)


def get_page_repo(settings: Settings = Depends(get_settings)) -> SQLitePageRepo:
    return SQLitePageRepo(settings.db_path)


def get_profile_repo(settings: Settings = Depends(get_settings)) -> SQLiteBusinessProfileRepo:
    return SQLiteBusinessProfileRepo(settings.db_path)


def get_widget_repo(settings: Settings = Depends(get_settings)) -> SQLiteWidgetRepo:
    return SQLiteWidgetRepo(settings.db_path)


def get_location_repo(settings: Settings = Depends(get_settings)) -> SQLiteActorLocationRepo:
    return SQLiteActorLocationRepo(settings.db_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Component Services ---
def get_target_resolver(
    rules: Rules = Depends(get_rules),
    pages: SQLitePageRepo = Depends(get_page_repo),
    profiles: SQLiteBusinessProfileRepo = Depends(get_profile_repo),
    widgets: SQLiteWidgetRepo = Depends(get_widget_repo),
) -> TargetResolver:
    return create_target_resolver(pages, profiles, widgets, public_host=rules.analytics.public_host)


def get_ingestion_service(
    events: SQLiteInteractionEventRepo = Depends(get_event_repo),
    resolver: TargetResolver = Depends(get_target_resolver),
    pages: SQLitePageRepo = Depends(get_page_repo),
    profiles: SQLiteBusinessProfileRepo = Depends(get_profile_repo),
    widgets: SQLiteWidgetRepo = Depends(get_widget_repo),
    locations: SQLiteActorLocationRepo = Depends(get_location_repo),
    clock: SystemClock = Depends(get_clock),
) -> InteractionIngestionService:
    """Get interactions component service."""
    return InteractionIngestionService(
        event_store=events,
        resolver=resolver,
        pages=pages,
        profiles=profiles,
        widgets=widgets,
        locations=locations,
        time_port=clock,
    )


def get_report_service(
    rules: Rules = Depends(get_rules),
    events: SQLiteInteractionEventRepo = Depends(get_event_repo),
    resolver: TargetResolver = Depends(get_target_resolver),
    widgets: SQLiteWidgetRepo = Depends(get_widget_repo),
    clock: SystemClock = Depends(get_clock),
) -> AnalyticsReportService:
    """Get analytics component service."""
    return AnalyticsReportService(
        event_store=events,
        resolver=resolver,
        widgets=widgets,
        time_port=clock,
        config=build_report_config(rules),
    )


# --- Acting user ---
def get_actor_id(x_actor_id: str | None = Header(None)) -> UUID:
    """
    The acting user, as forwarded by the upstream auth layer.

    Raises 401 when the header is absent or not a UUID.
    """
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor id",
        ) from None
