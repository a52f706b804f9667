"""
Interactions component unit tests.

Dedup policy, counter fan-out and location updates.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from src.components.interactions import (
    InMemoryActorLocationRepo,
    InMemoryInteractionStore,
    InteractionIngestionService,
    RecordClickInput,
    RecordViewInput,
    UpdateLocationInput,
    run_record_click,
    run_record_view,
    run_update_location,
)
from src.components.targets import (
    InMemoryBusinessProfileRepo,
    InMemoryPageRepo,
    InMemoryWidgetRepo,
    create_target_resolver,
)
from src.core.entities import (
    ActorLocation,
    BusinessProfile,
    InteractionEvent,
    Page,
    TargetKind,
    Widget,
)
from src.core.ports.db import DuplicateInteractionError

NOON = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


class MockTimePort:
    """Mock time provider."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or NOON

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


@pytest.fixture
def clock() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def store() -> InMemoryInteractionStore:
    return InMemoryInteractionStore()


@pytest.fixture
def pages() -> InMemoryPageRepo:
    return InMemoryPageRepo()


@pytest.fixture
def profiles() -> InMemoryBusinessProfileRepo:
    return InMemoryBusinessProfileRepo()


@pytest.fixture
def widgets() -> InMemoryWidgetRepo:
    return InMemoryWidgetRepo()


@pytest.fixture
def locations() -> InMemoryActorLocationRepo:
    return InMemoryActorLocationRepo()


@pytest.fixture
def service(
    store: InMemoryInteractionStore,
    pages: InMemoryPageRepo,
    profiles: InMemoryBusinessProfileRepo,
    widgets: InMemoryWidgetRepo,
    locations: InMemoryActorLocationRepo,
    clock: MockTimePort,
) -> InteractionIngestionService:
    resolver = create_target_resolver(pages, profiles, widgets)
    return InteractionIngestionService(
        event_store=store,
        resolver=resolver,
        pages=pages,
        profiles=profiles,
        widgets=widgets,
        locations=locations,
        time_port=clock,
    )


# --- Click Tests ---


class TestRecordClick:
    """Permanent click dedup."""

    def test_first_click_is_created(
        self,
        service: InteractionIngestionService,
        store: InMemoryInteractionStore,
        widgets: InMemoryWidgetRepo,
    ) -> None:
        owner = uuid4()
        widget = widgets.add(
            Widget(
                owner_id=owner,
                settings={"specific": {"custom_link": {"title": "Shop", "url": "https://s"}}},
            )
        )
        actor = uuid4()

        result = run_record_click(
            RecordClickInput(actor_id=actor, target_id=widget.id, user_agent="curl/8"),
            service=service,
        )

        assert result.success is True
        assert result.created is True
        assert result.event is not None
        assert result.event.target_kind == TargetKind.CUSTOM_LINK
        assert result.event.owner_id == owner
        assert result.event.target_title == "Shop"
        assert result.event.target_url == "https://s"
        assert result.event.user_agent == "curl/8"
        assert result.event.timestamp == NOON
        assert len(store.get_all()) == 1

    def test_second_click_is_not_created(
        self,
        service: InteractionIngestionService,
        store: InMemoryInteractionStore,
        pages: InMemoryPageRepo,
        clock: MockTimePort,
    ) -> None:
        page = pages.add(Page(owner_id=uuid4()))
        actor = uuid4()

        first = run_record_click(RecordClickInput(actor, page.id), service=service)
        clock.advance(timedelta(days=40))
        second = run_record_click(RecordClickInput(actor, page.id), service=service)

        assert first.created is True
        assert second.success is True
        assert second.created is False
        assert second.event is not None
        assert first.event is not None
        assert second.event.id == first.event.id
        assert len(store.get_all()) == 1

    def test_click_does_not_touch_counters(
        self, service: InteractionIngestionService, pages: InMemoryPageRepo
    ) -> None:
        page = pages.add(Page(owner_id=uuid4()))

        run_record_click(RecordClickInput(uuid4(), page.id), service=service)

        assert pages.get_by_id(page.id).view_count == 0  # type: ignore[union-attr]

    def test_unknown_target(self, service: InteractionIngestionService) -> None:
        result = run_record_click(RecordClickInput(uuid4(), uuid4()), service=service)

        assert result.success is False
        assert result.errors[0].code == "target_not_found"

    def test_missing_ids_are_validation_errors(
        self, service: InteractionIngestionService
    ) -> None:
        result = run_record_click(RecordClickInput(None, None), service=service)

        assert result.success is False
        assert {e.field_name for e in result.errors} == {"actor_id", "target_id"}

    def test_coordinates_come_from_actor_location(
        self,
        service: InteractionIngestionService,
        pages: InMemoryPageRepo,
        locations: InMemoryActorLocationRepo,
    ) -> None:
        page = pages.add(Page(owner_id=uuid4()))
        actor = uuid4()
        locations.save(ActorLocation(actor_id=actor, longitude=3.5, latitude=6.25))

        result = run_record_click(RecordClickInput(actor, page.id), service=service)

        assert result.event is not None
        assert result.event.coordinates == (3.5, 6.25)

    def test_unknown_location_defaults_to_origin(
        self, service: InteractionIngestionService, pages: InMemoryPageRepo
    ) -> None:
        page = pages.add(Page(owner_id=uuid4()))

        result = run_record_click(RecordClickInput(uuid4(), page.id), service=service)

        assert result.event is not None
        assert result.event.coordinates == (0.0, 0.0)

    def test_store_rejected_duplicate_is_not_a_failure(
        self, pages: InMemoryPageRepo, clock: MockTimePort
    ) -> None:
        """A racing insert rejected by the store reports created=False."""
        page = pages.add(Page(owner_id=uuid4()))
        actor = uuid4()

        class RacingStore(InMemoryInteractionStore):
            def find_click(
                self, actor_id: UUID, target_id: UUID, kind: TargetKind
            ) -> InteractionEvent | None:
                # The pre-insert check misses the concurrent writer
                if not self._events:
                    return None
                return super().find_click(actor_id, target_id, kind)

            def append(self, event: InteractionEvent) -> InteractionEvent:
                if not self._events:
                    self._events.append(event.model_copy(update={"id": uuid4()}))
                    raise DuplicateInteractionError(
                        event.actor_id, event.target_id, event.target_kind
                    )
                return super().append(event)

        store = RacingStore()
        service = InteractionIngestionService(
            event_store=store,
            resolver=create_target_resolver(
                pages, InMemoryBusinessProfileRepo(), InMemoryWidgetRepo()
            ),
            pages=pages,
            profiles=InMemoryBusinessProfileRepo(),
            widgets=InMemoryWidgetRepo(),
            time_port=clock,
        )

        result = run_record_click(RecordClickInput(actor, page.id), service=service)

        assert result.success is True
        assert result.created is False
        assert len(store.get_all()) == 1


# --- View Tests ---


class TestRecordView:
    """Once-per-UTC-day view dedup and counter fan-out."""

    def test_second_view_same_day(
        self,
        service: InteractionIngestionService,
        store: InMemoryInteractionStore,
        pages: InMemoryPageRepo,
        clock: MockTimePort,
    ) -> None:
        page = pages.add(Page(owner_id=uuid4()))
        actor = uuid4()

        first = run_record_view(RecordViewInput(actor, page.id), service=service)
        clock.advance(timedelta(hours=11, minutes=59))
        second = run_record_view(RecordViewInput(actor, page.id), service=service)

        assert first.created is True
        assert first.already_today is False
        assert second.created is False
        assert second.already_today is True
        assert len(store.get_all()) == 1

    def test_view_after_midnight_is_new(
        self,
        service: InteractionIngestionService,
        store: InMemoryInteractionStore,
        pages: InMemoryPageRepo,
        clock: MockTimePort,
    ) -> None:
        page = pages.add(Page(owner_id=uuid4()))
        actor = uuid4()

        run_record_view(RecordViewInput(actor, page.id), service=service)
        clock.advance(timedelta(hours=12))  # exactly 00:00 next day
        second = run_record_view(RecordViewInput(actor, page.id), service=service)

        assert second.created is True
        assert len(store.get_all()) == 2

    def test_view_event_kind(
        self, service: InteractionIngestionService, pages: InMemoryPageRepo
    ) -> None:
        page = pages.add(Page(owner_id=uuid4(), title="Menu"))

        result = run_record_view(RecordViewInput(uuid4(), page.id), service=service)

        assert result.event is not None
        assert result.event.target_kind == TargetKind.VIEW
        assert result.event.target_title == "Menu"

    def test_page_view_rolls_up_to_business(
        self,
        service: InteractionIngestionService,
        pages: InMemoryPageRepo,
        profiles: InMemoryBusinessProfileRepo,
    ) -> None:
        profile = profiles.add(BusinessProfile(owner_id=uuid4()))
        page = pages.add(Page(owner_id=profile.owner_id, business_id=profile.id))

        run_record_view(RecordViewInput(uuid4(), page.id), service=service)

        assert pages.get_by_id(page.id).view_count == 1  # type: ignore[union-attr]
        assert profiles.get_by_id(profile.id).view_count == 1  # type: ignore[union-attr]

    def test_profile_view_counter(
        self, service: InteractionIngestionService, profiles: InMemoryBusinessProfileRepo
    ) -> None:
        profile = profiles.add(BusinessProfile(owner_id=uuid4()))

        run_record_view(RecordViewInput(uuid4(), profile.id), service=service)

        assert profiles.get_by_id(profile.id).view_count == 1  # type: ignore[union-attr]

    def test_duplicate_view_has_no_side_effects(
        self, service: InteractionIngestionService, pages: InMemoryPageRepo
    ) -> None:
        page = pages.add(Page(owner_id=uuid4()))
        actor = uuid4()

        run_record_view(RecordViewInput(actor, page.id), service=service)
        run_record_view(RecordViewInput(actor, page.id), service=service)

        assert pages.get_by_id(page.id).view_count == 1  # type: ignore[union-attr]

    def test_counter_failure_is_logged_not_raised(
        self,
        store: InMemoryInteractionStore,
        profiles: InMemoryBusinessProfileRepo,
        widgets: InMemoryWidgetRepo,
        clock: MockTimePort,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        class BrokenCounterPages(InMemoryPageRepo):
            def increment_view_count(self, page_id: UUID) -> None:
                raise RuntimeError("counter store down")

        pages = BrokenCounterPages()
        page = pages.add(Page(owner_id=uuid4()))
        service = InteractionIngestionService(
            event_store=store,
            resolver=create_target_resolver(pages, profiles, widgets),
            pages=pages,
            profiles=profiles,
            widgets=widgets,
            time_port=clock,
        )

        with caplog.at_level(logging.ERROR):
            result = run_record_view(RecordViewInput(uuid4(), page.id), service=service)

        assert result.success is True
        assert result.created is True
        assert len(store.get_all()) == 1
        assert "View counter update failed" in caplog.text

    def test_unknown_target(self, service: InteractionIngestionService) -> None:
        result = run_record_view(RecordViewInput(uuid4(), uuid4()), service=service)

        assert result.success is False
        assert result.errors[0].code == "target_not_found"


# --- Location Tests ---


class TestUpdateLocation:
    def test_saves_location(
        self,
        service: InteractionIngestionService,
        locations: InMemoryActorLocationRepo,
    ) -> None:
        actor = uuid4()

        result = run_update_location(
            UpdateLocationInput(actor, longitude=-0.1276, latitude=51.5072, city="London"),
            service=service,
        )

        assert result.success is True
        saved = locations.get(actor)
        assert saved is not None
        assert saved.city == "London"
        assert saved.updated_at == NOON

    @pytest.mark.parametrize(
        ("lon", "lat", "code"),
        [
            (None, 10.0, "longitude_required"),
            (10.0, None, "latitude_required"),
            (181.0, 0.0, "invalid_longitude"),
            (0.0, -90.5, "invalid_latitude"),
        ],
    )
    def test_rejects_bad_coordinates(
        self,
        service: InteractionIngestionService,
        lon: float | None,
        lat: float | None,
        code: str,
    ) -> None:
        result = run_update_location(
            UpdateLocationInput(uuid4(), longitude=lon, latitude=lat), service=service
        )

        assert result.success is False
        assert [e.code for e in result.errors] == [code]
