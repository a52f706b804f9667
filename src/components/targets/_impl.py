"""
Target resolver implementation.

Content kinds are independent collections with overlapping id spaces, so
resolution is a flat ordered chain: page, then business profile, then
custom-link widget. The first strategy that recognises the id wins.

Store failures raised by a strategy propagate; only a ``None`` result is a
miss.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from src.core.entities import (
    CUSTOM_LINK_WIDGET_KIND,
    BusinessProfile,
    Page,
    TargetKind,
    Widget,
)

from .models import ResolvedTarget
from .ports import (
    BusinessProfileRepoPort,
    PageRepoPort,
    TargetStrategyPort,
    WidgetRepoPort,
)

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_HOST = "kunex.app"


def build_public_url(host: str, path_part: str) -> str:
    return f"{host.rstrip('/')}/{path_part}"


# --- Strategies ---


class PageStrategy:
    """Builder pages. Carries the parent business id when present."""

    name = "page"

    def __init__(self, pages: PageRepoPort, public_host: str = DEFAULT_PUBLIC_HOST) -> None:
        self._pages = pages
        self._host = public_host

    def try_resolve(self, target_id: UUID) -> ResolvedTarget | None:
        page = self._pages.get_by_id(target_id)
        if page is None:
            return None
        return ResolvedTarget(
            target_id=page.id,
            kind=TargetKind.PAGE,
            owner_id=page.owner_id,
            title=page.title or "Builder Page",
            thumbnail=page.cover or page.logo or "",
            url=build_public_url(self._host, page.slug or str(page.id)),
            business_id=page.business_id,
        )


class BusinessProfileStrategy:
    name = "business_profile"

    def __init__(
        self, profiles: BusinessProfileRepoPort, public_host: str = DEFAULT_PUBLIC_HOST
    ) -> None:
        self._profiles = profiles
        self._host = public_host

    def try_resolve(self, target_id: UUID) -> ResolvedTarget | None:
        profile = self._profiles.get_by_id(target_id)
        if profile is None:
            return None
        return ResolvedTarget(
            target_id=profile.id,
            kind=TargetKind.BUSINESS_PROFILE,
            owner_id=profile.owner_id,
            title=profile.business_name or "Business Profile",
            thumbnail=profile.cover_image or profile.logo or "",
            url=build_public_url(self._host, profile.username or str(profile.id)),
        )


class CustomLinkStrategy:
    """Widgets qualify only when their kind tag is ``custom_link``."""

    name = "custom_link"

    def __init__(self, widgets: WidgetRepoPort) -> None:
        self._widgets = widgets

    def try_resolve(self, target_id: UUID) -> ResolvedTarget | None:
        widget = self._widgets.get_by_id(target_id)
        if widget is None or widget.kind != CUSTOM_LINK_WIDGET_KIND:
            return None

        links = widget.custom_links()
        link: dict[str, Any] = links[0] if links else {}
        return ResolvedTarget(
            target_id=widget.id,
            kind=TargetKind.CUSTOM_LINK,
            owner_id=widget.owner_id,
            title=link.get("title") or widget.name or "Custom Link",
            thumbnail=link.get("image_url") or "",
            url=link.get("url") or "",
        )


# --- Resolver ---


class TargetResolver:
    """Ordered fallback chain over content-kind strategies."""

    def __init__(self, strategies: Sequence[TargetStrategyPort]) -> None:
        self._strategies = tuple(strategies)

    @property
    def order(self) -> tuple[str, ...]:
        return tuple(s.name for s in self._strategies)

    def resolve(self, target_id: UUID) -> ResolvedTarget | None:
        for strategy in self._strategies:
            resolved = strategy.try_resolve(target_id)
            if resolved is not None:
                logger.debug("Resolved %s as %s", target_id, strategy.name)
                return resolved
        logger.debug("No content kind owns %s", target_id)
        return None


def create_target_resolver(
    pages: PageRepoPort,
    profiles: BusinessProfileRepoPort,
    widgets: WidgetRepoPort,
    public_host: str = DEFAULT_PUBLIC_HOST,
) -> TargetResolver:
    """Factory for the standard page -> business profile -> custom link chain."""
    return TargetResolver(
        [
            PageStrategy(pages, public_host),
            BusinessProfileStrategy(profiles, public_host),
            CustomLinkStrategy(widgets),
        ]
    )


# --- In-memory stores (tests / local runs) ---


class InMemoryPageRepo:
    def __init__(self) -> None:
        self.pages: dict[UUID, Page] = {}

    def add(self, page: Page) -> Page:
        self.pages[page.id] = page
        return page

    def get_by_id(self, page_id: UUID) -> Page | None:
        return self.pages.get(page_id)

    def increment_view_count(self, page_id: UUID) -> None:
        page = self.pages.get(page_id)
        if page is not None:
            self.pages[page_id] = page.model_copy(update={"view_count": page.view_count + 1})


class InMemoryBusinessProfileRepo:
    def __init__(self) -> None:
        self.profiles: dict[UUID, BusinessProfile] = {}

    def add(self, profile: BusinessProfile) -> BusinessProfile:
        self.profiles[profile.id] = profile
        return profile

    def get_by_id(self, profile_id: UUID) -> BusinessProfile | None:
        return self.profiles.get(profile_id)

    def increment_view_count(self, profile_id: UUID) -> None:
        profile = self.profiles.get(profile_id)
        if profile is not None:
            self.profiles[profile_id] = profile.model_copy(
                update={"view_count": profile.view_count + 1}
            )


class InMemoryWidgetRepo:
    def __init__(self) -> None:
        self.widgets: dict[UUID, Widget] = {}

    def add(self, widget: Widget) -> Widget:
        self.widgets[widget.id] = widget
        return widget

    def get_by_id(self, widget_id: UUID) -> Widget | None:
        return self.widgets.get(widget_id)

    def list_by_owner(self, owner_id: UUID, kind: str | None = None) -> list[Widget]:
        return [
            w
            for w in self.widgets.values()
            if w.owner_id == owner_id and (kind is None or w.kind == kind)
        ]

    def increment_view_count(self, widget_id: UUID) -> None:
        widget = self.widgets.get(widget_id)
        if widget is not None:
            self.widgets[widget_id] = widget.model_copy(
                update={"view_count": widget.view_count + 1}
            )
