"""
SQLite store adapters for the interaction analytics engine.

Implements the store ports in src.core.ports.db. Timestamps are persisted as
UTC ISO-8601 strings with fixed microsecond precision so lexical ordering
matches chronological ordering.

Uniqueness of clicks and daily views is enforced by partial unique indexes
(see migrations/001_interaction_events.sql); a rejected insert surfaces as
DuplicateInteractionError. Any other sqlite3 failure surfaces as StoreError.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from src.core.entities import (
    ActorLocation,
    BusinessProfile,
    InteractionEvent,
    Page,
    TargetKind,
    Widget,
)
from src.core.ports.db import DuplicateInteractionError, EventQuery, StoreError

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def format_ts(dt: datetime) -> str:
    """Normalise to a sortable UTC ISO string. Naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def parse_ts(s: str) -> datetime:
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def parse_uuid(s: str | None) -> UUID | None:
    """Parse UUID string."""
    return UUID(s) if s else None


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def _open(self) -> sqlite3.Connection:
        try:
            return self._get_conn()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    @contextmanager
    def _connection(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Yield a connection, translating sqlite3 failures into StoreError.

        Owned connections are committed (for writes) and closed on exit.
        """
        conn = self._open()
        try:
            yield conn
            if write and self._should_close():
                conn.commit()
        except sqlite3.Error as e:
            if write and self._should_close():
                conn.rollback()
            raise StoreError(str(e)) from e
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Interaction Event Store
# -----------------------------------------------------------------------------


class SQLiteInteractionEventRepo(SQLiteRepoBase):
    """SQLite implementation of EventStorePort."""

    def append(self, event: InteractionEvent) -> InteractionEvent:
        view_day = event.timestamp.astimezone(UTC).date().isoformat() if event.is_view else None
        conn = self._open()
        try:
            conn.execute(
                """
                INSERT INTO interaction_events (
                    id, actor_id, target_id, target_kind, owner_id,
                    longitude, latitude, timestamp, view_day,
                    session_id, user_agent, referrer,
                    target_url, target_title, target_thumbnail, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(event.id),
                    str(event.actor_id),
                    str(event.target_id),
                    event.target_kind.value,
                    str(event.owner_id),
                    event.longitude,
                    event.latitude,
                    format_ts(event.timestamp),
                    view_day,
                    event.session_id,
                    event.user_agent,
                    event.referrer,
                    event.target_url,
                    event.target_title,
                    event.target_thumbnail,
                    format_ts(event.created_at),
                ),
            )
            if self._should_close():
                conn.commit()
            return event
        except sqlite3.IntegrityError as e:
            if self._should_close():
                conn.rollback()
            raise DuplicateInteractionError(
                event.actor_id, event.target_id, event.target_kind
            ) from e
        except sqlite3.Error as e:
            if self._should_close():
                conn.rollback()
            raise StoreError(str(e)) from e
        finally:
            if self._should_close():
                conn.close()

    def find_click(
        self, actor_id: UUID, target_id: UUID, kind: TargetKind
    ) -> InteractionEvent | None:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM interaction_events
                WHERE actor_id = ? AND target_id = ? AND target_kind = ?
                LIMIT 1
                """,
                (str(actor_id), str(target_id), kind.value),
            ).fetchone()
            return self._map_row(row) if row else None

    def find_view(
        self, actor_id: UUID, target_id: UUID, start: datetime, end: datetime
    ) -> InteractionEvent | None:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM interaction_events
                WHERE actor_id = ? AND target_id = ? AND target_kind = ?
                  AND timestamp >= ? AND timestamp < ?
                LIMIT 1
                """,
                (
                    str(actor_id),
                    str(target_id),
                    TargetKind.VIEW.value,
                    format_ts(start),
                    format_ts(end),
                ),
            ).fetchone()
            return self._map_row(row) if row else None

    def query(self, query: EventQuery) -> list[InteractionEvent]:
        where, params = self._build_where(query)
        sql = f"SELECT * FROM interaction_events{where}"
        sql += " ORDER BY timestamp DESC" if query.newest_first else " ORDER BY timestamp ASC"
        if query.limit is not None:
            sql += " LIMIT ?"
            params.append(query.limit)
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._map_row(r) for r in rows]

    def count(self, query: EventQuery) -> int:
        where, params = self._build_where(query)
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS n FROM interaction_events{where}", params
            ).fetchone()
            return int(row["n"]) if row else 0

    def distinct_actors(self, query: EventQuery) -> set[UUID]:
        where, params = self._build_where(query)
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT DISTINCT actor_id FROM interaction_events{where}", params
            ).fetchall()
            return {UUID(r["actor_id"]) for r in rows}

    def _build_where(self, query: EventQuery) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        if query.owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(str(query.owner_id))
        if query.target_id is not None:
            clauses.append("target_id = ?")
            params.append(str(query.target_id))
        if query.actor_id is not None:
            clauses.append("actor_id = ?")
            params.append(str(query.actor_id))
        if query.kinds is not None:
            kinds = sorted(k.value for k in query.kinds)
            if not kinds:
                clauses.append("0")
            else:
                clauses.append(f"target_kind IN ({', '.join('?' for _ in kinds)})")
                params.extend(kinds)
        if query.actor_ids is not None:
            actors = sorted(str(a) for a in query.actor_ids)
            if not actors:
                clauses.append("0")
            else:
                clauses.append(f"actor_id IN ({', '.join('?' for _ in actors)})")
                params.extend(actors)
        if query.start is not None:
            clauses.append("timestamp >= ?")
            params.append(format_ts(query.start))
        if query.end is not None:
            clauses.append("timestamp <= ?")
            params.append(format_ts(query.end))
        if query.before is not None:
            clauses.append("timestamp < ?")
            params.append(format_ts(query.before))

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _map_row(self, row: dict[str, Any]) -> InteractionEvent:
        return InteractionEvent(
            id=UUID(row["id"]),
            actor_id=UUID(row["actor_id"]),
            target_id=UUID(row["target_id"]),
            target_kind=TargetKind(row["target_kind"]),
            owner_id=UUID(row["owner_id"]),
            longitude=row["longitude"],
            latitude=row["latitude"],
            timestamp=parse_ts(row["timestamp"]),
            session_id=row["session_id"],
            user_agent=row["user_agent"],
            referrer=row["referrer"],
            target_url=row["target_url"] or "",
            target_title=row["target_title"] or "",
            target_thumbnail=row["target_thumbnail"] or "",
            created_at=parse_ts(row["created_at"]),
        )


# -----------------------------------------------------------------------------
# Content Repositories
# -----------------------------------------------------------------------------


class _ViewCounterMixin:
    """Atomic ``view_count = view_count + 1`` on a content table."""

    _table: str

    def increment_view_count(self, entity_id: UUID) -> None:
        with self._connection(write=True) as conn:  # type: ignore[attr-defined]
            conn.execute(
                f"UPDATE {self._table} SET view_count = view_count + 1 WHERE id = ?",
                (str(entity_id),),
            )


class SQLitePageRepo(_ViewCounterMixin, SQLiteRepoBase):
    _table = "pages"

    def get_by_id(self, page_id: UUID) -> Page | None:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM pages WHERE id = ?", (str(page_id),)).fetchone()
            return self._map_row(row) if row else None

    def save(self, page: Page) -> Page:
        with self._connection(write=True) as conn:
            conn.execute(
                """
                INSERT INTO pages (id, owner_id, business_id, title, slug, cover, logo, view_count)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    owner_id=excluded.owner_id,
                    business_id=excluded.business_id,
                    title=excluded.title,
                    slug=excluded.slug,
                    cover=excluded.cover,
                    logo=excluded.logo,
                    view_count=excluded.view_count
                """,
                (
                    str(page.id),
                    str(page.owner_id),
                    str(page.business_id) if page.business_id else None,
                    page.title,
                    page.slug,
                    page.cover,
                    page.logo,
                    page.view_count,
                ),
            )
        return page

    def _map_row(self, row: dict[str, Any]) -> Page:
        return Page(
            id=UUID(row["id"]),
            owner_id=UUID(row["owner_id"]),
            business_id=parse_uuid(row["business_id"]),
            title=row["title"],
            slug=row["slug"],
            cover=row["cover"],
            logo=row["logo"],
            view_count=row["view_count"],
        )


class SQLiteBusinessProfileRepo(_ViewCounterMixin, SQLiteRepoBase):
    _table = "business_profiles"

    def get_by_id(self, profile_id: UUID) -> BusinessProfile | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM business_profiles WHERE id = ?", (str(profile_id),)
            ).fetchone()
            return self._map_row(row) if row else None

    def save(self, profile: BusinessProfile) -> BusinessProfile:
        with self._connection(write=True) as conn:
            conn.execute(
                """
                INSERT INTO business_profiles (
                    id, owner_id, business_name, username, cover_image, logo, view_count
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    owner_id=excluded.owner_id,
                    business_name=excluded.business_name,
                    username=excluded.username,
                    cover_image=excluded.cover_image,
                    logo=excluded.logo,
                    view_count=excluded.view_count
                """,
                (
                    str(profile.id),
                    str(profile.owner_id),
                    profile.business_name,
                    profile.username,
                    profile.cover_image,
                    profile.logo,
                    profile.view_count,
                ),
            )
        return profile

    def _map_row(self, row: dict[str, Any]) -> BusinessProfile:
        return BusinessProfile(
            id=UUID(row["id"]),
            owner_id=UUID(row["owner_id"]),
            business_name=row["business_name"],
            username=row["username"],
            cover_image=row["cover_image"],
            logo=row["logo"],
            view_count=row["view_count"],
        )


class SQLiteWidgetRepo(_ViewCounterMixin, SQLiteRepoBase):
    _table = "widgets"

    def get_by_id(self, widget_id: UUID) -> Widget | None:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM widgets WHERE id = ?", (str(widget_id),)).fetchone()
            return self._map_row(row) if row else None

    def list_by_owner(self, owner_id: UUID, kind: str | None = None) -> list[Widget]:
        sql = "SELECT * FROM widgets WHERE owner_id = ?"
        params: list[Any] = [str(owner_id)]
        if kind is not None:
            sql += " AND kind = ?"
            params.append(kind)
        with self._connection() as conn:
            return [self._map_row(r) for r in conn.execute(sql, params).fetchall()]

    def save(self, widget: Widget) -> Widget:
        with self._connection(write=True) as conn:
            conn.execute(
                """
                INSERT INTO widgets (
                    id, owner_id, page_id, name, kind, category, settings_json, view_count
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    owner_id=excluded.owner_id,
                    page_id=excluded.page_id,
                    name=excluded.name,
                    kind=excluded.kind,
                    category=excluded.category,
                    settings_json=excluded.settings_json,
                    view_count=excluded.view_count
                """,
                (
                    str(widget.id),
                    str(widget.owner_id),
                    str(widget.page_id) if widget.page_id else None,
                    widget.name,
                    widget.kind,
                    widget.category,
                    json.dumps(widget.settings),
                    widget.view_count,
                ),
            )
        return widget

    def _map_row(self, row: dict[str, Any]) -> Widget:
        return Widget(
            id=UUID(row["id"]),
            owner_id=UUID(row["owner_id"]),
            page_id=parse_uuid(row["page_id"]),
            name=row["name"],
            kind=row["kind"],
            category=row["category"],
            settings=json.loads(row["settings_json"] or "{}"),
            view_count=row["view_count"],
        )


# -----------------------------------------------------------------------------
# Actor Location Repository
# -----------------------------------------------------------------------------


class SQLiteActorLocationRepo(SQLiteRepoBase):
    """SQLite implementation of ActorLocationRepoPort."""

    def get(self, actor_id: UUID) -> ActorLocation | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM actor_locations WHERE actor_id = ?", (str(actor_id),)
            ).fetchone()
            if not row:
                return None
            return ActorLocation(
                actor_id=UUID(row["actor_id"]),
                longitude=row["longitude"],
                latitude=row["latitude"],
                city=row["city"],
                address=row["address"],
                updated_at=parse_ts(row["updated_at"]),
            )

    def save(self, location: ActorLocation) -> ActorLocation:
        with self._connection(write=True) as conn:
            conn.execute(
                """
                INSERT INTO actor_locations (
                    actor_id, longitude, latitude, city, address, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(actor_id) DO UPDATE SET
                    longitude=excluded.longitude,
                    latitude=excluded.latitude,
                    city=excluded.city,
                    address=excluded.address,
                    updated_at=excluded.updated_at
                """,
                (
                    str(location.actor_id),
                    location.longitude,
                    location.latitude,
                    location.city,
                    location.address,
                    format_ts(location.updated_at),
                ),
            )
        return location
