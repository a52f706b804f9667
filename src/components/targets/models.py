"""
Target resolution models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.core.entities import TargetKind


@dataclass(frozen=True)
class ResolvedTarget:
    """
    Normalised owner/display metadata for a content id.

    Built per request and never cached; the underlying content may change
    between calls.
    """

    target_id: UUID
    kind: TargetKind
    owner_id: UUID
    title: str
    thumbnail: str
    url: str
    business_id: UUID | None = None
