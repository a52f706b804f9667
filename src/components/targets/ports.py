"""
Target resolution port definitions.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.core.ports.db import BusinessProfileRepoPort, PageRepoPort, WidgetRepoPort

from .models import ResolvedTarget


class TargetStrategyPort(Protocol):
    """One content kind in the resolver chain."""

    name: str

    def try_resolve(self, target_id: UUID) -> ResolvedTarget | None:
        """Resolved metadata if this kind owns ``target_id``, else None."""
        ...


__all__ = [
    "BusinessProfileRepoPort",
    "PageRepoPort",
    "TargetStrategyPort",
    "WidgetRepoPort",
]
