"""
Targets component - opaque content id to owner/display metadata.

Invariants:
- Lookup order is page, business profile, custom-link widget; first hit wins
- A miss is an outcome (``target_not_found``), never an exception
- Results are never cached across calls
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from ._impl import TargetResolver
from .models import ResolvedTarget


@dataclass(frozen=True)
class ResolveTargetInput:
    target_id: UUID


@dataclass(frozen=True)
class ResolveTargetOutput:
    target: ResolvedTarget | None
    errors: list[str] = field(default_factory=list)
    success: bool = True


def run_resolve(inp: ResolveTargetInput, *, resolver: TargetResolver) -> ResolveTargetOutput:
    """Resolve a target id through the resolver chain."""
    target = resolver.resolve(inp.target_id)
    if target is None:
        return ResolveTargetOutput(target=None, errors=["target_not_found"], success=False)
    return ResolveTargetOutput(target=target)
