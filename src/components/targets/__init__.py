"""
Targets component - ordered content-kind resolution.
"""

from ._impl import (
    DEFAULT_PUBLIC_HOST,
    BusinessProfileStrategy,
    CustomLinkStrategy,
    InMemoryBusinessProfileRepo,
    InMemoryPageRepo,
    InMemoryWidgetRepo,
    PageStrategy,
    TargetResolver,
    build_public_url,
    create_target_resolver,
)
from .component import ResolveTargetInput, ResolveTargetOutput, run_resolve
from .models import ResolvedTarget
from .ports import TargetStrategyPort

__all__ = [
    # Entry points
    "run_resolve",
    "ResolveTargetInput",
    "ResolveTargetOutput",
    # Models
    "ResolvedTarget",
    # Resolver
    "DEFAULT_PUBLIC_HOST",
    "BusinessProfileStrategy",
    "CustomLinkStrategy",
    "PageStrategy",
    "TargetResolver",
    "TargetStrategyPort",
    "build_public_url",
    "create_target_resolver",
    # In-memory stores
    "InMemoryBusinessProfileRepo",
    "InMemoryPageRepo",
    "InMemoryWidgetRepo",
]
