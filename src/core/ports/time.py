"""
Time provider interface.

All timestamps are UTC. Reporting windows are computed from an injected
``now`` so date-boundary behaviour can be tested without the wall clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...
