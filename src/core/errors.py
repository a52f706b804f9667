"""
Shared error records and codes.

Validation and not-found outcomes are returned as data inside component
output records; only store failures are raised (see src.core.ports.db).
"""

from __future__ import annotations

from dataclasses import dataclass

TARGET_NOT_FOUND = "target_not_found"
OWNER_NOT_FOUND = "owner_not_found"

NOT_FOUND_CODES = frozenset({TARGET_NOT_FOUND, OWNER_NOT_FOUND})


@dataclass(frozen=True)
class AnalyticsValidationError:
    """Field-level validation or resolution error."""

    code: str
    message: str
    field_name: str | None = None


def has_not_found(errors: list[AnalyticsValidationError]) -> bool:
    return any(e.code in NOT_FOUND_CODES for e in errors)
