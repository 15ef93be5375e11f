"""
Domain errors.

ValidationError — caller's input is wrong, surfaced immediately, never retried.
ConfigurationGap — reference data is missing a row; pricing falls back and flags
    the quote as degraded instead of failing.
StoreError — backing store failed; returned (not raised) by every store.
"""

from __future__ import annotations

from dataclasses import dataclass


class InkquoteError(Exception):
    """Base for all inkquote exceptions."""


@dataclass(frozen=True, slots=True)
class ValidationError(InkquoteError):
    message: str
    field: str | None = None

    def __str__(self) -> str:
        if self.field is None:
            return self.message
        return f"{self.field}: {self.message}"


# ═══════════════════════════════════════════════════════════════════════════════
# Configuration Gaps
# ═══════════════════════════════════════════════════════════════════════════════


class ConfigurationGap(InkquoteError):
    """Reference data has no row for a lookup that should always succeed."""


@dataclass(frozen=True, slots=True)
class TierNotFoundError(ConfigurationGap):
    family_id: str
    quantity: int

    def __str__(self) -> str:
        return f"no quantity tier in family {self.family_id} covers {self.quantity}"


@dataclass(frozen=True, slots=True)
class PrintRateNotFoundError(ConfigurationGap):
    tier_id: str
    num_colors: int

    def __str__(self) -> str:
        return f"no print rate for tier {self.tier_id} at {self.num_colors} color(s)"


# ═══════════════════════════════════════════════════════════════════════════════
# Store Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


__all__ = (
    "InkquoteError",
    "ValidationError",
    "ConfigurationGap",
    "TierNotFoundError",
    "PrintRateNotFoundError",
    "StoreError",
)
