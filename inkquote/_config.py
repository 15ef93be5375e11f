"""
Settings — externally configured numbers the engine must not hard-code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta
from decimal import Decimal

from inkquote._errors import ValidationError

ENV_PREFIX = "INKQUOTE_"


def _env(name: str, default: str) -> str:
    return os.environ.get(ENV_PREFIX + name, default)


# ═══════════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Engine configuration.

    Fluent builder pattern — chain methods to override.

    Example:
        settings = (
            Settings.from_env()
            .with_min_quantity(12)
            .with_deposit_percent(30)
        )

    Note: Immutable — each method returns new Settings.
    Fallback values price a quote when a tier or print-rate row is missing.
    """

    min_quantity: int = 24
    deposit_percent: Decimal = Decimal("50")
    fallback_markup_percent: Decimal = Decimal("50")
    fallback_rate_per_color: Decimal = Decimal("0.50")
    fallback_setup_fee_per_screen: Decimal = Decimal("25.00")
    pending_ttl: timedelta = timedelta(hours=24)
    database_url: str = "sqlite+aiosqlite:///inkquote.db"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.min_quantity < 1:
            raise ValidationError("must be at least 1", "min_quantity")
        if not Decimal("0") <= self.deposit_percent <= Decimal("100"):
            raise ValidationError("must be between 0 and 100", "deposit_percent")

    @classmethod
    def from_env(cls) -> Settings:
        """Read INKQUOTE_* variables; unset ones keep their defaults."""
        defaults = cls()
        return cls(
            min_quantity=int(_env("MIN_QUANTITY", str(defaults.min_quantity))),
            deposit_percent=Decimal(_env("DEPOSIT_PERCENT", str(defaults.deposit_percent))),
            fallback_markup_percent=Decimal(
                _env("FALLBACK_MARKUP_PERCENT", str(defaults.fallback_markup_percent))
            ),
            fallback_rate_per_color=Decimal(
                _env("FALLBACK_RATE_PER_COLOR", str(defaults.fallback_rate_per_color))
            ),
            fallback_setup_fee_per_screen=Decimal(
                _env("FALLBACK_SETUP_FEE", str(defaults.fallback_setup_fee_per_screen))
            ),
            pending_ttl=timedelta(
                hours=float(_env("PENDING_TTL_HOURS", str(defaults.pending_ttl.total_seconds() / 3600)))
            ),
            database_url=_env("DATABASE_URL", defaults.database_url),
            log_level=_env("LOG_LEVEL", defaults.log_level),
        )

    def with_min_quantity(self, quantity: int) -> Settings:
        return replace(self, min_quantity=quantity)

    def with_deposit_percent(self, percent: Decimal | int) -> Settings:
        return replace(self, deposit_percent=Decimal(percent))

    def with_fallback(
        self,
        *,
        markup_percent: Decimal | int | None = None,
        rate_per_color: Decimal | None = None,
        setup_fee_per_screen: Decimal | None = None,
    ) -> Settings:
        """
        Override fallback pricing.

        Example:
            .with_fallback(markup_percent=60, setup_fee_per_screen=Decimal("20"))
        """
        return replace(
            self,
            fallback_markup_percent=(
                Decimal(markup_percent) if markup_percent is not None else self.fallback_markup_percent
            ),
            fallback_rate_per_color=(
                rate_per_color if rate_per_color is not None else self.fallback_rate_per_color
            ),
            fallback_setup_fee_per_screen=(
                setup_fee_per_screen
                if setup_fee_per_screen is not None
                else self.fallback_setup_fee_per_screen
            ),
        )

    def with_pending_ttl(self, *, hours: float) -> Settings:
        return replace(self, pending_ttl=timedelta(hours=hours))

    def with_database_url(self, url: str) -> Settings:
        return replace(self, database_url=url)


__all__ = ("ENV_PREFIX", "Settings")
