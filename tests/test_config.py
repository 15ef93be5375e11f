from datetime import timedelta
from decimal import Decimal

import pytest

from inkquote import Settings, ValidationError


def test_defaults() -> None:
    settings = Settings()

    assert settings.min_quantity == 24
    assert settings.deposit_percent == Decimal("50")
    assert settings.pending_ttl == timedelta(hours=24)
    assert settings.database_url == "sqlite+aiosqlite:///inkquote.db"


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv("INKQUOTE_MIN_QUANTITY", "12")
    monkeypatch.setenv("INKQUOTE_DEPOSIT_PERCENT", "30")
    monkeypatch.setenv("INKQUOTE_FALLBACK_SETUP_FEE", "15.00")
    monkeypatch.setenv("INKQUOTE_PENDING_TTL_HOURS", "2")

    settings = Settings.from_env()

    assert settings.min_quantity == 12
    assert settings.deposit_percent == Decimal("30")
    assert settings.fallback_setup_fee_per_screen == Decimal("15.00")
    assert settings.pending_ttl == timedelta(hours=2)
    assert settings.fallback_markup_percent == Decimal("50")


def test_fluent_overrides_return_new_settings() -> None:
    base = Settings()

    changed = base.with_min_quantity(6).with_deposit_percent(25).with_fallback(markup_percent=70)

    assert base.min_quantity == 24
    assert (changed.min_quantity, changed.deposit_percent) == (6, Decimal("25"))
    assert changed.fallback_markup_percent == Decimal("70")
    assert changed.fallback_rate_per_color == base.fallback_rate_per_color


@pytest.mark.parametrize("kwargs", [{"min_quantity": 0}, {"deposit_percent": Decimal("101")}])
def test_invalid_values_rejected(kwargs) -> None:
    with pytest.raises(ValidationError):
        Settings(**kwargs)
