"""
Discount codes — resolved to the single flat discount a quote accepts.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal
from enum import StrEnum

from inkquote._errors import ValidationError
from inkquote._types import Result, Ok, Error, Money, ZERO, HUNDRED, round2, percent_of


class DiscountKind(StrEnum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True, slots=True)
class DiscountCode:
    code: str
    kind: DiscountKind
    value: Decimal
    active: bool = True
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def amount_for(self, subtotal: Money, now: datetime | None = None) -> Result[Money, ValidationError]:
        """
        Flat amount this code takes off subtotal.

        percentage: round2(subtotal × value/100)
        fixed: value, capped at subtotal
        """
        now = now if now is not None else datetime.now(UTC)
        if not self.active:
            return Error(ValidationError("discount code is no longer active", "discount_code"))
        if self.is_expired(now):
            return Error(ValidationError("discount code has expired", "discount_code"))

        match self.kind:
            case DiscountKind.PERCENTAGE:
                if not ZERO < self.value <= HUNDRED:
                    return Error(ValidationError("percentage must be in (0, 100]", "discount_code"))
                return Ok(round2(percent_of(subtotal, self.value)))
            case DiscountKind.FIXED:
                if self.value < ZERO:
                    return Error(ValidationError("fixed discount cannot be negative", "discount_code"))
                return Ok(min(self.value, subtotal))


type DiscountCodes = Mapping[str, DiscountCode]
"""Codes keyed by their normalized form."""


def normalize_code(code: str) -> str:
    return code.strip().upper()


def discount_for(
    codes: DiscountCodes,
    code: str,
    subtotal: Money,
    now: datetime | None = None,
) -> Result[Money, ValidationError]:
    """Resolve a shopper-entered code to the flat amount it takes off subtotal."""
    found = codes.get(normalize_code(code))
    if found is None:
        return Error(ValidationError("invalid discount code", "discount_code"))
    return found.amount_for(subtotal, now)


__all__ = ("DiscountKind", "DiscountCode", "DiscountCodes", "normalize_code", "discount_for")
