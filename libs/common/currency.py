"""Money value type for AirTrainr.

Internal storage unit: minor units (cents for USD/CAD), kept as integers.
Domain unit: ``Money`` (Decimal amount + ISO currency code).
API / display unit: Decimal string with the currency's precision ("80.00").

Rounding
--------
Every amount is quantized to the currency's minor unit with round-half-to-even,
so fee splits across many bookings do not drift in one direction.

    Money("80", "USD").multiply(Decimal("0.15"))  → Money("12.00", "USD")
    Money("0.05", "USD").multiply(Decimal("0.5")) → Money("0.02", "USD")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Union

# ─── constants ───────────────────────────────────────────────────────────────

DEFAULT_MINOR_UNIT_DIGITS: int = 2
MINOR_UNIT_DIGITS: dict[str, int] = {
    "USD": 2,
    "CAD": 2,
    "EUR": 2,
    "GBP": 2,
    "JPY": 0,
}

AmountLike = Union[Decimal, int, str]


class CurrencyMismatchError(ValueError):
    """Raised when combining amounts in different currencies."""


# ─── helpers ─────────────────────────────────────────────────────────────────


def minor_unit_digits(currency: str) -> int:
    return MINOR_UNIT_DIGITS.get(currency.upper(), DEFAULT_MINOR_UNIT_DIGITS)


def quantize_minor(value: Decimal, currency: str) -> Decimal:
    """Round half-to-even at the currency's minor-unit precision."""
    exponent = Decimal(1).scaleb(-minor_unit_digits(currency))
    return value.quantize(exponent, rounding=ROUND_HALF_EVEN)


def _to_decimal(value: AmountLike) -> Decimal:
    if isinstance(value, float):
        raise TypeError("Money amounts must not be floats; pass Decimal or str")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


# ─── value type ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str

    def __init__(self, amount: AmountLike, currency: str) -> None:
        code = currency.upper()
        object.__setattr__(self, "currency", code)
        object.__setattr__(self, "amount", quantize_minor(_to_decimal(amount), code))

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(0, currency)

    @classmethod
    def from_minor_units(cls, units: int, currency: str) -> Money:
        """Build from integer minor units. 8000 cents → $80.00."""
        return cls(Decimal(units).scaleb(-minor_unit_digits(currency)), currency)

    @property
    def minor_units(self) -> int:
        return int(self.amount.scaleb(minor_unit_digits(self.currency)))

    def multiply(self, factor: AmountLike) -> Money:
        """Multiply by a factor, rounding half-to-even at the minor unit."""
        return Money(self.amount * _to_decimal(factor), self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def _check(self, other: object) -> Money:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot combine Money with {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(
                f"Currency mismatch: {self.currency} vs {other.currency}"
            )
        return other

    def __add__(self, other: Money) -> Money:
        other = self._check(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        other = self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __lt__(self, other: Money) -> bool:
        return self.amount < self._check(other).amount

    def __le__(self, other: Money) -> bool:
        return self.amount <= self._check(other).amount

    def __gt__(self, other: Money) -> bool:
        return self.amount > self._check(other).amount

    def __ge__(self, other: Money) -> bool:
        return self.amount >= self._check(other).amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


def sum_money(values: list[Money], currency: str) -> Money:
    """Sum a list of Money values, returning zero for an empty list."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
