"""Settlement: split a booking's price into platform fee and trainer net.

The split is a pure function of the price and a fee policy. It is computed
once, at completion, and frozen on the booking.

Fee policies (``PLATFORM_FEE_POLICY``):
    percentage            fee = price × rate
    flat_plus_percentage  fee = flat + price × rate
    tiered                fee = price × rate of the first tier whose upper
                          bound is ≥ price (last tier may be unbounded)

Every fee is rounded half-to-even at the currency's minor unit, then clamped
into [0, price], so ``net_amount + platform_fee == price`` always holds.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Protocol, Sequence, Union

from libs.common.config import Settings, get_settings
from libs.common.currency import Money
from services.bookings_service.errors import AlreadySettled
from services.bookings_service.models import Booking

# ---------------------------------------------------------------------------
# Fee policies
# ---------------------------------------------------------------------------


class FeePolicy(Protocol):
    def fee_for(self, price: Money) -> Money: ...


@dataclass(frozen=True)
class PercentageFeePolicy:
    rate: Decimal

    def fee_for(self, price: Money) -> Money:
        return price.multiply(self.rate)


@dataclass(frozen=True)
class FlatPlusPercentageFeePolicy:
    flat: Decimal
    rate: Decimal

    def fee_for(self, price: Money) -> Money:
        return Money(self.flat, price.currency) + price.multiply(self.rate)


@dataclass(frozen=True)
class FeeTier:
    up_to: Optional[Decimal]  # None = unbounded
    rate: Decimal


@dataclass(frozen=True)
class TieredFeePolicy:
    tiers: tuple[FeeTier, ...]

    def __post_init__(self):
        if not self.tiers:
            raise ValueError("Tiered fee policy needs at least one tier")

    def fee_for(self, price: Money) -> Money:
        for tier in self.tiers:
            if tier.up_to is None or price.amount <= tier.up_to:
                return price.multiply(tier.rate)
        # Price above every bounded tier falls into the last one
        return price.multiply(self.tiers[-1].rate)


def fee_policy_from_settings(settings: Optional[Settings] = None) -> FeePolicy:
    """Build the configured platform fee policy."""
    settings = settings or get_settings()
    if settings.PLATFORM_FEE_POLICY == "flat_plus_percentage":
        return FlatPlusPercentageFeePolicy(
            flat=settings.PLATFORM_FEE_FLAT, rate=settings.PLATFORM_FEE_RATE
        )
    if settings.PLATFORM_FEE_POLICY == "tiered":
        return tiers_from_pairs(settings.PLATFORM_FEE_TIERS)
    return PercentageFeePolicy(rate=settings.PLATFORM_FEE_RATE)


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settlement:
    platform_fee: Money
    net_amount: Money


def split_price(price: Money, policy: FeePolicy) -> Settlement:
    """Compute the fee/net split for ``price`` under ``policy``."""
    fee = policy.fee_for(price)
    zero = Money.zero(price.currency)
    if fee < zero:
        fee = zero
    if fee > price:
        fee = price
    return Settlement(platform_fee=fee, net_amount=price - fee)


def settle(booking: Booking, policy: FeePolicy) -> Settlement:
    """Settle a booking exactly once.

    Raises:
        AlreadySettled: the booking already carries a fee/net split.
    """
    if booking.is_settled:
        raise AlreadySettled()
    return split_price(booking.price, policy)


# ---------------------------------------------------------------------------
# Payout hold
# ---------------------------------------------------------------------------


def payout_hold_until(
    completed_at: datetime,
    completed_sessions: int,
    settings: Optional[Settings] = None,
) -> datetime:
    """When the trainer's earnings for a completion become payable.

    Newer trainers (fewer than ``ESTABLISHED_TRAINER_THRESHOLD`` completed
    sessions) get the longer hold.
    """
    settings = settings or get_settings()
    if completed_sessions < settings.ESTABLISHED_TRAINER_THRESHOLD:
        hours = settings.PAYOUT_HOLD_HOURS_NEW_TRAINER
    else:
        hours = settings.PAYOUT_HOLD_HOURS_ESTABLISHED_TRAINER
    return completed_at + timedelta(hours=hours)


def tiers_from_pairs(
    pairs: Sequence[tuple[Optional[Union[Decimal, int, str]], Union[Decimal, str]]],
) -> TieredFeePolicy:
    """Build a tiered policy from pairs like ``[(100, "0.10"), (None, "0.05")]``."""
    return TieredFeePolicy(
        tiers=tuple(
            FeeTier(
                up_to=Decimal(str(up_to)) if up_to is not None else None,
                rate=Decimal(str(rate)),
            )
            for up_to, rate in pairs
        )
    )
