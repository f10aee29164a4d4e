"""Earnings and rating projection schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel
from services.bookings_service.services.earnings import (
    EarningsSummary,
    RatingSummary,
)


class MonthlyEarningsResponse(BaseModel):
    year: int
    month: int
    earnings: Decimal
    fees: Decimal
    net: Decimal
    sessions: int


class EarningsSummaryResponse(BaseModel):
    trainer_id: str
    currency: str
    total_earnings: Decimal
    total_fees: Decimal
    net_earnings: Decimal
    sessions: int
    monthly: list[MonthlyEarningsResponse]

    @classmethod
    def from_summary(
        cls, trainer_id: str, summary: EarningsSummary
    ) -> "EarningsSummaryResponse":
        return cls(
            trainer_id=trainer_id,
            currency=summary.currency,
            total_earnings=summary.total_earnings.amount,
            total_fees=summary.total_fees.amount,
            net_earnings=summary.net_earnings.amount,
            sessions=summary.sessions,
            monthly=[
                MonthlyEarningsResponse(
                    year=group.year,
                    month=group.month,
                    earnings=group.earnings.amount,
                    fees=group.fees.amount,
                    net=group.net.amount,
                    sessions=group.sessions,
                )
                for group in summary.monthly
            ],
        )


class RatingBucketResponse(BaseModel):
    stars: int
    count: int
    percentage: int


class RatingSummaryResponse(BaseModel):
    trainer_id: str
    average_rating: Optional[float] = None
    total_reviews: int
    distribution: list[RatingBucketResponse]

    @classmethod
    def from_summary(cls, summary: RatingSummary) -> "RatingSummaryResponse":
        return cls(
            trainer_id=summary.user_id,
            average_rating=(
                float(summary.average) if summary.average is not None else None
            ),
            total_reviews=summary.total_reviews,
            distribution=[
                RatingBucketResponse(
                    stars=bucket.stars,
                    count=bucket.count,
                    percentage=bucket.percentage,
                )
                for bucket in summary.distribution
            ],
        )
