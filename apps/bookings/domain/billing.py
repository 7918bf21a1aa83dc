"""
Overstay Billing

Extra charge for drivers who stay longer than they booked. Overstay is
billed per started hour at a premium over the lot's hourly price:

    overstay_minutes = elapsed - duration * 60
    overstay_hours   = ceil(overstay_minutes / 60)
    overstay_rate    = price_per_hour * 1.5
    overstay_charge  = overstay_hours * overstay_rate
"""

from dataclasses import dataclass
from decimal import Decimal

OVERSTAY_RATE_MULTIPLIER = Decimal('1.5')


@dataclass(frozen=True)
class OverstayCharge:
    """Result of billing an overstay"""
    minutes: int
    hours: int
    rate: Decimal
    amount: Decimal


def booked_minutes(duration_hours: int) -> int:
    return duration_hours * 60


def calculate_overstay(
    elapsed_minutes: int,
    duration_hours: int,
    price_per_hour: Decimal,
    multiplier: Decimal = OVERSTAY_RATE_MULTIPLIER,
) -> OverstayCharge | None:
    """
    Bill the time spent beyond the booked duration

    Returns None when the driver left on time. A partial hour is billed
    as a full hour.
    """
    overstay_minutes = elapsed_minutes - booked_minutes(duration_hours)
    if overstay_minutes <= 0:
        return None

    overstay_hours = -(-overstay_minutes // 60)
    rate = Decimal(price_per_hour) * Decimal(multiplier)

    return OverstayCharge(
        minutes=overstay_minutes,
        hours=overstay_hours,
        rate=rate,
        amount=rate * overstay_hours,
    )
