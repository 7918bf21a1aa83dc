"""
Booking Lifecycle

The booking state is a tagged variant rather than a status string with
loose flags. Each variant carries only what makes sense in that state:

    Pending
    Confirmed(arrived)
    Active(actual_start, arrived, confirmed)
    Completed(actual_start, actual_end, actual_duration, overstay, ...)
    Cancelled
    Expired

Transitions are pure functions. They take the current variant plus the
facts they need (booked window, clock, rules) and either return the next
variant or raise StateError. Nothing is persisted here.

State transitions:
- PENDING/CONFIRMED -> CANCELLED (driver, at least 1 hour before start)
- CONFIRMED -> CONFIRMED(arrived) (driver arrives, up to 30 min early)
- CONFIRMED(arrived) -> ACTIVE (lot owner confirms arrival)
- ACTIVE -> COMPLETED (lot owner, overstay billed)
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Union

from shared.domain.exceptions import StateError, ValidationError
from shared.domain.value_objects import ONE_MINUTE

from .billing import OVERSTAY_RATE_MULTIPLIER, OverstayCharge, booked_minutes, calculate_overstay


class BookingStatus(Enum):
    PENDING = 'pending'          # Waiting for card/wallet payment
    CONFIRMED = 'confirmed'      # Slot reserved
    ACTIVE = 'active'            # Car is on the lot
    COMPLETED = 'completed'      # Car has left
    CANCELLED = 'cancelled'      # Cancelled by the driver
    EXPIRED = 'expired'


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.EXPIRED})
OCCUPYING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.ACTIVE)
OVERRIDABLE_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.ACTIVE,
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
)


@dataclass(frozen=True)
class LifecycleRules:
    """Time and pricing rules the transitions are checked against"""
    arrival_window: timedelta = timedelta(minutes=30)
    cancellation_notice: timedelta = timedelta(hours=1)
    overstay_multiplier: Decimal = OVERSTAY_RATE_MULTIPLIER


DEFAULT_RULES = LifecycleRules()


# ===== States =====

@dataclass(frozen=True)
class Pending:
    status: ClassVar[BookingStatus] = BookingStatus.PENDING


@dataclass(frozen=True)
class Confirmed:
    status: ClassVar[BookingStatus] = BookingStatus.CONFIRMED
    arrived: bool = False
    confirmed: bool = False


@dataclass(frozen=True)
class Active:
    """
    Car is on the lot

    ``actual_start`` is set when the owner confirms the arrival. Bookings
    activated by the periodic sweep have no actual start.
    """
    status: ClassVar[BookingStatus] = BookingStatus.ACTIVE
    actual_start: datetime | None = None
    arrived: bool = False
    confirmed: bool = False


@dataclass(frozen=True)
class Completed:
    status: ClassVar[BookingStatus] = BookingStatus.COMPLETED
    actual_start: datetime | None = None
    actual_end: datetime | None = None
    actual_duration: int | None = None
    overstay: OverstayCharge | None = None
    arrived: bool = False
    confirmed: bool = False


@dataclass(frozen=True)
class Cancelled:
    status: ClassVar[BookingStatus] = BookingStatus.CANCELLED


@dataclass(frozen=True)
class Expired:
    status: ClassVar[BookingStatus] = BookingStatus.EXPIRED


BookingState = Union[Pending, Confirmed, Active, Completed, Cancelled, Expired]


# ===== Derived timers =====

@dataclass(frozen=True)
class Timers:
    """Occupancy timers, recomputed on every read and never stored"""
    elapsed_minutes: int
    remaining_minutes: int
    is_overstayed: bool


def elapsed_minutes(actual_start: datetime, until: datetime) -> int:
    """Whole minutes between two moments, rounded down"""
    return int((until - actual_start) // ONE_MINUTE)


def compute_timers(state: BookingState, duration_hours: int, now: datetime) -> Timers:
    booked = booked_minutes(duration_hours)
    actual_start = getattr(state, 'actual_start', None)
    if actual_start is None:
        return Timers(elapsed_minutes=0, remaining_minutes=booked, is_overstayed=False)

    until = getattr(state, 'actual_end', None) or now
    elapsed = elapsed_minutes(actual_start, until)
    return Timers(
        elapsed_minutes=elapsed,
        remaining_minutes=max(0, booked - elapsed),
        is_overstayed=not isinstance(state, Completed) and elapsed > booked,
    )


# ===== Guards =====

def _ensure_arrival_window(start_time: datetime, now: datetime, rules: LifecycleRules, message: str):
    if start_time > now + rules.arrival_window:
        raise StateError(message, code='too_early')


# ===== Transitions =====

def mark_arrived(
    state: BookingState,
    start_time: datetime,
    now: datetime,
    rules: LifecycleRules = DEFAULT_RULES,
) -> Confirmed:
    """
    Driver reports being at the lot (CONFIRMED -> CONFIRMED(arrived))

    Allowed from 30 minutes before the booked start.
    """
    _ensure_arrival_window(
        start_time, now, rules,
        'Cannot mark as arrived more than 30 minutes before start time',
    )

    if not isinstance(state, Confirmed):
        raise StateError('Can only mark confirmed bookings as arrived', code='invalid_status')

    if state.arrived:
        raise StateError('Booking is already marked as arrived', code='already_arrived')

    return replace(state, arrived=True)


def confirm(
    state: BookingState,
    start_time: datetime,
    now: datetime,
    rules: LifecycleRules = DEFAULT_RULES,
) -> Active:
    """
    Lot owner confirms the driver's arrival (CONFIRMED(arrived) -> ACTIVE)

    The actual occupancy clock starts now.
    """
    if getattr(state, 'confirmed', False):
        raise StateError('Booking is already confirmed', code='already_confirmed')

    if not getattr(state, 'arrived', False):
        raise StateError('Driver must mark as arrived before confirmation', code='not_arrived')

    if not isinstance(state, Confirmed):
        raise StateError('Can only confirm bookings with confirmed status', code='invalid_status')

    _ensure_arrival_window(
        start_time, now, rules,
        'Cannot confirm booking more than 30 minutes before start time',
    )

    return Active(actual_start=now, arrived=True, confirmed=True)


def complete(
    state: BookingState,
    duration_hours: int,
    price_per_hour: Decimal,
    now: datetime,
    rules: LifecycleRules = DEFAULT_RULES,
) -> Completed:
    """
    Lot owner checks the car out (ACTIVE -> COMPLETED)

    Records the actual occupancy and bills the overstay, if any.
    """
    if not isinstance(state, Active):
        raise StateError('Can only complete active bookings', code='invalid_status')

    if state.actual_start is None:
        raise StateError('Booking has no recorded actual start time', code='not_started')

    elapsed = elapsed_minutes(state.actual_start, now)
    overstay = None
    if elapsed > booked_minutes(duration_hours):
        overstay = calculate_overstay(elapsed, duration_hours, price_per_hour, rules.overstay_multiplier)

    return Completed(
        actual_start=state.actual_start,
        actual_end=now,
        actual_duration=elapsed,
        overstay=overstay,
        arrived=state.arrived,
        confirmed=state.confirmed,
    )


def cancel(
    state: BookingState,
    start_time: datetime,
    now: datetime,
    rules: LifecycleRules = DEFAULT_RULES,
) -> Cancelled:
    """
    Driver cancels (PENDING/CONFIRMED -> CANCELLED)

    Requires at least one hour of notice before the booked start.
    """
    if start_time - now < rules.cancellation_notice:
        raise StateError(
            'Cannot cancel booking less than 1 hour before start time',
            code='too_late',
        )

    if not isinstance(state, (Pending, Confirmed)):
        raise StateError('Cannot cancel booking in current status', code='invalid_status')

    return Cancelled()


def ensure_extendable(state: BookingState) -> None:
    """Only ACTIVE or CONFIRMED bookings can be extended; the status is kept"""
    if not isinstance(state, (Active, Confirmed)):
        raise StateError('Can only extend active or confirmed bookings', code='invalid_status')


def override_status(
    state: BookingState,
    target: BookingStatus,
    start_time: datetime,
    now: datetime,
    rules: LifecycleRules = DEFAULT_RULES,
) -> BookingState:
    """
    Generic status set, bypassing the arrival/confirmation protocol

    Flags and actual times already recorded are carried over untouched.
    """
    if target not in OVERRIDABLE_STATUSES:
        raise ValidationError('Invalid status', code='invalid_status')

    if target is BookingStatus.ACTIVE:
        _ensure_arrival_window(start_time, now, rules, 'Cannot activate booking too early')

    arrived = getattr(state, 'arrived', False)
    confirmed = getattr(state, 'confirmed', False)
    actual_start = getattr(state, 'actual_start', None)

    if target is BookingStatus.CONFIRMED:
        return Confirmed(arrived=arrived, confirmed=confirmed)
    if target is BookingStatus.ACTIVE:
        return Active(actual_start=actual_start, arrived=arrived, confirmed=confirmed)
    if target is BookingStatus.COMPLETED:
        if isinstance(state, Completed):
            return state
        return Completed(actual_start=actual_start, arrived=arrived, confirmed=confirmed)
    return Cancelled()

