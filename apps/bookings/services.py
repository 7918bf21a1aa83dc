"""Application services for booking workflows.

Every write runs inside ``transaction.atomic()``: the booking row (and,
for creation and extension, the parking lot row) is locked, the
lifecycle transition is computed by ``domain.lifecycle`` and the
resulting fields are saved together. Notifications are emitted after
the write and never roll it back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications import services as notifications
from apps.parkings.models import ParkingLot
from shared.domain.exceptions import (
    DuplicateKeyError,
    ForbiddenError,
    NotFoundError,
    StateError,
    ValidationError,
)
from shared.domain.value_objects import TimeWindow

from .domain import lifecycle
from .domain.availability import Availability
from .domain.lifecycle import OCCUPYING_STATUSES, BookingStatus, LifecycleRules
from .models import Booking

logger = logging.getLogger(__name__)


def lifecycle_rules() -> LifecycleRules:
    """Lifecycle rules as configured in settings."""

    return LifecycleRules(
        arrival_window=timedelta(minutes=settings.BOOKING_ARRIVAL_WINDOW_MINUTES),
        cancellation_notice=timedelta(minutes=settings.BOOKING_CANCELLATION_NOTICE_MINUTES),
        overstay_multiplier=Decimal(str(settings.BOOKING_OVERSTAY_RATE_MULTIPLIER)),
    )


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _lock_parking(parking_id) -> ParkingLot:
    try:
        return _lock_queryset_if_possible(ParkingLot.objects.filter(pk=parking_id)).get()
    except ParkingLot.DoesNotExist:
        raise NotFoundError("Parking not found")


def _lock_booking(booking_id) -> Booking:
    qs = Booking.objects.select_related("parking", "driver").filter(pk=booking_id)
    try:
        return _lock_queryset_if_possible(qs).get()
    except Booking.DoesNotExist:
        raise NotFoundError("Booking not found")


# ===== Availability =====

def count_overlapping_bookings(
    parking: ParkingLot,
    start_time: datetime,
    end_time: datetime,
) -> int:
    """Confirmed or active bookings on the lot intersecting [start_time, end_time)."""

    overlapping_filter = Q(start_time__lt=end_time) & Q(end_time__gt=start_time)
    qs = Booking.objects.filter(
        parking=parking,
        status__in=[status.value for status in OCCUPYING_STATUSES],
    ).filter(overlapping_filter)
    return qs.count()


def availability_for_window(parking: ParkingLot, window: TimeWindow) -> Availability:
    return Availability(
        window=window,
        total_spots=parking.total_spots,
        overlapping=count_overlapping_bookings(parking, window.start, window.end),
    )


def check_availability(parking: ParkingLot, start_time: datetime, duration: int) -> Availability:
    """Free spots on the lot for ``duration`` hours from ``start_time``."""

    if duration < 1:
        raise ValidationError("Duration must be at least 1 hour")
    return availability_for_window(parking, TimeWindow.for_hours(start_time, duration))


# ===== Access =====

def get_booking_or_404(booking_id) -> Booking:
    try:
        return Booking.objects.select_related("parking", "parking__owner", "driver").get(pk=booking_id)
    except Booking.DoesNotExist:
        raise NotFoundError("Booking not found")


def is_booking_driver(booking: Booking, actor) -> bool:
    return booking.driver_id == actor.id


def is_parking_owner(booking: Booking, actor) -> bool:
    return booking.parking.owner_id == actor.id


def ensure_can_view(booking: Booking, actor) -> None:
    if not (is_booking_driver(booking, actor) or is_parking_owner(booking, actor)):
        raise ForbiddenError("Access denied to this booking")


# ===== Creation =====

def create_booking(
    driver,
    *,
    parking_id,
    start_time: datetime,
    duration: int,
    payment_method: str = Booking.PaymentMethod.CASH,
    notes: str = "",
    now: datetime | None = None,
) -> Booking:
    """Reserve one spot at the lot for ``duration`` hours.

    The lot row stays locked until commit, so two concurrent requests for
    the last spot cannot both pass the overlap count.
    """

    now = now or timezone.now()
    if duration < 1:
        raise ValidationError("Duration must be at least 1 hour")

    with transaction.atomic():
        parking = _lock_parking(parking_id)
        if not parking.is_available:
            raise ValidationError("Parking is not available for booking", code="parking_unavailable")

        availability_for_window(parking, TimeWindow.for_hours(start_time, duration)).ensure_available()

        status = (
            Booking.Status.CONFIRMED
            if payment_method == Booking.PaymentMethod.CASH
            else Booking.Status.PENDING
        )
        try:
            with transaction.atomic():
                booking = Booking.objects.create(
                    driver=driver,
                    parking=parking,
                    start_time=start_time,
                    duration=duration,
                    total_amount=parking.price_per_hour * duration,
                    payment_method=payment_method,
                    notes=notes or "",
                    status=status,
                )
                booking.qr_code = booking.generate_qr_code(now)
                booking.save(update_fields=["qr_code"])
        except IntegrityError as exc:
            logger.warning(f"Booking QR code collision on lot {parking.id}: {exc}")
            raise DuplicateKeyError("Booking with this QR code already exists")

    logger.info(f"Booking {booking.id} created on lot {parking.id} by driver {driver.id} ({booking.status})")
    notifications.notify_booking_created(booking)
    return booking


# ===== Transitions =====

def mark_arrived(booking_id, actor, now: datetime | None = None) -> Booking:
    now = now or timezone.now()
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if not is_booking_driver(booking, actor):
            raise ForbiddenError("Only the driver who made this booking can mark as arrived")

        state = lifecycle.mark_arrived(booking.to_state(), booking.start_time, now, lifecycle_rules())
        booking.save(update_fields=booking.apply_state(state))

    logger.info(f"Booking {booking.id}: driver {actor.id} arrived")
    return booking


def confirm_booking(booking_id, actor, now: datetime | None = None) -> Booking:
    now = now or timezone.now()
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if not is_parking_owner(booking, actor):
            raise ForbiddenError("Only parking owner can confirm bookings")

        state = lifecycle.confirm(booking.to_state(), booking.start_time, now, lifecycle_rules())
        booking.save(update_fields=booking.apply_state(state))

    logger.info(f"Booking {booking.id} confirmed by owner {actor.id}, occupancy started")
    notifications.notify_booking_confirmed(booking)
    return booking


def complete_booking(booking_id, actor, now: datetime | None = None) -> Booking:
    now = now or timezone.now()
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if not is_parking_owner(booking, actor):
            raise ForbiddenError("Only parking owner can complete bookings")

        state = lifecycle.complete(
            booking.to_state(),
            booking.duration,
            booking.parking.price_per_hour,
            now,
            lifecycle_rules(),
        )
        booking.save(update_fields=booking.apply_state(state))

    if booking.overstay_charge:
        logger.info(
            f"Booking {booking.id} completed with overstay of {booking.overstay_duration} min, "
            f"charge {booking.overstay_charge}"
        )
    else:
        logger.info(f"Booking {booking.id} completed after {booking.actual_duration} min")
    notifications.notify_booking_completed(booking)
    return booking


def extend_booking(booking_id, actor, additional_hours: int, now: datetime | None = None) -> Booking:
    """Add hours right after the current end, if a spot is free for them."""

    if additional_hours is None or additional_hours < 1:
        raise ValidationError("Additional hours must be at least 1")

    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if not is_booking_driver(booking, actor):
            raise ForbiddenError("Access denied to extend this booking")

        lifecycle.ensure_extendable(booking.to_state())

        parking = _lock_parking(booking.parking_id)
        extension = TimeWindow(booking.start_time, booking.end_time).following(additional_hours)
        availability_for_window(parking, extension).ensure_available("Parking not available for extension time")

        if booking.original_end_time is None:
            booking.original_end_time = booking.end_time
        booking.duration += additional_hours
        booking.total_amount += parking.price_per_hour * additional_hours
        booking.extended = True
        booking.save(update_fields=["original_end_time", "duration", "total_amount", "extended"])

    logger.info(f"Booking {booking.id} extended by {additional_hours} h until {booking.end_time.isoformat()}")
    return booking


def cancel_booking(booking_id, actor, now: datetime | None = None) -> Booking:
    now = now or timezone.now()
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        if not is_booking_driver(booking, actor):
            raise ForbiddenError("Access denied to cancel this booking")

        state = lifecycle.cancel(booking.to_state(), booking.start_time, now, lifecycle_rules())
        booking.save(update_fields=booking.apply_state(state))

    logger.info(f"Booking {booking.id} cancelled by driver {actor.id}")
    notifications.notify_booking_cancelled(booking)
    return booking


def set_booking_status(booking_id, actor, status: str, now: datetime | None = None) -> Booking:
    """Overwrite the status directly, skipping the arrival protocol.

    Allowed to the booking's driver or any owner-role user. Switched off
    with ``BOOKING_STATUS_OVERRIDE_ENABLED = False``.
    """

    if not settings.BOOKING_STATUS_OVERRIDE_ENABLED:
        raise ForbiddenError("Direct status changes are disabled", code="override_disabled")

    try:
        target = BookingStatus(status)
    except ValueError:
        raise ValidationError("Invalid status", code="invalid_status")

    now = now or timezone.now()
    with transaction.atomic():
        booking = _lock_booking(booking_id)
        is_owner_role = hasattr(actor, "is_owner") and actor.is_owner()
        if not (is_booking_driver(booking, actor) or is_owner_role):
            raise ForbiddenError("Access denied to update this booking")

        previous = booking.status
        state = lifecycle.override_status(booking.to_state(), target, booking.start_time, now, lifecycle_rules())
        booking.save(update_fields=booking.apply_state(state))

    logger.info(f"Booking {booking.id} status set {previous} -> {booking.status} by user {actor.id}")
    return booking


def scan_booking(qr_code: str, actor, now: datetime | None = None) -> dict[str, Any]:
    """Validate a QR token at the lot entrance. Read-only."""

    if not qr_code:
        raise ValidationError("QR code is required")

    now = now or timezone.now()
    try:
        booking = Booking.objects.select_related("parking", "driver").get(qr_code=qr_code)
    except Booking.DoesNotExist:
        raise NotFoundError("Invalid QR code")

    if not is_parking_owner(booking, actor):
        raise ForbiddenError("Access denied to scan this booking")

    in_window = TimeWindow(booking.start_time, booking.end_time).is_current(now)
    return {
        "booking": booking,
        "is_valid": in_window and booking.status == Booking.Status.ACTIVE,
        "current_time": now,
        "message": "Booking is valid" if in_window else "Booking is not active",
    }


def booking_status_info(booking: Booking, actor, now: datetime | None = None) -> dict[str, Any]:
    """Derived timers plus the next actions the actor may take."""

    now = now or timezone.now()
    ensure_can_view(booking, actor)

    rules = lifecycle_rules()
    state = booking.to_state()
    timers = booking.timers(now)
    is_driver = is_booking_driver(booking, actor)
    is_owner = is_parking_owner(booking, actor)
    status = booking.status

    return {
        "status": status,
        "is_arrived": booking.is_arrived,
        "is_confirmed": booking.is_confirmed,
        "elapsed_time": timers.elapsed_minutes,
        "remaining_time": timers.remaining_minutes,
        "is_overstayed": timers.is_overstayed,
        "can_mark_arrived": is_driver and not booking.is_arrived and status == Booking.Status.CONFIRMED,
        "can_confirm": (
            is_owner
            and not booking.is_confirmed
            and booking.is_arrived
            and status == Booking.Status.CONFIRMED
        ),
        "can_complete": (
            is_owner
            and status == Booking.Status.ACTIVE
            and booking.actual_start_time is not None
        ),
        "can_cancel": (
            is_driver
            and isinstance(state, (lifecycle.Pending, lifecycle.Confirmed))
            and booking.start_time - now >= rules.cancellation_notice
        ),
        "can_extend": is_driver and isinstance(state, (lifecycle.Active, lifecycle.Confirmed)),
    }


# ===== Periodic sweep =====

def sweep_booking_statuses(now: datetime | None = None) -> dict[str, int]:
    """Move bookings along with the clock.

    Confirmed bookings whose window has started become active; confirmed
    or active bookings whose window has ended become completed. No
    overstay is billed here. Running it twice changes nothing.
    """

    now = now or timezone.now()
    with transaction.atomic():
        activated = Booking.objects.filter(
            status=Booking.Status.CONFIRMED,
            start_time__lte=now,
            end_time__gte=now,
        ).update(status=Booking.Status.ACTIVE, updated_at=now)

        completed = Booking.objects.filter(
            status__in=[Booking.Status.ACTIVE, Booking.Status.CONFIRMED],
            end_time__lt=now,
        ).update(status=Booking.Status.COMPLETED, updated_at=now)

    if activated or completed:
        logger.info(f"Booking sweep at {now.isoformat()}: {activated} activated, {completed} completed")
    return {"activated": activated, "completed": completed}
