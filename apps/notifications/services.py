"""Notification services.

In-app notifications only: each helper writes a ``Notification`` row
for the recipient. Booking helpers are best-effort. A failure is logged
and swallowed so the booking transition that triggered it still stands.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)


def create_notification(
    user: "CustomUser",
    title: str,
    message: str,
    *,
    type: str = Notification.Type.SYSTEM,
    booking: "Booking | None" = None,
    metadata: dict[str, Any] | None = None,
) -> Notification:
    notification = Notification.objects.create(
        user=user,
        title=title,
        message=message,
        type=type,
        related_booking=booking,
        metadata=metadata or {},
    )
    logger.info(f"Notification {notification.id} ({type}) created for user {user.id}")
    return notification


def _booking_metadata(booking: "Booking", **extra: Any) -> dict[str, Any]:
    metadata = {
        "booking_id": booking.id,
        "parking_id": booking.parking_id,
        "parking_name": booking.parking.name,
        "start_time": booking.start_time.isoformat(),
        "duration": booking.duration,
        "total_amount": str(booking.total_amount),
    }
    metadata.update(extra)
    return metadata


def notify_booking_created(booking: "Booking") -> Notification | None:
    """Tell the lot owner about a new booking."""
    try:
        driver_name = booking.driver.name or booking.driver.email
        return create_notification(
            booking.parking.owner,
            "New booking received",
            (
                f"You have a new booking for {booking.parking.name}. "
                f"Driver: {driver_name}, start time: {booking.start_time:%Y-%m-%d %H:%M}."
            ),
            type=Notification.Type.BOOKING_CREATED,
            booking=booking,
            metadata=_booking_metadata(booking, driver_name=driver_name),
        )
    except Exception as e:
        logger.error(f"Failed to send booking created notification for booking {booking.id}: {e}", exc_info=True)
        return None


def notify_booking_confirmed(booking: "Booking") -> Notification | None:
    """Tell the driver the owner has confirmed the arrival."""
    try:
        return create_notification(
            booking.driver,
            "Booking confirmed",
            (
                f"Your booking for {booking.parking.name} has been confirmed by the owner. "
                "Your parking time has started."
            ),
            type=Notification.Type.BOOKING_CONFIRMED,
            booking=booking,
            metadata=_booking_metadata(booking, is_confirmed=True),
        )
    except Exception as e:
        logger.error(f"Failed to send booking confirmed notification for booking {booking.id}: {e}", exc_info=True)
        return None


def notify_booking_completed(booking: "Booking") -> Notification | None:
    """Tell the driver the stay is over, with the final amount."""
    try:
        message = f"Your parking at {booking.parking.name} is complete. Total: {booking.final_amount}."
        if booking.overstay_charge:
            message += (
                f" Includes an overstay charge of {booking.overstay_charge} "
                f"for {booking.overstay_duration} extra minutes."
            )
        return create_notification(
            booking.driver,
            "Booking completed",
            message,
            type=Notification.Type.BOOKING_COMPLETED,
            booking=booking,
            metadata=_booking_metadata(
                booking,
                actual_duration=booking.actual_duration,
                overstay_duration=booking.overstay_duration,
                overstay_charge=str(booking.overstay_charge) if booking.overstay_charge is not None else None,
                final_amount=str(booking.final_amount),
            ),
        )
    except Exception as e:
        logger.error(f"Failed to send booking completed notification for booking {booking.id}: {e}", exc_info=True)
        return None


def notify_booking_cancelled(booking: "Booking") -> Notification | None:
    """Tell the lot owner a driver cancelled."""
    try:
        return create_notification(
            booking.parking.owner,
            "Booking cancelled",
            f"A booking for {booking.parking.name} at {booking.start_time:%Y-%m-%d %H:%M} was cancelled by the driver.",
            type=Notification.Type.BOOKING_CANCELLED,
            booking=booking,
            metadata=_booking_metadata(booking),
        )
    except Exception as e:
        logger.error(f"Failed to send booking cancelled notification for booking {booking.id}: {e}", exc_info=True)
        return None


def mark_all_read(user: "CustomUser") -> int:
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True)


def unread_count(user: "CustomUser") -> int:
    return Notification.objects.filter(user=user, is_read=False).count()
