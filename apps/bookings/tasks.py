"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import sweep_booking_statuses

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.update_booking_statuses")
def update_booking_statuses() -> dict[str, int]:
    """
    Advance booking statuses with the clock.

    Confirmed bookings whose window has started become active, and
    confirmed or active bookings past their end become completed.

    Runs every minute via Celery Beat (BOOKING_STATUS_SWEEP_INTERVAL).

    Returns:
        dict: {"activated": ..., "completed": ...}
    """
    try:
        return sweep_booking_statuses()
    except Exception as e:
        logger.error(f"Booking status sweep failed: {e}", exc_info=True)
        raise
