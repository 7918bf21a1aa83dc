"""Notification model.

In-app notifications shown to drivers and lot owners. They are created
by the booking services on key lifecycle transitions and consumed by
the recipient, who can mark them as read or delete them.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message sent to a user about some event."""

    class Type(models.TextChoices):
        BOOKING_CREATED = 'booking_created', _('Booking created')
        BOOKING_CONFIRMED = 'booking_confirmed', _('Booking confirmed')
        BOOKING_COMPLETED = 'booking_completed', _('Booking completed')
        BOOKING_CANCELLED = 'booking_cancelled', _('Booking cancelled')
        BOOKING_REMINDER = 'booking_reminder', _('Booking reminder')
        SYSTEM = 'system', _('System')

    user = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='notifications'
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(max_length=32, choices=Type.choices, default=Type.SYSTEM)
    related_booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
    )
    is_read = models.BooleanField(default=False)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read']),
            models.Index(fields=['user', '-created_at']),
        ]

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"
