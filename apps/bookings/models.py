"""Booking models for Parkly."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .domain.billing import OverstayCharge
from .domain.lifecycle import (
    Active,
    BookingState,
    BookingStatus,
    Cancelled,
    Completed,
    Confirmed,
    Expired,
    Pending,
    Timers,
    compute_timers,
)


class Booking(models.Model):
    """A driver's reservation of one spot at a lot for a time window."""

    class Status(models.TextChoices):
        PENDING = BookingStatus.PENDING.value, _("Pending payment")
        CONFIRMED = BookingStatus.CONFIRMED.value, _("Confirmed")
        ACTIVE = BookingStatus.ACTIVE.value, _("Active")
        COMPLETED = BookingStatus.COMPLETED.value, _("Completed")
        CANCELLED = BookingStatus.CANCELLED.value, _("Cancelled")
        EXPIRED = BookingStatus.EXPIRED.value, _("Expired")

    class PaymentMethod(models.TextChoices):
        CASH = "cash", _("Cash")
        CARD = "card", _("Card")
        WALLET = "wallet", _("Wallet")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    parking = models.ForeignKey(
        "parkings.ParkingLot",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    start_time = models.DateTimeField()
    duration = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text=_("Booked duration in whole hours."),
    )
    end_time = models.DateTimeField(editable=False)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    qr_code = models.CharField(max_length=64, unique=True, null=True, blank=True, editable=False)
    extended = models.BooleanField(default=False)
    original_end_time = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    is_arrived = models.BooleanField(default=False)
    is_confirmed = models.BooleanField(default=False)
    actual_start_time = models.DateTimeField(null=True, blank=True)
    actual_end_time = models.DateTimeField(null=True, blank=True)
    actual_duration = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Actual occupancy in minutes."),
    )
    overstay_duration = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Minutes spent beyond the booked duration."),
    )
    overstay_charge = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(duration__gte=1),
                name="booking_duration_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["parking", "start_time", "end_time"]),
            models.Index(fields=["status"]),
            models.Index(fields=["qr_code"]),
            models.Index(fields=["driver", "-created_at"]),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} at lot {self.parking_id} ({self.status})"

    def clean(self) -> None:
        if self.duration is not None and self.duration < 1:
            raise ValidationError({"duration": _("Duration must be at least 1 hour.")})

    def save(self, *args, **kwargs):  # type: ignore
        self.end_time = self.compute_end_time()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "end_time" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "end_time"]
        super().save(*args, **kwargs)

    def compute_end_time(self) -> datetime:
        return self.start_time + timedelta(hours=self.duration)

    def generate_qr_code(self, moment: datetime | None = None) -> str:
        """``PARKLY-<id>-<epoch milliseconds>``; needs a saved booking."""
        moment = moment or timezone.now()
        return f"PARKLY-{self.pk}-{int(moment.timestamp() * 1000)}"

    # ----- lifecycle mapping -----

    def to_state(self) -> BookingState:
        status = BookingStatus(self.status)
        if status is BookingStatus.PENDING:
            return Pending()
        if status is BookingStatus.CONFIRMED:
            return Confirmed(arrived=self.is_arrived, confirmed=self.is_confirmed)
        if status is BookingStatus.ACTIVE:
            return Active(
                actual_start=self.actual_start_time,
                arrived=self.is_arrived,
                confirmed=self.is_confirmed,
            )
        if status is BookingStatus.COMPLETED:
            return Completed(
                actual_start=self.actual_start_time,
                actual_end=self.actual_end_time,
                actual_duration=self.actual_duration,
                overstay=self._stored_overstay(),
                arrived=self.is_arrived,
                confirmed=self.is_confirmed,
            )
        if status is BookingStatus.CANCELLED:
            return Cancelled()
        return Expired()

    def apply_state(self, state: BookingState) -> list[str]:
        """Copy a lifecycle variant onto the row; returns the touched fields."""
        self.status = state.status.value
        fields = ["status"]

        if isinstance(state, Confirmed):
            self.is_arrived = state.arrived
            self.is_confirmed = state.confirmed
            fields += ["is_arrived", "is_confirmed"]
        elif isinstance(state, Active):
            self.actual_start_time = state.actual_start
            self.is_arrived = state.arrived
            self.is_confirmed = state.confirmed
            fields += ["actual_start_time", "is_arrived", "is_confirmed"]
        elif isinstance(state, Completed):
            self.actual_start_time = state.actual_start
            self.actual_end_time = state.actual_end
            self.actual_duration = state.actual_duration
            self.is_arrived = state.arrived
            self.is_confirmed = state.confirmed
            fields += ["actual_start_time", "actual_end_time", "actual_duration", "is_arrived", "is_confirmed"]
            if state.overstay is not None:
                self.overstay_duration = state.overstay.minutes
                self.overstay_charge = state.overstay.amount.quantize(Decimal("0.01"))
            else:
                self.overstay_duration = None
                self.overstay_charge = None
            fields += ["overstay_duration", "overstay_charge"]
        return fields

    def _stored_overstay(self) -> OverstayCharge | None:
        if not self.overstay_duration or self.overstay_charge is None:
            return None
        hours = -(-self.overstay_duration // 60)
        return OverstayCharge(
            minutes=self.overstay_duration,
            hours=hours,
            rate=self.overstay_charge / hours,
            amount=self.overstay_charge,
        )

    # ----- derived values -----

    def timers(self, now: datetime | None = None) -> Timers:
        return compute_timers(self.to_state(), self.duration, now or timezone.now())

    @property
    def final_amount(self) -> Decimal:
        return self.total_amount + (self.overstay_charge or Decimal("0.00"))

    @property
    def is_terminal(self) -> bool:
        return self.status in {self.Status.COMPLETED, self.Status.CANCELLED, self.Status.EXPIRED}
