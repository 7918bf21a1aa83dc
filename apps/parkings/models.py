"""Parking lot models for Parkly.

A lot is a parking facility with a fixed number of spots, listed by
its owner at an hourly price. Drivers book spot-time against it.
"""

from __future__ import annotations

from datetime import time
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ParkingLot(models.Model):
    """A parking facility with a fixed spot capacity."""

    class Zone(models.TextChoices):
        A = "A", _("Zone A")
        B = "B", _("Zone B")
        C = "C", _("Zone C")
        D = "D", _("Zone D")

    class LotType(models.TextChoices):
        INDOOR = "indoor", _("Indoor")
        COVERED = "covered", _("Covered")
        OUTDOOR = "outdoor", _("Outdoor")

    class Feature(models.TextChoices):
        SECURITY = "security", _("Security")
        EV = "ev", _("EV charging")
        COVERED = "covered", _("Covered")
        LIGHTING = "lighting", _("Lighting")
        EXPOSED = "exposed", _("Exposed")

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="parking_lots",
    )
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    zone = models.CharField(max_length=1, choices=Zone.choices)
    lot_type = models.CharField(max_length=20, choices=LotType.choices, default=LotType.OUTDOOR)
    total_spots = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_per_hour = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    description = models.TextField(blank=True)
    features = models.JSONField(default=list, blank=True)
    open_24h = models.BooleanField(default=True)
    open_time = models.TimeField(default=time(8, 0))
    close_time = models.TimeField(default=time(22, 0))
    contact_phone = models.CharField(max_length=20, blank=True)
    is_available = models.BooleanField(
        default=True,
        help_text=_("Unavailable lots are hidden from search and cannot be booked."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Parking lot")
        verbose_name_plural = _("Parking lots")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_spots__gte=1),
                name="parking_lot_has_spots",
            ),
        ]
        indexes = [
            models.Index(fields=["is_available"]),
            models.Index(fields=["owner", "is_available"]),
            models.Index(fields=["city", "zone"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.city}, {self.get_zone_display()})"

    def clean(self) -> None:
        if self.total_spots is not None and self.total_spots < 1:
            raise ValidationError({"total_spots": _("Total spots must be at least 1.")})

        unknown = set(self.features or []) - set(self.Feature.values)
        if unknown:
            raise ValidationError({"features": _("Unknown features: %s") % ", ".join(sorted(unknown))})

        if not self.open_24h and self.open_time and self.close_time and self.open_time >= self.close_time:
            raise ValidationError(_("Closing time must be later than opening time."))
