"""Admin registration for parking lots."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import ParkingLot


@admin.register(ParkingLot)
class ParkingLotAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "owner",
        "city",
        "zone",
        "lot_type",
        "total_spots",
        "price_per_hour",
        "is_available",
        "created_at",
    )
    list_filter = ("zone", "lot_type", "is_available", "open_24h", "city")
    search_fields = ("name", "address", "city", "owner__email")
    readonly_fields = ("created_at", "updated_at")
