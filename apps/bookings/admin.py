"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "parking",
        "driver",
        "status",
        "payment_method",
        "payment_status",
        "start_time",
        "end_time",
        "total_amount",
        "overstay_charge",
        "created_at",
    )
    list_filter = ("status", "payment_method", "payment_status", "extended", "is_arrived", "is_confirmed")
    search_fields = ("qr_code", "parking__name", "driver__email")
    readonly_fields = (
        "qr_code",
        "end_time",
        "original_end_time",
        "actual_start_time",
        "actual_end_time",
        "actual_duration",
        "overstay_duration",
        "overstay_charge",
        "created_at",
        "updated_at",
    )
