"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.parkings.models import ParkingLot
from apps.users.serializers import UserShortSerializer

from .models import Booking


class BookingParkingSerializer(serializers.ModelSerializer):
    """Short lot representation embedded into bookings."""

    class Meta:
        model = ParkingLot
        fields = ["id", "name", "address", "city", "zone", "lot_type", "price_per_hour", "owner"]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Payload of a new booking made by a driver."""

    parking = serializers.IntegerField()
    start_time = serializers.DateTimeField()
    duration = serializers.IntegerField(min_value=1)
    payment_method = serializers.ChoiceField(
        choices=Booking.PaymentMethod.choices,
        default=Booking.PaymentMethod.CASH,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingSerializer(serializers.ModelSerializer):
    """Booking with derived occupancy timers."""

    driver = UserShortSerializer(read_only=True)
    parking = BookingParkingSerializer(read_only=True)
    final_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "driver",
            "parking",
            "start_time",
            "duration",
            "end_time",
            "total_amount",
            "final_amount",
            "status",
            "payment_method",
            "payment_status",
            "qr_code",
            "extended",
            "original_end_time",
            "notes",
            "is_arrived",
            "is_confirmed",
            "actual_start_time",
            "actual_end_time",
            "actual_duration",
            "overstay_duration",
            "overstay_charge",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def to_representation(self, instance):  # type: ignore
        data = super().to_representation(instance)
        timers = instance.timers(self.context.get("now"))
        data["elapsed_time"] = timers.elapsed_minutes
        data["remaining_time"] = timers.remaining_minutes
        data["is_overstayed"] = timers.is_overstayed
        return data


class BookingExtendSerializer(serializers.Serializer):
    additional_hours = serializers.IntegerField(min_value=1)


class BookingStatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField()


class BookingScanSerializer(serializers.Serializer):
    qr_code = serializers.CharField()


class BookingStatusInfoSerializer(serializers.Serializer):
    """Flags returned next to the booking by the status endpoint."""

    status = serializers.CharField()
    is_arrived = serializers.BooleanField()
    is_confirmed = serializers.BooleanField()
    elapsed_time = serializers.IntegerField()
    remaining_time = serializers.IntegerField()
    is_overstayed = serializers.BooleanField()
    can_mark_arrived = serializers.BooleanField()
    can_confirm = serializers.BooleanField()
    can_complete = serializers.BooleanField()
    can_cancel = serializers.BooleanField()
    can_extend = serializers.BooleanField()
