"""Serializers for the parkings domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserShortSerializer

from .models import ParkingLot


class ParkingLotSerializer(serializers.ModelSerializer):
    owner = UserShortSerializer(read_only=True)

    class Meta:
        model = ParkingLot
        fields = [
            "id",
            "owner",
            "name",
            "address",
            "city",
            "zone",
            "lot_type",
            "total_spots",
            "price_per_hour",
            "description",
            "features",
            "open_24h",
            "open_time",
            "close_time",
            "contact_phone",
            "is_available",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ParkingLotWriteSerializer(serializers.ModelSerializer):
    """Create/update payload from the owner's dashboard."""

    total_spots = serializers.IntegerField(min_value=1)
    features = serializers.ListField(
        child=serializers.ChoiceField(choices=ParkingLot.Feature.choices),
        required=False,
    )

    class Meta:
        model = ParkingLot
        fields = [
            "name",
            "address",
            "city",
            "zone",
            "lot_type",
            "total_spots",
            "price_per_hour",
            "description",
            "features",
            "open_24h",
            "open_time",
            "close_time",
            "contact_phone",
            "is_available",
        ]

    def validate(self, attrs):  # type: ignore
        open_24h = attrs.get("open_24h", getattr(self.instance, "open_24h", True))
        open_time = attrs.get("open_time", getattr(self.instance, "open_time", None))
        close_time = attrs.get("close_time", getattr(self.instance, "close_time", None))
        if not open_24h and open_time and close_time and open_time >= close_time:
            raise serializers.ValidationError("Closing time must be later than opening time.")
        return attrs

    def create(self, validated_data):  # type: ignore
        validated_data["owner"] = self.context["request"].user
        return super().create(validated_data)

    def to_representation(self, instance):  # type: ignore
        return ParkingLotSerializer(instance, context=self.context).data


class AvailabilityQuerySerializer(serializers.Serializer):
    """``?start_time=...&duration=...`` for the availability endpoint."""

    start_time = serializers.DateTimeField()
    duration = serializers.IntegerField(min_value=1)
