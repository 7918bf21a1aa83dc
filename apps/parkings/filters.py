"""FilterSet definitions for the parking lot listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import ParkingLot


class ParkingLotFilterSet(django_filters.FilterSet):
    """Filters used by drivers when looking for a lot."""

    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    zone = django_filters.ChoiceFilter(field_name="zone", choices=ParkingLot.Zone.choices)
    type = django_filters.ChoiceFilter(field_name="lot_type", choices=ParkingLot.LotType.choices)
    price_min = django_filters.NumberFilter(field_name="price_per_hour", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price_per_hour", lookup_expr="lte")
    min_spots = django_filters.NumberFilter(field_name="total_spots", lookup_expr="gte")

    class Meta:
        model = ParkingLot
        fields = ["city", "zone", "type"]
