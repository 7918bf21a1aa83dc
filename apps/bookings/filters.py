"""FilterSet for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    """``?status=<status>``; ``all`` or an empty value disables the filter."""

    status = django_filters.CharFilter(method="filter_status")

    class Meta:
        model = Booking
        fields = ["status"]

    def filter_status(self, queryset, name, value):  # type: ignore
        if not value or value == "all":
            return queryset
        return queryset.filter(status=value)
