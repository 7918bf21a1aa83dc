"""Parking lot API views."""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.filters import BookingFilterSet
from apps.bookings.serializers import BookingSerializer
from apps.bookings.services import check_availability
from apps.users.permissions import IsOwnerOrReadOnly, IsParkingOwner
from shared.domain.exceptions import ForbiddenError

from .filters import ParkingLotFilterSet
from .models import ParkingLot
from .serializers import AvailabilityQuerySerializer, ParkingLotSerializer, ParkingLotWriteSerializer

logger = logging.getLogger(__name__)


class ParkingLotViewSet(viewsets.ModelViewSet):
    """Lots listed by owners and searched by drivers.

    Anyone may browse available lots. Creating a lot requires the owner
    role; changing or deleting it is limited to the user who owns it.
    """

    queryset = ParkingLot.objects.select_related("owner")
    permission_classes = [permissions.IsAuthenticated, IsOwnerOrReadOnly]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = ParkingLotFilterSet
    search_fields = ["name", "address", "city"]
    ordering_fields = ["price_per_hour", "total_spots", "created_at"]
    lookup_value_regex = r"\d+"

    def get_permissions(self):  # type: ignore
        if self.action == "list":
            return [permissions.AllowAny()]
        if self.action in {"create", "my_parkings", "bookings"}:
            return [permissions.IsAuthenticated(), IsParkingOwner()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action == "list":
            return qs.filter(is_available=True)
        return qs

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return ParkingLotWriteSerializer
        return ParkingLotSerializer

    def perform_create(self, serializer):  # type: ignore
        lot = serializer.save()
        logger.info(f"Parking lot {lot.id} created by user {lot.owner_id}")

    def perform_destroy(self, instance):  # type: ignore
        logger.info(f"Parking lot {instance.id} deleted by user {self.request.user.id}")
        instance.delete()

    @action(detail=False, methods=["get"], url_path="my-parkings", url_name="mine")
    def my_parkings(self, request):  # type: ignore
        qs = self.filter_queryset(ParkingLot.objects.filter(owner=request.user))
        page = self.paginate_queryset(qs)
        if page is not None:
            serializer = ParkingLotSerializer(page, many=True, context=self.get_serializer_context())
            return self.get_paginated_response(serializer.data)
        return Response(ParkingLotSerializer(qs, many=True, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        """Free spots for ``?start_time=<iso>&duration=<hours>``."""
        lot: ParkingLot = self.get_object()  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = check_availability(
            lot,
            query.validated_data["start_time"],
            query.validated_data["duration"],
        )
        return Response({"parking_id": lot.id, **result.as_dict()})

    @action(detail=True, methods=["get"])
    def bookings(self, request, pk=None):  # type: ignore
        """Bookings made on one of the caller's lots."""
        lot: ParkingLot = self.get_object()  # type: ignore
        if lot.owner_id != request.user.id:
            raise ForbiddenError("You can only view bookings for your own parking lots.")

        qs = lot.bookings.select_related("driver", "parking").order_by("-start_time")
        qs = BookingFilterSet(request.query_params, queryset=qs).qs
        page = self.paginate_queryset(qs)
        if page is not None:
            serializer = BookingSerializer(page, many=True, context=self.get_serializer_context())
            return self.get_paginated_response(serializer.data)
        return Response(BookingSerializer(qs, many=True, context=self.get_serializer_context()).data)
