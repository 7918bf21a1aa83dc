"""API views for the booking domain."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsDriver, IsParkingOwner

from . import services
from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingExtendSerializer,
    BookingScanSerializer,
    BookingSerializer,
    BookingStatusInfoSerializer,
    BookingStatusUpdateSerializer,
)


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Bookings seen by drivers and by the owners of the booked lots.

    Lifecycle actions delegate to ``services``; the driver/owner checks
    and state guards live there and surface as domain errors.
    """

    queryset = Booking.objects.select_related("driver", "parking", "parking__owner")
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilterSet
    lookup_value_regex = r"\d+"

    def get_permissions(self):  # type: ignore
        if self.action == "create":
            return [permissions.IsAuthenticated(), IsDriver()]
        if self.action == "scan":
            return [permissions.IsAuthenticated(), IsParkingOwner()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action != "list":
            return qs
        user = self.request.user
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        if hasattr(user, "is_owner") and user.is_owner():
            return qs.filter(parking__owner=user)
        return qs.filter(driver=user)

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        return BookingSerializer

    def _booking_response(self, booking: Booking, http_status=status.HTTP_200_OK) -> Response:
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data, status=http_status)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = services.create_booking(
            request.user,
            parking_id=data["parking"],
            start_time=data["start_time"],
            duration=data["duration"],
            payment_method=data["payment_method"],
            notes=data.get("notes", ""),
        )
        return self._booking_response(booking, status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        booking = services.get_booking_or_404(kwargs["pk"])
        services.ensure_can_view(booking, request.user)
        return self._booking_response(booking)

    @action(detail=True, methods=["patch"])
    def arrived(self, request, pk=None):  # type: ignore
        return self._booking_response(services.mark_arrived(pk, request.user))

    @action(detail=True, methods=["patch"])
    def confirm(self, request, pk=None):  # type: ignore
        return self._booking_response(services.confirm_booking(pk, request.user))

    @action(detail=True, methods=["patch"])
    def complete(self, request, pk=None):  # type: ignore
        return self._booking_response(services.complete_booking(pk, request.user))

    @action(detail=True, methods=["patch"])
    def cancel(self, request, pk=None):  # type: ignore
        return self._booking_response(services.cancel_booking(pk, request.user))

    @action(detail=True, methods=["patch"])
    def extend(self, request, pk=None):  # type: ignore
        serializer = BookingExtendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.extend_booking(pk, request.user, serializer.validated_data["additional_hours"])
        return self._booking_response(booking)

    @action(detail=True, methods=["get", "patch"], url_path="status", url_name="status")
    def booking_status(self, request, pk=None):  # type: ignore
        """GET: status info with next allowed actions. PATCH: direct status set."""
        if request.method == "PATCH":
            serializer = BookingStatusUpdateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            booking = services.set_booking_status(pk, request.user, serializer.validated_data["status"])
            return self._booking_response(booking)

        booking = services.get_booking_or_404(pk)
        info = services.booking_status_info(booking, request.user)
        return Response(
            {
                "booking": BookingSerializer(booking, context=self.get_serializer_context()).data,
                "status_info": BookingStatusInfoSerializer(info).data,
            }
        )

    @action(detail=False, methods=["post"])
    def scan(self, request):  # type: ignore
        serializer = BookingScanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.scan_booking(serializer.validated_data["qr_code"], request.user)
        return Response(
            {
                "booking": BookingSerializer(result["booking"], context=self.get_serializer_context()).data,
                "is_valid": result["is_valid"],
                "current_time": result["current_time"],
                "message": result["message"],
            }
        )
