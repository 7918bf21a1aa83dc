"""URL routing for parking lots."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ParkingLotViewSet

router = DefaultRouter()
router.register(r"", ParkingLotViewSet, basename="parking")

urlpatterns = [
    path("", include(router.urls)),
]
