"""URL declarations for the profile endpoints (``profile/``, ``password/``)."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter  # type: ignore

from .views import UserViewSet

router = DefaultRouter()
router.register(r"", UserViewSet, basename="user")

urlpatterns = router.urls
