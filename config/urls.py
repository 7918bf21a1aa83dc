"""URL configuration for Parkly project.

The `urlpatterns` list routes URLs to views. It includes both Django admin
and application‑level routers provided by Django Rest Framework and each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/auth/', include(('apps.users.auth_urls', 'auth'), namespace='auth')),
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/parkings/', include('apps.parkings.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
    # API schema
    path('api/v1/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/v1/schema/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
