"""Admin registration for notifications."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "type", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "message", "user__email")
    readonly_fields = ("created_at", "updated_at")
