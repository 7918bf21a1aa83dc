import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("parkly")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Activate started and complete finished bookings - every minute
    "update-booking-statuses": {
        "task": "bookings.update_booking_statuses",
        "schedule": float(os.environ.get("BOOKING_STATUS_SWEEP_INTERVAL", 60)),
        "options": {"expires": 50},
    },
}
