import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("booking_portal")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Pending bookings whose checkout was abandoned hold nothing, but clutter
    # the ledger; cancel them hourly.
    "expire-stale-pending-bookings": {
        "task": "bookings.expire_stale_pending_bookings",
        "schedule": crontab(minute=5),
        "options": {"expires": 3000},
    },
}

app.conf.timezone = "UTC"
