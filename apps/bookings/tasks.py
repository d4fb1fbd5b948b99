"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from config import providers
from shared.domain.errors import NotFoundError, StateError

from .domain.entities import CancellationSource
from .repositories import DjangoBookingRepository

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_stale_pending_bookings")
def expire_stale_pending_bookings() -> dict[str, int]:
    """
    Cancel pending bookings whose checkout was abandoned.

    Pending bookings never block dates, so this is housekeeping: it keeps
    the ledger and guest dashboards free of holds that will never be paid.
    The cutoff is well past the processor's checkout session lifetime.

    Returns:
        dict: {"expired": number of bookings cancelled}
    """
    cutoff = timezone.now() - timedelta(hours=settings.PENDING_BOOKING_TTL_HOURS)
    ledger = providers.build_booking_ledger()
    expired = 0
    for booking_id in DjangoBookingRepository().stale_pending_ids(cutoff):
        try:
            result = ledger.cancel(booking_id, CancellationSource.EXPIRED_HOLD, "checkout abandoned")
        except (NotFoundError, StateError) as exc:
            # Confirmed by a webhook between the query and the cancel.
            logger.info(f"Skipping stale booking {booking_id}: {exc}")
            continue
        if result.changed:
            expired += 1

    if expired:
        logger.info(f"Expired {expired} stale pending bookings")
    return {"expired": expired}
