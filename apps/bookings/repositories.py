"""Store access for bookings, returning typed ``BookingRecord`` values."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from django.utils import timezone

from apps.catalog.domain import AssetRef, AssetType
from shared.domain.errors import StateError
from shared.domain.value_objects import DateRange, Money
from shared.infrastructure.db import lock_queryset_if_possible

from .domain.entities import BookingRecord, BookingStatus, CancellationSource
from .models import Booking


def _parse_id(booking_id) -> UUID | None:
    if isinstance(booking_id, UUID):
        return booking_id
    try:
        return UUID(str(booking_id))
    except (TypeError, ValueError):
        return None


def _asset_filter(asset: AssetRef) -> dict:
    if asset.asset_type is AssetType.PROPERTY:
        return {"property_id": asset.asset_id}
    return {"vehicle_id": asset.asset_id}


def to_record(row: Booking) -> BookingRecord:
    asset_type = AssetType(row.booking_type)
    asset_id = row.property_id if asset_type is AssetType.PROPERTY else row.vehicle_id
    if asset_id is None:
        raise StateError(detail=f"Booking {row.pk} has no {asset_type.value} reference")
    return BookingRecord(
        id=row.pk,
        user_id=row.user_id,
        asset=AssetRef(asset_type, asset_id),
        dates=DateRange(row.start_date, row.end_date),
        total=Money(row.total_amount, row.currency),
        status=BookingStatus(row.status),
        guest_name=row.guest_name,
        guest_email=row.guest_email or None,
        guest_phone=row.guest_phone or None,
        external_checkout_token=row.external_checkout_token,
        cancellation_source=(
            CancellationSource(row.cancellation_source) if row.cancellation_source else None
        ),
        created_at=row.created_at,
    )


class DjangoBookingRepository:
    def get(self, booking_id, *, lock: bool = False) -> BookingRecord | None:
        pk = _parse_id(booking_id)
        if pk is None:
            return None
        queryset = Booking.objects.filter(pk=pk)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = queryset.first()
        return to_record(row) if row else None

    def get_by_token(self, token: str) -> BookingRecord | None:
        if not token:
            return None
        row = Booking.objects.filter(external_checkout_token=token).first()
        return to_record(row) if row else None

    def confirmed_overlapping(self, asset: AssetRef, dates: DateRange, *, exclude_id=None) -> list[UUID]:
        """Ids of confirmed bookings on the asset overlapping ``dates`` (half-open)."""
        queryset = Booking.objects.filter(
            booking_type=asset.asset_type.value,
            status=Booking.Status.CONFIRMED,
            start_date__lt=dates.end_date,
            end_date__gt=dates.start_date,
            **_asset_filter(asset),
        )
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return list(queryset.values_list("pk", flat=True))

    def insert_pending(
        self,
        *,
        user_id: int,
        asset: AssetRef,
        dates: DateRange,
        total: Money,
        guest_name: str,
        guest_email: str | None,
        guest_phone: str | None,
    ) -> BookingRecord:
        row = Booking.objects.create(
            user_id=user_id,
            booking_type=asset.asset_type.value,
            start_date=dates.start_date,
            end_date=dates.end_date,
            total_amount=total.amount,
            currency=total.currency,
            status=Booking.Status.PENDING,
            guest_name=guest_name,
            guest_email=guest_email or "",
            guest_phone=guest_phone or "",
            **_asset_filter(asset),
        )
        return to_record(row)

    def set_token_if_absent(self, booking_id: UUID, token: str) -> bool:
        updated = Booking.objects.filter(
            pk=booking_id, external_checkout_token__isnull=True
        ).update(external_checkout_token=token, updated_at=timezone.now())
        return bool(updated)

    def mark_confirmed(self, booking_id: UUID) -> BookingRecord:
        now = timezone.now()
        Booking.objects.filter(pk=booking_id).update(
            status=Booking.Status.CONFIRMED,
            confirmed_at=now,
            cancellation_source="",
            cancellation_reason="",
            cancelled_at=None,
            updated_at=now,
        )
        return to_record(Booking.objects.get(pk=booking_id))

    def mark_cancelled(self, booking_id: UUID, source: CancellationSource, reason: str = "") -> BookingRecord:
        now = timezone.now()
        Booking.objects.filter(pk=booking_id).update(
            status=Booking.Status.CANCELLED,
            cancellation_source=source.value,
            cancellation_reason=reason[:255],
            cancelled_at=now,
            updated_at=now,
        )
        return to_record(Booking.objects.get(pk=booking_id))

    def stale_pending_ids(self, older_than: datetime) -> list[UUID]:
        return list(
            Booking.objects.filter(
                status=Booking.Status.PENDING, created_at__lt=older_than
            ).values_list("pk", flat=True)
        )
