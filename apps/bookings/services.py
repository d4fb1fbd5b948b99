"""Domain services for booking workflows: availability and the booking ledger."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from uuid import UUID

from django.db import transaction  # type: ignore

from apps.catalog.domain import AssetRef, AssetSnapshot, AssetType
from apps.catalog.repositories import DjangoAssetCatalog
from shared.domain.errors import ConflictError, NotFoundError, StateError, ValidationError
from shared.domain.value_objects import DateRange, Money

from .domain.entities import (
    BookingRecord,
    BookingRequest,
    BookingStatus,
    CancellationSource,
    TransitionResult,
)
from .domain.pricing import quote
from .repositories import DjangoBookingRepository

logger = logging.getLogger(__name__)


class AvailabilityChecker:
    """Answers whether an asset is free of confirmed bookings for a date range."""

    def __init__(self, bookings: DjangoBookingRepository):
        self.bookings = bookings

    def is_available(self, asset_type, asset_id: int, start_date: date, end_date: date) -> bool:
        dates = DateRange(start_date, end_date)
        try:
            asset = AssetRef(AssetType(asset_type), asset_id)
        except ValueError:
            raise ValidationError(f"Unknown asset type: {asset_type}")
        return not self.bookings.confirmed_overlapping(asset, dates)


class BookingLedger:
    """
    Owns booking records and their lifecycle.

    Creation only checks availability; two guests may both hold pending
    bookings for the same dates. Double booking is prevented in
    ``finalize``, which re-checks under row locks before confirming.
    """

    def __init__(
        self,
        bookings: DjangoBookingRepository,
        catalog: DjangoAssetCatalog,
        availability: AvailabilityChecker,
        *,
        currency: str = "usd",
    ):
        self.bookings = bookings
        self.catalog = catalog
        self.availability = availability
        self.currency = currency

    def preflight(self, request: BookingRequest) -> tuple[AssetSnapshot, DateRange, Money]:
        """Validate, price and check availability without writing anything."""
        if not (request.guest_name or "").strip():
            raise ValidationError("Guest name is required")
        if not (request.guest_phone or "").strip() and not (request.guest_email or "").strip():
            raise ValidationError("Either phone number or email is required")

        dates = DateRange(request.start_date, request.end_date)
        asset = self.catalog.get(request.asset)
        if asset is None:
            raise NotFoundError(f"{request.asset.asset_type.label} not found")
        if not asset.is_active:
            raise ValidationError(f"{request.asset.asset_type.label} is not available for booking")

        total = quote(asset, dates, self.currency)
        if request.total_amount is not None:
            self._check_supplied_total(request.total_amount, total)

        if not self.availability.is_available(
            request.asset.asset_type, request.asset.asset_id, dates.start_date, dates.end_date
        ):
            raise ConflictError()
        return asset, dates, total

    def create(self, request: BookingRequest, user_id: int) -> BookingRecord:
        _, dates, total = self.preflight(request)
        booking = self.bookings.insert_pending(
            user_id=user_id,
            asset=request.asset,
            dates=dates,
            total=total,
            guest_name=request.guest_name.strip(),
            guest_email=(request.guest_email or "").strip().lower() or None,
            guest_phone=(request.guest_phone or "").strip() or None,
        )
        logger.info(f"Created pending booking {booking.id} for {booking.asset} ({dates}, {total})")
        return booking

    def stamp_token(self, booking_id: UUID, token: str) -> None:
        if not token:
            raise ValidationError("Checkout token is required")
        if self.bookings.set_token_if_absent(booking_id, token):
            return
        if self.bookings.get(booking_id) is None:
            raise NotFoundError("Booking not found")
        raise StateError(detail=f"Booking {booking_id} already has a checkout token")

    def finalize(self, booking_id) -> TransitionResult:
        """
        Confirm a booking after payment, exactly once.

        The booking row and then the asset row are locked before the
        overlap re-check, so two payments for overlapping pending bookings
        on the same asset cannot both confirm.
        """
        with transaction.atomic():
            booking = self.bookings.get(booking_id, lock=True)
            if booking is None:
                raise NotFoundError("Booking not found")
            if booking.status is BookingStatus.CONFIRMED:
                return TransitionResult(booking, changed=False)
            if not booking.is_confirmable:
                raise StateError(detail=f"Booking {booking.id} is {booking.status.value}; cannot confirm")

            self.catalog.lock(booking.asset)
            conflicts = self.bookings.confirmed_overlapping(
                booking.asset, booking.dates, exclude_id=booking.id
            )
            if conflicts:
                raise ConflictError(detail=f"Booking {booking.id} overlaps confirmed {conflicts[0]}")

            confirmed = self.bookings.mark_confirmed(booking.id)
        logger.info(f"Booking {confirmed.id} confirmed")
        return TransitionResult(confirmed, changed=True)

    def cancel(self, booking_id, source: CancellationSource, reason: str = "") -> TransitionResult:
        with transaction.atomic():
            booking = self.bookings.get(booking_id, lock=True)
            if booking is None:
                raise NotFoundError("Booking not found")
            if booking.status is BookingStatus.CANCELLED:
                return TransitionResult(booking, changed=False)
            if booking.status is not BookingStatus.PENDING:
                raise StateError("Only pending bookings can be cancelled")
            cancelled = self.bookings.mark_cancelled(booking.id, source, reason)
        logger.info(f"Booking {cancelled.id} cancelled ({source.value})")
        return TransitionResult(cancelled, changed=True)

    @staticmethod
    def _check_supplied_total(value, expected: Money) -> None:
        if isinstance(value, bool):
            raise ValidationError("Total amount must be a number")
        try:
            supplied = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError("Total amount must be a number")
        if not supplied.is_finite() or supplied < 0:
            raise ValidationError("Total amount must be a non-negative number")
        if supplied.quantize(Decimal("0.01")) != expected.amount:
            raise ValidationError("Total amount does not match the current price")
