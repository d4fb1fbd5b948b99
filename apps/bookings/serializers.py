"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.catalog.domain import AssetRef, AssetType

from .domain.entities import BookingRequest
from .models import Booking


class CheckoutRequestSerializer(serializers.Serializer):
    """Guest input for creating a booking and its checkout session."""

    asset_type = serializers.ChoiceField(choices=[t.value for t in AssetType])
    asset_id = serializers.IntegerField(min_value=1)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    guest_name = serializers.CharField(max_length=255)
    guest_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    guest_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    total_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )

    def validate(self, attrs):  # type: ignore
        if not attrs.get("guest_phone") and not attrs.get("guest_email"):
            raise serializers.ValidationError("Either phone number or email is required.")
        return attrs

    def to_booking_request(self) -> BookingRequest:
        data = self.validated_data
        return BookingRequest(
            asset=AssetRef(AssetType(data["asset_type"]), data["asset_id"]),
            start_date=data["start_date"],
            end_date=data["end_date"],
            guest_name=data["guest_name"],
            guest_phone=data.get("guest_phone") or None,
            guest_email=data.get("guest_email") or None,
            total_amount=data.get("total_amount"),
        )


class BookingSerializer(serializers.ModelSerializer):
    asset_id = serializers.ReadOnlyField()
    asset_label = serializers.ReadOnlyField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_type",
            "asset_id",
            "asset_label",
            "start_date",
            "end_date",
            "total_amount",
            "currency",
            "status",
            "guest_name",
            "guest_email",
            "guest_phone",
            "cancellation_source",
            "confirmed_at",
            "cancelled_at",
            "created_at",
        ]
        read_only_fields = fields


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)
