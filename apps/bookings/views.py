"""API views for the booking domain."""

from __future__ import annotations

import logging

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from config import providers

from .domain.entities import CancellationSource
from .models import Booking
from .serializers import BookingSerializer, CancelBookingSerializer, CheckoutRequestSerializer

logger = logging.getLogger(__name__)


class IsManagerOrAdmin(permissions.BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff_role())


class CheckoutSessionView(APIView):
    """Create a pending booking and return the hosted checkout URL."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        handler = providers.build_create_booking_handler()
        result = handler.handle(serializer.to_booking_request())
        return Response(
            {
                "checkout_url": result.checkout_url,
                "booking_id": str(result.booking_id),
                "token": result.token,
            },
            status=status.HTTP_200_OK,
        )


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """Guests see their own bookings; managers and admins see all of them."""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "booking_type"]

    def get_queryset(self):  # type: ignore
        queryset = Booking.objects.select_related("property", "vehicle")
        user = self.request.user
        if not user.is_authenticated:
            return queryset.none()
        if user.is_staff_role():
            return queryset
        return queryset.filter(user=user)

    @action(detail=True, methods=["post"], permission_classes=[IsManagerOrAdmin])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ledger = providers.build_booking_ledger()
        ledger.cancel(
            booking.pk,
            CancellationSource.OPERATOR,
            serializer.validated_data.get("reason") or f"cancelled by user {request.user.pk}",
        )
        booking.refresh_from_db()
        return Response(self.get_serializer(booking).data, status=status.HTTP_200_OK)

    @action(
        detail=False,
        methods=["get"],
        url_path="by-session",
        permission_classes=[permissions.AllowAny],
    )
    def by_session(self, request):  # type: ignore
        """Look up a booking by checkout session id for the success page."""
        session_id = request.query_params.get("session_id", "").strip()
        if not session_id:
            return Response({"error": "session_id is required"}, status=status.HTTP_400_BAD_REQUEST)
        booking = (
            Booking.objects.select_related("property", "vehicle")
            .filter(external_checkout_token=session_id)
            .first()
        )
        if booking is None:
            return Response({"error": "Booking not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(booking).data, status=status.HTTP_200_OK)
