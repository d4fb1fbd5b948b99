"""API views for payments.

Payments are never created through the API: they are recorded when the
processor's webhook reports a successful checkout. Guests can list their
own payments; managers and admins see all of them.
"""

from __future__ import annotations

import logging

from django.http import JsonResponse  # type: ignore
from django.views.decorators.csrf import csrf_exempt  # type: ignore
from django.views.decorators.http import require_POST  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore

from config import providers

from .models import Payment
from .serializers import PaymentSerializer

logger = logging.getLogger(__name__)


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "booking"]

    def get_queryset(self):  # type: ignore
        queryset = Payment.objects.select_related("booking")
        user = self.request.user
        if user.is_staff_role():
            return queryset
        return queryset.filter(booking__user=user)


@csrf_exempt
@require_POST
def payment_webhook(request):
    """Stripe webhook receiver; the raw body is needed for signature checks."""
    reconciler = providers.build_payment_reconciler()
    result = reconciler.handle_callback(request.body, request.headers.get("Stripe-Signature"))
    return JsonResponse(result.body, status=result.status_code)
