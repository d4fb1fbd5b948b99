"""URL routing for the booking domain."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import BookingViewSet, CheckoutSessionView

router = DefaultRouter()
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = [
    path("checkout/", CheckoutSessionView.as_view(), name="booking-checkout"),
    path("", include(router.urls)),
]
