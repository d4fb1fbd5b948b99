"""URL routing for authentication endpoints (namespace: auth)."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .auth_views import (
    LogoutView,
    MagicLinkView,
    RequestLinkView,
    SendOtpView,
    SessionView,
    VerifyOtpView,
)

app_name = "auth"

urlpatterns = [
    path("send-otp/", SendOtpView.as_view(), name="send-otp"),
    path("verify-otp/", VerifyOtpView.as_view(), name="verify-otp"),
    path("request-link/", RequestLinkView.as_view(), name="request-link"),
    path("magic/", MagicLinkView.as_view(), name="magic"),
    path("session/", SessionView.as_view(), name="session"),
    path("logout/", LogoutView.as_view(), name="logout"),
]
