"""Views for guest authentication (WhatsApp OTP, magic links, session cookie)."""

from __future__ import annotations

import logging

from django.conf import settings
from django.http import HttpResponseRedirect
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from config import providers
from shared.domain.errors import AuthError

from .auth_serializers import PhoneSerializer, VerifyOtpSerializer
from .authentication import clear_session_cookie, issue_session_cookie
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


class SendOtpView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = PhoneSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        providers.build_otp_service().send_code(serializer.validated_data["phone"])
        return Response({"success": True}, status=status.HTTP_200_OK)


class VerifyOtpView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = VerifyOtpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = providers.build_otp_service().verify_code(
            serializer.validated_data["phone"], serializer.validated_data["code"]
        )
        response = Response({"user": UserSerializer(user).data}, status=status.HTTP_200_OK)
        issue_session_cookie(response, user)
        return response


class RequestLinkView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = PhoneSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        providers.build_dashboard_link_sender().send(serializer.validated_data["phone"])
        return Response({"success": True}, status=status.HTTP_200_OK)


class MagicLinkView(APIView):
    """Redeem a magic link and land the guest on their dashboard."""

    permission_classes = [AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        token = request.query_params.get("token", "")
        try:
            user = providers.build_magic_link_service().redeem(token)
        except AuthError:
            return HttpResponseRedirect(f"{settings.APP_URL}/login?error=invalid_or_expired")
        response = HttpResponseRedirect(f"{settings.APP_URL}/bookings")
        issue_session_cookie(response, user)
        logger.info(f"User {user.pk} signed in with a magic link")
        return response


class SessionView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):  # type: ignore
        user = request.user if request.user.is_authenticated else None
        return Response({"user": UserSerializer(user).data if user else None})


class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        response = Response({"success": True}, status=status.HTTP_200_OK)
        clear_session_cookie(response)
        return response
