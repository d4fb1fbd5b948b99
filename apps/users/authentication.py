"""Session cookie authentication.

Guests get an httpOnly cookie holding a signed access token after an OTP
check or a magic link. API clients may still send ``Authorization: Bearer``.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication  # type: ignore
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken  # type: ignore
from rest_framework_simplejwt.tokens import AccessToken  # type: ignore


class CookieJWTAuthentication(JWTAuthentication):
    def authenticate(self, request):  # type: ignore
        raw_token = request.COOKIES.get(settings.SESSION_TOKEN_COOKIE)
        if not raw_token:
            return None
        try:
            validated = self.get_validated_token(raw_token)
            return self.get_user(validated), validated
        except (InvalidToken, AuthenticationFailed):
            # A stale cookie is treated as anonymous; other authenticators still run.
            return None


def issue_session_cookie(response, user) -> None:
    lifetime = settings.SESSION_TOKEN_LIFETIME
    token = AccessToken.for_user(user)
    token.set_exp(lifetime=lifetime)
    response.set_cookie(
        settings.SESSION_TOKEN_COOKIE,
        str(token),
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.SESSION_TOKEN_COOKIE_SECURE,
        samesite="Lax",
        path="/",
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(settings.SESSION_TOKEN_COOKIE, path="/", samesite="Lax")
