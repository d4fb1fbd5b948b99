"""DRF exception handler rendering portal errors as ``{"error": message}``."""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.errors import ExternalServiceError, PortalError

logger = logging.getLogger(__name__)


def portal_exception_handler(exc, context):
    if isinstance(exc, PortalError):
        view = context.get("view")
        view_name = view.__class__.__name__ if view is not None else "unknown"
        if isinstance(exc, ExternalServiceError):
            logger.error(f"External service failure in {view_name}: {exc.detail}", exc_info=exc)
        else:
            logger.info(f"{exc.__class__.__name__} in {view_name}: {exc.public_message}")
        return Response({"error": exc.public_message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        logger.exception("Unhandled API exception", exc_info=exc)
        return Response(
            {"error": ExternalServiceError.default_message},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return response
