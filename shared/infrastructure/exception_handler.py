"""
DRF exception handler that maps domain errors to HTTP responses.

Domain errors are raised deep inside services and domain functions; this
is the single place where they become ``{"detail": ..., "code": ...}``
responses. Everything else falls through to DRF's default handler.
"""

import logging

from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.info(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: "
            f"{exc.message}"
        )
        return Response({"detail": exc.message, "code": exc.code}, status=exc.status_code)

    return exception_handler(exc, context)
