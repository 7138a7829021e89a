"""REST framework glue shared by all apps."""

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from common.utils import InvalidGeometryError
from services.exceptions import BookingServiceError, InvalidInputError

logger = logging.getLogger(__name__)


def error_response(exc: BookingServiceError) -> Response:
    """Render a service error as ``{"error": ..., "code": ...}``."""
    body = {"error": exc.message, "code": exc.code}
    if exc.context:
        body["details"] = exc.context
    return Response(body, status=exc.status_code)


def api_exception_handler(exc, context):
    """
    Translate service-layer errors into structured API responses.

    Anything else falls through to the default DRF handler.
    """
    if isinstance(exc, InvalidGeometryError):
        exc = InvalidInputError(str(exc))

    if isinstance(exc, BookingServiceError):
        view = context.get("view")
        logger.warning(
            "%s rejected in %s: %s",
            exc.__class__.__name__,
            view.__class__.__name__ if view else "unknown view",
            exc.message,
        )
        return error_response(exc)

    return exception_handler(exc, context)
