"""
Error taxonomy shared by the messaging services, and the DRF exception
handler that turns it into ``{"error": ...}`` responses.
"""

import logging

from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


class MessagingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Forbidden(MessagingError):
    """Caller is known but is not a participant (or admin) of the conversation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not a participant in this conversation"


class NotFound(MessagingError):
    """Entity is absent or hidden from the caller by scoping rules."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidArgument(MessagingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidOperation(MessagingError):
    """Input is well formed but the state transition is not allowed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed"


def _flatten_validation_detail(detail):
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _flatten_validation_detail(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
    if isinstance(detail, list) and detail:
        return _flatten_validation_detail(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """
    Render every error as ``{"error": "<message>"}``.

    Messaging errors carry their own status. DRF errors keep the status DRF
    chose (401 for missing or bad credentials). Database failures are logged
    and answered with a generic 500.
    """
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if isinstance(exc, MessagingError):
        if isinstance(exc, Forbidden):
            logger.warning("Access denied in %s: %s", view_name, exc.message)
        return Response({"error": exc.message}, status=exc.status_code)

    if isinstance(exc, DatabaseError):
        logger.exception("Storage failure in %s", view_name)
        set_rollback()
        return Response(
            {"error": "Internal server error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {"error": _flatten_validation_detail(exc.detail)}
    elif isinstance(exc, Http404):
        response.data = {"error": "Not found"}
    elif isinstance(exc, APIException):
        response.data = {"error": str(exc.detail)}
    return response
