import logging

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting update."
    default_code = "conflict"


class StaleSnapshotError(ConflictError):
    default_detail = "Student data changed since the preview was taken. Run the preview again."
    default_code = "stale_snapshot"


def _first_message(detail):
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if message:
                return message if key in ("non_field_errors", "detail") else f"{key}: {message}"
        return ""
    if isinstance(detail, (list, tuple)):
        for item in detail:
            message = _first_message(item)
            if message:
                return message
        return ""
    return str(detail)


def api_exception_handler(exc, context):
    """
    Render every API failure as {"error": "..."}; validation errors also carry
    the per-field messages under "fields".
    """
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled API error",
            extra={"view": view.__class__.__name__ if view else None},
        )
        return Response({"error": "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, ValidationError):
        payload = {"error": _first_message(exc.detail) or "Invalid input", "fields": exc.detail}
    elif isinstance(exc, Http404):
        payload = {"error": str(exc) or "Not found"}
    else:
        payload = {"error": _first_message(response.data) or "Request failed"}
    response.data = payload
    return response
