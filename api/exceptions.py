"""
Custom Exception Handler for API
"""
import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.core.exceptions import LocalBizException

logger = logging.getLogger(__name__)

DRF_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMITED",
}


def _first_error(detail) -> str:
    """Flatten DRF's nested validation detail into one readable line."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_error(value)
            return message if field == 'non_field_errors' else f"{field}: {message}"
    if isinstance(detail, list) and detail:
        return _first_error(detail[0])
    return str(detail)


def custom_exception_handler(exc, context):
    """
    Render every error as ``{success: false, message, code, ...}``.
    """
    if isinstance(exc, LocalBizException):
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}")
        body = {"success": False, "message": exc.message, "code": exc.code}
        body.update(exc.extra())
        return Response(body, status=exc.status_code)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, ValidationError):
            body = {
                "success": False,
                "message": f"Validation failed - {_first_error(exc.detail)}",
                "code": "VALIDATION_ERROR",
                "errors": exc.detail,
            }
        else:
            detail = response.data.get('detail', str(exc)) if isinstance(response.data, dict) else str(exc)
            body = {
                "success": False,
                "message": str(detail),
                "code": DRF_ERROR_CODES.get(response.status_code, "ERROR"),
            }
        response.data = body
        return response

    # Handle unexpected exceptions
    logger.exception(f"Unhandled exception: {exc}")
    return Response(
        {
            "success": False,
            "message": "An unexpected error occurred",
            "code": "SERVER_ERROR",
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
