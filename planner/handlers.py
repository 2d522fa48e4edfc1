"""
REST framework exception handler for planner errors.
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import (
    Conflict,
    DuplicateException,
    NotFound,
    PersistenceFailure,
    PlannerError,
    PlannerValidationError,
)


ERROR_STATUS = [
    (PlannerValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (DuplicateException, status.HTTP_409_CONFLICT),
    (Conflict, status.HTTP_409_CONFLICT),
    (PersistenceFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def planner_exception_handler(exc, context):
    """Map planner errors to responses; defer everything else to DRF."""
    if not isinstance(exc, PlannerError):
        return exception_handler(exc, context)

    response_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_class, error_status in ERROR_STATUS:
        if isinstance(exc, error_class):
            response_status = error_status
            break

    body = {'error': str(exc), 'code': exc.code}
    if getattr(exc, 'field', None):
        body['field'] = exc.field
    return Response(body, status=response_status)
