"""
Custom exception handler for Django REST Framework.

Service-layer exceptions bubble out of the views and are turned into
consistent JSON errors here:

{
    "error": {
        "code": "error_code",
        "message": "Human-readable message"
    }
}

Serializer validation errors keep DRF's per-field format.
"""
import logging

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.accounts.services.exceptions import (
    AccountsServiceError,
    InvalidCredentialsError,
    InactiveAccountError,
    PasswordConfirmationError,
    UserNotFoundError,
)
from apps.groups.services.exceptions import (
    AuthenticationRequiredError,
    ConflictError,
    ForbiddenError,
    GroupsServiceError,
    InvalidInputError,
    NotFoundError,
    PreconditionFailedError,
)

logger = logging.getLogger(__name__)


# Order matters: subclasses before their categories.
GROUPS_ERROR_STATUS = [
    (AuthenticationRequiredError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (PreconditionFailedError, status.HTTP_412_PRECONDITION_FAILED),
]

ACCOUNTS_ERROR_STATUS = [
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (PasswordConfirmationError, status.HTTP_401_UNAUTHORIZED),
    (InactiveAccountError, status.HTTP_403_FORBIDDEN),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND),
]


def _status_for(exc, table, default):
    for exc_class, http_status in table:
        if isinstance(exc, exc_class):
            return http_status
    return default


def service_error_response(exc):
    """Build the JSON response for a service-layer exception."""
    if isinstance(exc, GroupsServiceError):
        http_status = _status_for(exc, GROUPS_ERROR_STATUS, status.HTTP_400_BAD_REQUEST)
        code = str(exc.code) if exc.code else 'error'
    else:
        http_status = _status_for(exc, ACCOUNTS_ERROR_STATUS, status.HTTP_400_BAD_REQUEST)
        code = exc.code

    return Response(
        {'error': {'code': code, 'message': str(exc)}},
        status=http_status,
    )


def custom_exception_handler(exc, context):
    if isinstance(exc, (GroupsServiceError, AccountsServiceError)):
        logger.debug('Service error in %s: %s', context.get('view', 'unknown view'), exc)
        return service_error_response(exc)

    response = exception_handler(exc, context)

    if response is None:
        # Unhandled exception
        logger.exception(
            'Unhandled exception in %s',
            context.get('view', 'unknown view'),
            exc_info=exc,
        )
        return Response(
            {
                'error': {
                    'code': 'internal_error',
                    'message': 'An unexpected error occurred. Please try again later.',
                },
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, DRFValidationError):
        return response

    if isinstance(exc, Http404):
        response.data = {'error': {'code': 'not_found', 'message': 'The requested resource was not found.'}}
    elif isinstance(exc, APIException):
        response.data = {
            'error': {
                'code': exc.get_codes() if isinstance(exc.get_codes(), str) else 'error',
                'message': str(exc.detail),
            },
        }

    return response
