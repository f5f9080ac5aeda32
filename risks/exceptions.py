"""
Error types raised by the risk register and the API exception handler that
renders them.
"""

import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


VALIDATION_ERROR = 'VALIDATION_ERROR'
DUPLICATE_CONTROL = 'DUPLICATE_CONTROL'
HAS_DEPENDENTS = 'HAS_DEPENDENTS'
NOT_FOUND = 'NOT_FOUND'


class RiskRegisterError(exceptions.APIException):
    """Base class for errors that carry a stable error code."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Risk register error.'
    default_code = 'RISK_REGISTER_ERROR'


class DuplicateControl(RiskRegisterError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Control already assigned to this risk.'
    default_code = DUPLICATE_CONTROL


class HasDependents(RiskRegisterError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Cannot delete a record that still has dependents.'
    default_code = HAS_DEPENDENTS


class NotFound(RiskRegisterError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = NOT_FOUND


def _error_code(exc):
    if isinstance(exc, RiskRegisterError):
        return exc.default_code
    if isinstance(exc, exceptions.ValidationError):
        return VALIDATION_ERROR
    if isinstance(exc, exceptions.NotFound):
        return NOT_FOUND
    codes = exc.get_codes()
    if isinstance(codes, str):
        return codes.upper()
    return exc.default_code.upper()


def risk_exception_handler(exc, context):
    """
    Render API errors as ``{"error": {"code", "message", "details"}}``.

    Anything DRF does not recognise is left alone and surfaces as a 500.
    """
    if isinstance(exc, ObjectDoesNotExist):
        exc = exceptions.NotFound(str(exc) or None)
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        return None

    code = _error_code(exc)
    if isinstance(exc, exceptions.ValidationError):
        message = 'The given data was invalid.'
        details = response.data
    else:
        message = str(exc.detail)
        details = None

    if response.status_code >= 500:
        logger.error(f"API error {code}: {message}")
    else:
        logger.info(f"API error {code}: {message}")

    response.data = {
        'error': {
            'code': code,
            'message': message,
            'details': details,
        }
    }
    return response
