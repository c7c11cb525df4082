import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

PASSTHROUGH_HEADERS = ('WWW-Authenticate', 'Retry-After')


class RuleViolation(APIException):
    """A placement or lifecycle rule refused the requested change."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The requested change violates a ward or team rule.'
    default_code = 'rule_violation'


class Conflict(RuleViolation):
    """The target is in a state that no longer permits the change."""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'conflict'


def _first_message(detail) -> str:
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', context.get('view'))
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': 'An unexpected error occurred.'}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    # normalize response
    if isinstance(exc, ValidationError):
        error = {
            'code': 'validation_error',
            'message': _first_message(resp.data) or 'Validation failed.',
            'fields': resp.data if isinstance(resp.data, dict) else {'_form': resp.data},
        }
    else:
        detail = resp.data.get('detail') if isinstance(resp.data, dict) else resp.data
        code = getattr(detail, 'code', None) or getattr(exc, 'default_code', None) or 'api_error'
        error = {'code': code, 'message': _first_message(detail)}
    headers = {h: resp[h] for h in PASSTHROUGH_HEADERS if resp.has_header(h)}
    return Response({'ok': False, 'error': error}, status=resp.status_code, headers=headers)
