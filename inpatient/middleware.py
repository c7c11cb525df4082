import logging
import time

logger = logging.getLogger('inpatient.requests')


class RequestLogMiddleware:
    """Log every mutating API request with its outcome and duration."""
    LOGGED_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.method not in self.LOGGED_METHODS:
            return self.get_response(request)
        started = time.monotonic()
        response = self.get_response(request)
        user = getattr(request, 'user', None)
        logger.info(
            '%s %s -> %s (%.1f ms, user=%s)',
            request.method,
            request.path,
            response.status_code,
            (time.monotonic() - started) * 1000,
            getattr(user, 'id', None) if user is not None and user.is_authenticated else '-',
        )
        return response
