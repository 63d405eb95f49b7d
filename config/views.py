import logging

from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """Liveness probe that also checks the database connection."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except Exception:
        logger.exception('Health check failed: database unreachable')
        return JsonResponse({'status': 'unhealthy'}, status=503)

    return JsonResponse({'status': 'ok'})


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse(
        {'error': {'code': 'not_found', 'message': 'The requested resource was not found.'}},
        status=404,
    )


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse(
        {'error': {'code': 'internal_error', 'message': 'An unexpected error occurred. Please try again later.'}},
        status=500,
    )
