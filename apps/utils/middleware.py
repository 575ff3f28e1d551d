"""
Request middleware for the Movemate backend.
"""

import logging
from django.conf import settings
from django.http import JsonResponse
from apps.utils.security import (
    add_security_headers,
    client_ip,
    QueryInspector,
    SecurityAuditLogger,
)

logger = logging.getLogger('security')


class SecurityHeadersMiddleware:

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        add_security_headers(response)
        return response


class RequestLoggingMiddleware:
    """
    Access log for the staff console and for public endpoints that create rows.
    """

    LOGGED_PREFIXES = (
        '/api/auth/',
        '/api/analytics/',
        '/api/shipping/admin/',
        '/api/shipping/request/',
        '/api/support/admin/',
        '/api/support/tickets/',
        '/api/support/chat/',
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        if request.path.startswith(self.LOGGED_PREFIXES) and request.method != 'OPTIONS':
            user = getattr(request, 'user', None)
            logger.info(
                f"API_ACCESS: {request.method} {request.path} status={response.status_code} "
                f"user={getattr(user, 'pk', None)} ip={client_ip(request)}"
            )

        return response


class SuspiciousActivityMiddleware:
    """
    Rejects requests whose query string carries script or SQL injection payloads.
    In DEBUG the request is only logged.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.audit = SecurityAuditLogger()

    def __call__(self, request):
        for param, value in request.GET.items():
            threat = QueryInspector.threat(value)
            if threat is None:
                continue

            self.audit.log_blocked_request(request, threat, param)
            if not settings.DEBUG:
                return JsonResponse({'error': 'Request blocked for security reasons'}, status=403)

        return self.get_response(request)
