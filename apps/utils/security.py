"""
Security helpers for the Movemate backend.

- Log masking for the personal data shipments, tickets and chats carry
- Audit logging of destructive staff actions and blocked requests
- Screening of query strings for injection payloads
- Client IP extraction and response headers
"""

import logging
import re
from typing import Optional

from django.conf import settings
from django.http import HttpRequest


# ==================== LOG MASKING ====================

class SensitiveDataFilter(logging.Filter):
    """
    Masks credentials, e-mail local parts and phone numbers before a record reaches a handler.
    Senders, receivers and chat visitors all leave contact details in log lines.
    """

    PATTERNS = [
        (re.compile(r'(password|secret|token|api[_-]?key)(["\']?\s*[:=]\s*["\']?)[^"\'\s,}]+', re.I),
         r'\1\2***'),
        (re.compile(r'bearer\s+[\w.-]+', re.I), 'Bearer ***'),
        (re.compile(r'\b([\w.%+-])[\w.%+-]*@([\w-]+(?:\.[\w-]+)+)'), r'\1***@\2'),
        (re.compile(r'(?<![\w-])\+?\d(?: ?\d){9,14}\b'), '***PHONE***'),
    ]

    @classmethod
    def mask(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = self.mask(record.getMessage())
            record.args = None
        return True


# ==================== AUDIT ====================

class SecurityAuditLogger:
    """Audit trail on the 'security.audit' logger."""

    def __init__(self, logger_name: str = 'security.audit'):
        self.logger = logging.getLogger(logger_name)

    def log_admin_action(self, action: str, user_id, target: str):
        """Deletes and other changes staff cannot undo."""
        self.logger.info(f"ADMIN_ACTION: action={action}, user={user_id}, target={target}")

    def log_blocked_request(self, request: HttpRequest, reason: str, param: str):
        self.logger.warning(
            f"BLOCKED: reason={reason}, param={param}, path={request.path}, ip={client_ip(request)}"
        )


# ==================== QUERY SCREENING ====================

class QueryInspector:
    """
    Flags query-string values that look like script or SQL injection.
    Tracking IDs, names and addresses never match these.
    """

    XSS = re.compile(
        r'<\s*(script|iframe|object|embed|form)\b|javascript:|\bon\w+\s*=|(expression|eval)\s*\(',
        re.I
    )
    SQL_INJECTION = re.compile(
        r"\b(or|and)\b\s+['\"]?\w+['\"]?\s*=\s*['\"]?\w+"
        r"|\bunion\b.+\bselect\b|\bdrop\b\s+\btable\b|\bdelete\b\s+\bfrom\b|\binsert\b\s+\binto\b"
        r"|--\s*$|/\*.*\*/",
        re.I
    )

    @classmethod
    def threat(cls, value: str) -> Optional[str]:
        """Name of the detected attack, or None."""
        if not value:
            return None
        if cls.XSS.search(value):
            return 'xss'
        if cls.SQL_INJECTION.search(value):
            return 'sql_injection'
        return None


# ==================== REQUEST / RESPONSE ====================

def client_ip(request: HttpRequest) -> str:
    """First address in the proxy chain, falling back to the socket peer."""
    for header in ('HTTP_X_REAL_IP', 'HTTP_X_FORWARDED_FOR', 'REMOTE_ADDR'):
        value = request.META.get(header)
        if value:
            return value.split(',')[0].strip()
    return '127.0.0.1'


def add_security_headers(response) -> None:
    response['X-Content-Type-Options'] = 'nosniff'
    response['X-Frame-Options'] = 'DENY'
    response['Referrer-Policy'] = 'same-origin'
    # Receipts and QR codes are downloads; nothing here needs device APIs
    response['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

    if not settings.DEBUG and 'Content-Security-Policy' not in response:
        # Swagger UI at /api/docs/ loads its bundle from jsDelivr
        response['Content-Security-Policy'] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "img-src 'self' data: https:"
        )
