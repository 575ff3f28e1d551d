"""
Human-readable identifiers for shipments, support tickets and chat sessions.

Each identifier has exactly one generator. Callers never build ids inline.
"""

import re
import secrets
import string
import time
from typing import Optional

TRACKING_PREFIX = 'MM-LX-'
TICKET_PREFIX = 'TKT'
SESSION_PREFIX = 'CHAT'

TRACKING_ALPHABET = string.ascii_uppercase + string.digits
BASE36_ALPHABET = string.digits + string.ascii_uppercase

TRACKING_ID_PATTERN = re.compile(r'^MM-LX-[A-Z0-9]{5}$', re.IGNORECASE)


def to_base36(value: int) -> str:
    """Encode a non-negative integer in upper-case base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return '0'
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_ALPHABET[rem])
    return ''.join(reversed(digits))


def _random_chars(alphabet: str, length: int) -> str:
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def _epoch_ms(now: Optional[float] = None) -> int:
    return int((time.time() if now is None else now) * 1000)


def generate_tracking_id() -> str:
    """MM-LX- followed by 5 random alphanumeric characters."""
    return f"{TRACKING_PREFIX}{_random_chars(TRACKING_ALPHABET, 5)}"


def normalize_tracking_id(value: str) -> str:
    return (value or '').strip().upper()


def is_valid_tracking_id(value: str) -> bool:
    """Accepts both the alphanumeric and the legacy 5-digit forms."""
    if not value:
        return False
    return bool(TRACKING_ID_PATTERN.match(value.strip()))


def generate_ticket_id(now: Optional[float] = None) -> str:
    return f"{TICKET_PREFIX}-{to_base36(_epoch_ms(now))}-{_random_chars(BASE36_ALPHABET, 3)}"


def generate_session_id(now: Optional[float] = None) -> str:
    return f"{SESSION_PREFIX}-{to_base36(_epoch_ms(now))}-{_random_chars(BASE36_ALPHABET, 4)}"


def generate_entry_id(now: Optional[float] = None) -> str:
    """Id for an entry appended to a JSON list (responses, messages)."""
    return str(_epoch_ms(now))
