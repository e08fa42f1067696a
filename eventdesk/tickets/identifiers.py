"""Ticket number and verification code generation."""

from __future__ import annotations

import secrets
import time

TICKET_NUMBER_LENGTH = 16
_TIME_PREFIX_DIGITS = 4

# Letters and digits that are easy to confuse when read aloud or printed
# (0/O, 1/I) are left out.
VERIFICATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
VERIFICATION_CODE_LENGTH = 6


def generate_ticket_number(*, now_ms: int | None = None) -> str:
    """Return a 16 digit candidate ticket number.

    The first four digits come from the current epoch milliseconds and the
    remaining twelve are random. Candidates are not unique on their own and
    must be checked before use.
    """

    millis = int(time.time() * 1000) if now_ms is None else now_ms
    prefix = str(millis)[-_TIME_PREFIX_DIGITS:].rjust(_TIME_PREFIX_DIGITS, "0")
    random_part = "".join(
        str(secrets.randbelow(10)) for _ in range(TICKET_NUMBER_LENGTH - _TIME_PREFIX_DIGITS)
    )
    return prefix + random_part


def generate_verification_code(length: int = VERIFICATION_CODE_LENGTH) -> str:
    return "".join(secrets.choice(VERIFICATION_CODE_ALPHABET) for _ in range(length))


def is_ticket_number(value: str) -> bool:
    return len(value) == TICKET_NUMBER_LENGTH and value.isascii() and value.isdigit()
