"""
Human-readable identifiers.

- GRIT ID:         GRIT + 6 digits           (GRIT321569)
- Application ID:  AP + 12 chars of [0-9A-Z]  (AP36S25D451F2G)
- Quote ID:        GQ + 12 digits            (GQ654236986523)
- Payment ID:      PAY + 10 digits
- Receipt number:  RCP + 10 digits

Uniqueness is checked against the database by the caller-supplied `exists`
coroutine. Generation gives up after MAX_ATTEMPTS collisions.
"""

import logging
import re
import secrets
import string
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 100

APPLICATION_ID_ALPHABET = string.digits + string.ascii_uppercase
APPLICATION_ID_PATTERN = re.compile(r"^AP[0-9A-Z]{12}$")


class IdentifierExhaustedError(RuntimeError):
    """Raised when no unused identifier was found within MAX_ATTEMPTS."""


def _random_number(digits: int) -> int:
    low = 10 ** (digits - 1)
    return low + secrets.randbelow(9 * low)


def generate_grit_id() -> str:
    return f"GRIT{_random_number(6)}"


def generate_application_id() -> str:
    suffix = "".join(secrets.choice(APPLICATION_ID_ALPHABET) for _ in range(12))
    return f"AP{suffix}"


def generate_quote_id() -> str:
    return f"GQ{_random_number(12)}"


def generate_payment_id() -> str:
    return f"PAY{_random_number(10)}"


def generate_receipt_number() -> str:
    return f"RCP{_random_number(10)}"


def is_application_id(value: str) -> bool:
    return bool(APPLICATION_ID_PATTERN.match(value))


async def generate_unique(
    generator: Callable[[], str],
    exists: Callable[[str], Awaitable[bool]],
    label: str = "identifier",
) -> str:
    """
    Draw identifiers from generator until exists() reports an unused one.

    Raises:
        IdentifierExhaustedError: After MAX_ATTEMPTS collisions
    """
    for _ in range(MAX_ATTEMPTS):
        candidate = generator()
        if not await exists(candidate):
            return candidate

    logger.error(f"Failed to generate unique {label} after {MAX_ATTEMPTS} attempts")
    raise IdentifierExhaustedError(
        f"Failed to generate unique {label} after maximum attempts"
    )


def generate_gmail_address(
    first_name: str | None,
    middle_name: str | None,
    last_name: str | None,
) -> str:
    """
    Build the processing Gmail address for an applicant.

    First initial, then for a multi-part last name the initial of its first
    part plus its last part, otherwise the middle initial (or the last
    name's own initial) plus the last name, followed by "usrn@gmail.com".

    >>> generate_gmail_address("Joy", "Jeric", "Alburo Cantila")
    'jacantilausrn@gmail.com'
    >>> generate_gmail_address("Maria", "Luz", "Santos")
    'mlsantosusrn@gmail.com'
    """
    first_initial = (first_name or "").strip()[:1].lower()
    last_parts = (last_name or "").split()

    if not last_parts:
        return f"{first_initial}usrn@gmail.com"

    if len(last_parts) > 1:
        second_initial = last_parts[0][:1].lower()
        last_part = last_parts[-1].lower()
    else:
        last_part = last_parts[0].lower()
        second_initial = (middle_name or "").strip()[:1].lower() or last_part[:1]

    return f"{first_initial}{second_initial}{last_part}usrn@gmail.com"
