"""Phone number utilities for consistent handling across the application."""

import logging
import re

from smsgate.core.exceptions import InvalidPhoneNumberError

logger = logging.getLogger(__name__)

E164_US_PATTERN = re.compile(r"^\+1\d{10}$")

# Separators accepted in bulk phone lists: newline, comma, semicolon, tab
_LIST_SEPARATORS = re.compile(r"\r?\n|,|;|\t")


def normalize_phone_e164(phone: str | None) -> str | None:
    """Normalize phone number to E.164 format (+1XXXXXXXXXX for US numbers).

    Handles various input formats:
        (281)788-2316 → +12817882316
        281-788-2316  → +12817882316
        +1 281 788 2316 → +12817882316
        1-281-788-2316 → +12817882316
        +44 7911 123456 → +447911123456
        +65 8234 5678 → +6582345678

    Input that starts with + is already international and keeps its own
    country code; only national input gets the +1 prefix.

    Returns:
        Phone in E.164 format or None if it cannot be normalized
    """
    if not phone:
        return None

    trimmed = phone.strip()
    digits = re.sub(r"\D", "", trimmed)

    if trimmed.startswith("+"):
        if len(digits) >= 10:
            return f"+{digits}"
    elif len(digits) == 10:
        return f"+1{digits}"
    elif len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"

    logger.warning(f"Could not normalize phone number: {phone}")
    return None


def normalize_to_e164_us(phone: str | None) -> str:
    """Normalize common US formats to +1XXXXXXXXXX.

    Raises:
        InvalidPhoneNumberError: If the input is empty or not a US number
    """
    if not phone or not str(phone).strip():
        raise InvalidPhoneNumberError("No phone number provided")
    trimmed = str(phone).strip()

    if E164_US_PATTERN.match(trimmed):
        return trimmed

    digits = re.sub(r"\D", "", trimmed)
    if trimmed.startswith("+"):
        if len(digits) == 11 and digits.startswith("1"):
            return f"+{digits}"
        raise InvalidPhoneNumberError(f'Not a US number: "{phone}". Expected +1XXXXXXXXXX.')

    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"

    raise InvalidPhoneNumberError(
        f'Invalid US number format: "{phone}". '
        "Expected 10 digits, 11 digits starting with 1, or +1XXXXXXXXXX."
    )


def assert_e164_us(phone: str | None) -> str:
    """Strict E.164 US check; no reformatting is attempted.

    Raises:
        InvalidPhoneNumberError: If the input is not exactly +1XXXXXXXXXX
    """
    value = str(phone or "").strip()
    if not E164_US_PATTERN.match(value):
        raise InvalidPhoneNumberError(
            f'Invalid format: "{phone}". Expected E.164 US format: +1XXXXXXXXXX'
        )
    return value


def is_valid_origin(phone: str, pattern: str) -> bool:
    """Check a canonical sender against the supported origin format."""
    return bool(phone) and re.match(pattern, phone) is not None


def parse_phone_list(blob: str | None) -> list[str]:
    """Split a pasted or file-loaded phone list into unique raw entries.

    Entries may be separated by newlines, commas, semicolons or tabs. Lines
    starting with ``#`` or ``//`` are comments. Order of first appearance is
    kept; entries are not normalized.
    """
    seen: set[str] = set()
    entries: list[str] = []
    for token in _LIST_SEPARATORS.split(blob or ""):
        token = token.strip()
        if not token or token.startswith("#") or token.startswith("//"):
            continue
        if token not in seen:
            seen.add(token)
            entries.append(token)
    return entries
