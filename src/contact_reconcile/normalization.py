from __future__ import annotations

import logging
import re
import string
from typing import Optional

import phonenumbers
from email_validator import EmailNotValidError, validate_email

from .models import IdentifierKind, NormalizedIdentifier, RawIdentifier

logger = logging.getLogger(__name__)

NON_DIGIT_RE = re.compile(r"\D")

# digits needed before an untagged value is considered a phone number
MIN_PHONE_DIGITS = 7

HANDLE_PREFIX_CHARS = "@" + string.whitespace


def normalize_email(raw: Optional[str]) -> str:
    return (raw or "").strip().lower()


def normalize_phone(raw: Optional[str]) -> str:
    """
    Reduce a phone number to an E.164-shaped string.

    A leading ``+`` is kept as given. Without one, 10 digits are read as a US
    number (``+1`` prefix), 11 digits starting with ``1`` already carry the US
    country code, and any other count gets a bare ``+``. No dialing-plan
    validation is attempted here.
    """
    s = (raw or "").strip()
    if not s:
        return ""
    digits = NON_DIGIT_RE.sub("", s)
    if not digits:
        return ""
    if s.startswith("+"):
        return f"+{digits}"
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"


def normalize_handle(raw: Optional[str]) -> str:
    """Lowercase a handle without its ``@`` prefix. Repeated ``@`` are all dropped."""
    return (raw or "").lstrip(HANDLE_PREFIX_CHARS).rstrip().lower()


_NORMALIZERS = {
    IdentifierKind.EMAIL: normalize_email,
    IdentifierKind.PHONE: normalize_phone,
    IdentifierKind.CHAT_HANDLE: normalize_handle,
}


def normalize(raw: Optional[str], kind: IdentifierKind) -> str:
    return _NORMALIZERS[kind](raw)


def classify_identifier(raw: Optional[str]) -> IdentifierKind:
    """Guess whether an untagged value is an email or a phone number."""
    s = (raw or "").strip()
    if "@" in s:
        return IdentifierKind.EMAIL
    if s.startswith("+"):
        return IdentifierKind.PHONE
    digits = NON_DIGIT_RE.sub("", s)
    if len(digits) >= MIN_PHONE_DIGITS and len(digits) / len(s) > 0.5:
        return IdentifierKind.PHONE
    return IdentifierKind.EMAIL


def resolve_kind(identifier: RawIdentifier) -> IdentifierKind:
    return identifier.kind or classify_identifier(identifier.value)


def normalize_identifier(identifier: RawIdentifier) -> NormalizedIdentifier:
    kind = resolve_kind(identifier)
    return NormalizedIdentifier(value=normalize(identifier.value, kind), kind=kind)


def validate_email_safe(raw: str, check_deliverability: bool = False) -> str:
    candidate = (raw or "").strip()
    if not candidate:
        return ""
    try:
        result = validate_email(candidate, check_deliverability=check_deliverability)
    except EmailNotValidError:
        return ""
    return result.normalized


def is_valid_phone_safe(value: str) -> bool:
    s = (value or "").strip()
    if not s:
        return False
    try:
        region = None if s.startswith("+") else "US"
        parsed = phonenumbers.parse(s, region)
    except phonenumbers.NumberParseException:
        logger.debug("phonenumbers.parse failed for value of length %d", len(s))
        return False
    return phonenumbers.is_possible_number(parsed) and phonenumbers.is_valid_number(parsed)
