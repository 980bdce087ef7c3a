from __future__ import annotations

import logging
from typing import Optional

import phonenumbers
from phonenumbers import NumberParseException

from .models import Variant

logger = logging.getLogger(__name__)


def strip_to_dial_string(raw: str) -> str:
    """Keep ASCII digits, plus a leading '+' when it opens the trimmed input."""
    trimmed = (raw or "").strip()
    return "".join(
        ch for index, ch in enumerate(trimmed) if "0" <= ch <= "9" or (index == 0 and ch == "+")
    )


def _format_keeping_digits(digits: str, region: Optional[str], number_format: int) -> str:
    """Format with phonenumbers, unless that would add, drop or change a digit."""
    try:
        parsed = phonenumbers.parse(digits, region)
    except NumberParseException:
        logger.debug("phonenumbers.parse failed for %s (%s)", digits, region)
        return digits
    if not phonenumbers.is_valid_number(parsed):
        return digits
    formatted = phonenumbers.format_number(parsed, number_format)
    if strip_to_dial_string(formatted) != digits:
        logger.debug("Keeping %s unformatted, phonenumbers rendered %s", digits, formatted)
        return digits
    return formatted


def _format_japan(digits: str) -> str:
    number_format = (
        phonenumbers.PhoneNumberFormat.INTERNATIONAL
        if digits.startswith("+")
        else phonenumbers.PhoneNumberFormat.NATIONAL
    )
    return _format_keeping_digits(digits, "JP", number_format)


def _format_default(digits: str) -> str:
    # Without a country prefix there is nothing to anchor a region on.
    if not digits.startswith("+"):
        return digits
    return _format_keeping_digits(digits, None, phonenumbers.PhoneNumberFormat.E164)


def format_phone_for_variant(digits: str, variant: Variant = Variant.DEFAULT) -> str:
    if not digits or digits == "+":
        return digits
    if Variant.parse(variant).is_japan_device:
        return _format_japan(digits)
    return _format_default(digits)


def normalize_phone(raw: str, variant: Variant = Variant.DEFAULT) -> str:
    return format_phone_for_variant(strip_to_dial_string(raw), variant)


__all__ = ["format_phone_for_variant", "normalize_phone", "strip_to_dial_string"]
