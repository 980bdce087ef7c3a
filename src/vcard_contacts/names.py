from __future__ import annotations

from typing import List, Optional, Sequence

from .models import CardVersion, ContactRecord, Variant

STRUCTURED_NAME_FIELDS = ("family_name", "given_name", "middle_name", "prefix", "suffix")
# Some Japanese handsets put "family;given;middle" in SOUND.
PHONETIC_NAME_FIELDS = ("phonetic_family_name", "phonetic_given_name", "phonetic_middle_name")

_V21_ESCAPABLE = frozenset("\\;:,")


def assign_name_segments(
    record: ContactRecord, segments: Optional[Sequence[str]], fields: Sequence[str]
) -> None:
    """Write segment i into fields[i]; extra segments are dropped, missing fields untouched."""
    if not segments:
        return
    for field_name, value in zip(fields, segments):
        setattr(record, field_name, value)


def _unescape_character(ch: str, version: CardVersion) -> Optional[str]:
    if version is CardVersion.V30:
        return "\n" if ch in ("n", "N") else ch
    return ch if ch in _V21_ESCAPABLE else None


def unescape_text(value: str, version: CardVersion = CardVersion.V21) -> str:
    version = CardVersion.parse(version)
    chars: List[str] = []
    index = 0
    length = len(value)
    while index < length:
        ch = value[index]
        if ch == "\\" and index < length - 1:
            unescaped = _unescape_character(value[index + 1], version)
            if unescaped is not None:
                chars.append(unescaped)
                index += 2
                continue
        chars.append(ch)
        index += 1
    return "".join(chars)


def split_escaped_values(value: str, version: CardVersion = CardVersion.V21) -> List[str]:
    """Split on unescaped ';', unescaping with the rules of the given card version."""
    version = CardVersion.parse(version)
    parts: List[str] = []
    current: List[str] = []
    index = 0
    length = len(value)
    while index < length:
        ch = value[index]
        if ch == "\\" and index < length - 1:
            unescaped = _unescape_character(value[index + 1], version)
            if unescaped is not None:
                current.append(unescaped)
                index += 2
                continue
            current.append(ch)
        elif ch == ";":
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        index += 1
    parts.append("".join(current))
    return parts


def contains_only_printable_ascii(text: Optional[str]) -> bool:
    return all(" " <= ch <= "~" for ch in text or "")


def name_template(
    variant: Variant,
    family: Optional[str],
    given: Optional[str],
    middle: Optional[str],
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> List[Optional[str]]:
    order = Variant.parse(variant).name_order
    if order == "japanese":
        if contains_only_printable_ascii(family) and contains_only_printable_ascii(given):
            return [prefix, given, middle, family, suffix]
        return [prefix, family, middle, given, suffix]
    if order == "europe":
        return [prefix, middle, given, family, suffix]
    return [prefix, given, middle, family, suffix]


def construct_name(
    variant: Variant,
    family: Optional[str],
    given: Optional[str],
    middle: Optional[str],
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> str:
    parts = name_template(variant, family, given, middle, prefix, suffix)
    return " ".join(part for part in parts if part)


def synthesize_display_name(record: ContactRecord) -> str:
    """Pick the display name from the richest source present on the record.

    Precedence: full name, literal name parts, phonetic name parts, first
    email, first phone, first postal address, then the empty string.
    """
    if record.full_name:
        return record.full_name
    if record.family_name or record.given_name:
        return construct_name(
            record.variant,
            record.family_name,
            record.given_name,
            record.middle_name,
            record.prefix,
            record.suffix,
        )
    if record.phonetic_family_name or record.phonetic_given_name:
        return construct_name(
            record.variant,
            record.phonetic_family_name,
            record.phonetic_given_name,
            record.phonetic_middle_name,
        )
    if record.emails:
        return record.emails[0].value
    if record.phones:
        return record.phones[0].value
    if record.postal_addresses:
        return record.postal_addresses[0].formatted_address(record.variant)
    return ""


__all__ = [
    "PHONETIC_NAME_FIELDS",
    "STRUCTURED_NAME_FIELDS",
    "assign_name_segments",
    "construct_name",
    "contains_only_printable_ascii",
    "name_template",
    "split_escaped_values",
    "synthesize_display_name",
    "unescape_text",
]
