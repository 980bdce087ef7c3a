"""Map a property's TYPE parameter tokens to a normalized (category, label, primary).

The first token that matches nothing becomes a ``custom`` category carrying that
token as its label. Once any category is chosen, further unmatched tokens are
ignored, while recognized tokens still override.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

CUSTOM = "custom"
PREF = "PREF"

PHONE_HOME = "home"
PHONE_WORK = "work"
PHONE_MOBILE = "mobile"
PHONE_OTHER = "other"
PHONE_MAIN = "main"
PHONE_FAX_HOME = "fax_home"
PHONE_FAX_WORK = "fax_work"
PHONE_OTHER_FAX = "other_fax"

PHONE_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "HOME": PHONE_HOME,
        "WORK": PHONE_WORK,
        "CELL": PHONE_MOBILE,
        "PAGER": "pager",
        "CAR": "car",
        "ISDN": "isdn",
        "OTHER": PHONE_OTHER,
        "CALLBACK": "callback",
        "COMPANY-MAIN": "company_main",
        "RADIO": "radio",
        "TELEX": "telex",
        "TTY-TDD": "tty_tdd",
        "ASSISTANT": "assistant",
        "MSG": "mms",
        "MAIN": PHONE_MAIN,
    }
)

_PHONE_FAX_VARIANTS: Mapping[str, str] = MappingProxyType(
    {
        PHONE_HOME: PHONE_FAX_HOME,
        PHONE_WORK: PHONE_FAX_WORK,
        PHONE_OTHER: PHONE_OTHER_FAX,
    }
)

EMAIL_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "HOME": "home",
        "WORK": "work",
        "CELL": "mobile",
    }
)

POSTAL_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "HOME": "home",
        "WORK": "work",
        # Emitted by Windows Mobile.
        "COMPANY": "work",
    }
)

# No normalized category exists for these; they are recognized and dropped.
POSTAL_DISCARDED_TYPES = frozenset({"PARCEL", "DOM", "INTL"})

IM_PROPERTY_PROTOCOLS: Mapping[str, str] = MappingProxyType(
    {
        "X-AIM": "aim",
        "X-MSN": "msn",
        "X-YAHOO": "yahoo",
        "X-ICQ": "icq",
        "X-JABBER": "jabber",
        "X-SKYPE-USERNAME": "skype",
        "X-GOOGLE-TALK": "google_talk",
        "X-GOOGLE TALK": "google_talk",
    }
)


@dataclass(frozen=True)
class TypeResolution:
    category: str
    label: Optional[str] = None
    is_primary: bool = False


def _strip_x_prefix(token: str) -> str:
    if token[:2].upper() == "X-":
        return token[2:]
    return token


def _resolve_with_table(
    tokens: Optional[Iterable[str]],
    table: Mapping[str, str],
    default: str,
    ignored: Iterable[str] = (),
) -> TypeResolution:
    category: Optional[str] = None
    label: Optional[str] = None
    is_primary = False
    ignored_set = frozenset(ignored)
    for token in tokens or ():
        upper = token.upper()
        if upper == PREF:
            is_primary = True
        elif upper in table:
            category = table[upper]
            label = None
        elif upper in ignored_set:
            continue
        elif category is None:
            category = CUSTOM
            label = _strip_x_prefix(token)
        else:
            logger.debug("Ignoring extra unmatched TYPE token %r", token)
    if category is None:
        category = default
    return TypeResolution(category=category, label=label, is_primary=is_primary)


def resolve_postal_type(tokens: Optional[Iterable[str]]) -> TypeResolution:
    return _resolve_with_table(tokens, POSTAL_TYPES, "home", ignored=POSTAL_DISCARDED_TYPES)


def resolve_email_type(tokens: Optional[Iterable[str]]) -> TypeResolution:
    return _resolve_with_table(tokens, EMAIL_TYPES, "other")


def resolve_phone_type(tokens: Optional[Iterable[str]]) -> TypeResolution:
    """Resolve TEL types, including the PREF-only and FAX combinations."""
    category: Optional[str] = None
    label: Optional[str] = None
    is_primary = False
    is_fax = False
    for token in tokens or ():
        upper = token.upper()
        if upper == PREF:
            is_primary = True
        elif upper == "FAX":
            is_fax = True
        elif upper == "VOICE":
            continue
        else:
            candidate = _strip_x_prefix(token) if category is None else token
            known = PHONE_TYPES.get(candidate.upper())
            if known is not None:
                category = known
                label = None
            elif category is None:
                category = CUSTOM
                label = candidate
    if category is None:
        category = PHONE_MAIN if is_primary else PHONE_HOME
    if is_fax:
        category = _PHONE_FAX_VARIANTS.get(category, category)
    return TypeResolution(category=category, label=label, is_primary=is_primary)


def resolve_im_type(property_name: str, tokens: Optional[Iterable[str]]) -> TypeResolution:
    # home/work overrides reuse the phone categories.
    category: Optional[str] = IM_PROPERTY_PROTOCOLS.get(property_name)
    is_primary = False
    for token in tokens or ():
        upper = token.upper()
        if upper == PREF:
            is_primary = True
        elif upper == "HOME":
            category = PHONE_HOME
        elif upper == "WORK":
            category = PHONE_WORK
    return TypeResolution(category=category or PHONE_HOME, is_primary=is_primary)


def has_preference_marker(tokens: Optional[Iterable[str]]) -> bool:
    return any(token.upper() == PREF for token in tokens or ())


def resolve_photo_type(tokens: Optional[Iterable[str]]) -> TypeResolution:
    """The first non-PREF token names the image format."""
    format_name: Optional[str] = None
    is_primary = False
    for token in tokens or ():
        if token.upper() == PREF:
            is_primary = True
        elif format_name is None:
            format_name = token
    return TypeResolution(category="photo", label=format_name, is_primary=is_primary)


__all__ = [
    "CUSTOM",
    "EMAIL_TYPES",
    "IM_PROPERTY_PROTOCOLS",
    "PHONE_OTHER",
    "PHONE_TYPES",
    "POSTAL_DISCARDED_TYPES",
    "POSTAL_TYPES",
    "TypeResolution",
    "has_preference_marker",
    "resolve_email_type",
    "resolve_im_type",
    "resolve_phone_type",
    "resolve_photo_type",
    "resolve_postal_type",
]
