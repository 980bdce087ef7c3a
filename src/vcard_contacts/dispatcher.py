from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional

from .models import (
    TYPE_PARAM,
    VALUE_PARAM,
    CardVersion,
    ContactRecord,
    EmailEntry,
    ImEntry,
    PhoneEntry,
    PhotoEntry,
    PostalEntry,
    Property,
    Variant,
)
from .names import (
    PHONETIC_NAME_FIELDS,
    STRUCTURED_NAME_FIELDS,
    assign_name_segments,
    split_escaped_values,
    synthesize_display_name,
)
from .organization import DEFAULT_ORGANIZATION_CATEGORY, OrganizationMerger
from .phone import normalize_phone
from .postal import pack_postal_slots
from .type_resolver import (
    IM_PROPERTY_PROTOCOLS,
    PHONE_OTHER,
    has_preference_marker,
    resolve_email_type,
    resolve_im_type,
    resolve_phone_type,
    resolve_photo_type,
    resolve_postal_type,
)

logger = logging.getLogger(__name__)

IRMC_PHONETIC_NAME_TYPE = "X-IRMC-N"
SKYPE_PSTN_PROPERTY = "X-SKYPE-PSTNNUMBER"

# Known names with no counterpart on the record.
IGNORED_PROPERTIES = frozenset(
    {
        "VERSION",
        "ROLE",
        "REV",
        "UID",
        "KEY",
        "MAILER",
        "TZ",
        "GEO",
        "CLASS",
        "PROFILE",
        "CATEGORIES",
        "SOURCE",
        "PRODID",
        "BEGIN",
        "END",
    }
)

Handler = Callable[[Property, str], None]


class PropertyDispatcher:
    """Feeds tokenized card properties into a single ContactRecord.

    ``dispatch`` may be called any number of times in any order; ``consolidate``
    is called once afterwards and freezes the record.
    """

    def __init__(self, record: Optional[ContactRecord] = None, **record_options: Any):
        self.record = record if record is not None else ContactRecord(**record_options)
        self.organizations = OrganizationMerger(self.record.organizations)
        handlers: Dict[str, Handler] = {
            "FN": self._handle_full_name,
            "NAME": self._handle_display_name,
            "N": self._handle_structured_name,
            "SORT-STRING": self._handle_sort_string,
            "NICKNAME": self._handle_nickname,
            "X-NICKNAME": self._handle_nickname,
            "SOUND": self._handle_sound,
            "ADR": self._handle_address,
            "EMAIL": self._handle_email,
            "ORG": self._handle_organization,
            "TITLE": self._handle_title,
            "PHOTO": self._handle_photo,
            "LOGO": self._handle_photo,
            "TEL": self._handle_phone,
            SKYPE_PSTN_PROPERTY: self._handle_skype_phone,
            "NOTE": self._handle_note,
            "URL": self._handle_url,
            "X-PHONETIC-FIRST-NAME": self._handle_phonetic_given,
            "X-PHONETIC-MIDDLE-NAME": self._handle_phonetic_middle,
            "X-PHONETIC-LAST-NAME": self._handle_phonetic_family,
            "BDAY": self._handle_birthday,
        }
        for im_property in IM_PROPERTY_PROTOCOLS:
            handlers[im_property] = self._handle_im
        self._handlers = handlers

    @property
    def variant(self) -> Variant:
        return self.record.variant

    @property
    def version(self) -> CardVersion:
        return self.record.version

    def dispatch(self, prop: Property) -> None:
        self.record.ensure_mutable()
        if not prop.values:
            logger.debug("Dropping %s with no value", prop.name)
            return
        handler = self._handlers.get(prop.name)
        if handler is None:
            if prop.name not in IGNORED_PROPERTIES:
                logger.debug("Ignoring unsupported property %s", prop.name)
            return
        handler(prop, prop.joined_value())

    def dispatch_all(self, properties: Iterable[Property]) -> None:
        for prop in properties:
            self.dispatch(prop)

    def consolidate(self) -> ContactRecord:
        self.record.mark_consolidated(synthesize_display_name(self.record))
        return self.record

    # -- names --------------------------------------------------------------

    def _handle_full_name(self, prop: Property, value: str) -> None:
        self.record.full_name = value

    def _handle_display_name(self, prop: Property, value: str) -> None:
        # NAME only fills in when FN never arrived.
        if self.record.full_name is None:
            self.record.full_name = value

    def _handle_structured_name(self, prop: Property, value: str) -> None:
        assign_name_segments(self.record, prop.values, STRUCTURED_NAME_FIELDS)

    def _handle_sort_string(self, prop: Property, value: str) -> None:
        self.record.phonetic_full_name = value

    def _handle_nickname(self, prop: Property, value: str) -> None:
        self.record.nicknames.append(value)

    def _handle_sound(self, prop: Property, value: str) -> None:
        types = prop.get_parameters(TYPE_PARAM) or []
        if not any(token.upper() == IRMC_PHONETIC_NAME_TYPE for token in types):
            return
        segments = split_escaped_values(value, self.version)
        assign_name_segments(self.record, segments, PHONETIC_NAME_FIELDS)

    def _handle_phonetic_given(self, prop: Property, value: str) -> None:
        self.record.phonetic_given_name = value

    def _handle_phonetic_middle(self, prop: Property, value: str) -> None:
        self.record.phonetic_middle_name = value

    def _handle_phonetic_family(self, prop: Property, value: str) -> None:
        self.record.phonetic_family_name = value

    def _handle_birthday(self, prop: Property, value: str) -> None:
        self.record.birthday = value

    # -- repeatable fields --------------------------------------------------

    def _handle_address(self, prop: Property, value: str) -> None:
        if not any(prop.values):
            logger.debug("Dropping ADR with only empty components")
            return
        resolution = resolve_postal_type(prop.get_parameters(TYPE_PARAM))
        self.record.postal_addresses.append(
            PostalEntry(
                slots=pack_postal_slots(prop.values),
                category=resolution.category,
                label=resolution.label,
                is_primary=resolution.is_primary,
            )
        )

    def _handle_email(self, prop: Property, value: str) -> None:
        resolution = resolve_email_type(prop.get_parameters(TYPE_PARAM))
        self.record.emails.append(
            EmailEntry(
                category=resolution.category,
                value=value,
                label=resolution.label,
                is_primary=resolution.is_primary,
            )
        )

    def _handle_organization(self, prop: Property, value: str) -> None:
        is_primary = has_preference_marker(prop.get_parameters(TYPE_PARAM))
        self.organizations.apply_organization(
            DEFAULT_ORGANIZATION_CATEGORY, prop.values, is_primary
        )

    def _handle_title(self, prop: Property, value: str) -> None:
        self.organizations.apply_title(value)

    def _handle_photo(self, prop: Property, value: str) -> None:
        value_params = prop.get_parameters(VALUE_PARAM) or []
        if "URL" in value_params:
            logger.debug("Skipping %s given by URL reference", prop.name)
            return
        resolution = resolve_photo_type(prop.get_parameters(TYPE_PARAM))
        self.record.photos.append(
            PhotoEntry(
                format_name=resolution.label,
                data=prop.payload,
                is_primary=resolution.is_primary,
            )
        )

    def _handle_phone(self, prop: Property, value: str) -> None:
        resolution = resolve_phone_type(prop.get_parameters(TYPE_PARAM))
        self._add_phone(resolution.category, value, resolution.label, resolution.is_primary)

    def _handle_skype_phone(self, prop: Property, value: str) -> None:
        is_primary = has_preference_marker(prop.get_parameters(TYPE_PARAM))
        self._add_phone(PHONE_OTHER, value, None, is_primary)

    def _add_phone(
        self, category: str, value: str, label: Optional[str], is_primary: bool
    ) -> None:
        self.record.phones.append(
            PhoneEntry(
                category=category,
                value=normalize_phone(value, self.variant),
                label=label,
                is_primary=is_primary,
            )
        )

    def _handle_im(self, prop: Property, value: str) -> None:
        resolution = resolve_im_type(prop.name, prop.get_parameters(TYPE_PARAM))
        self.record.ims.append(
            ImEntry(category=resolution.category, value=value, is_primary=resolution.is_primary)
        )

    def _handle_note(self, prop: Property, value: str) -> None:
        self.record.notes.append(value)

    def _handle_url(self, prop: Property, value: str) -> None:
        self.record.websites.append(value)


def build_record(
    properties: Iterable[Property],
    variant: Variant = Variant.DEFAULT,
    version: CardVersion = CardVersion.V21,
    account: Any = None,
) -> ContactRecord:
    dispatcher = PropertyDispatcher(variant=variant, version=version, account=account)
    dispatcher.dispatch_all(properties)
    return dispatcher.consolidate()


__all__ = ["IGNORED_PROPERTIES", "PropertyDispatcher", "build_record"]
