from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

TYPE_PARAM = "TYPE"
VALUE_PARAM = "VALUE"


class RecordStateError(RuntimeError):
    """Raised when a ContactRecord is used out of its lifecycle order."""


class Variant(str, Enum):
    DEFAULT = "default"
    JAPAN = "japan"
    EUROPE = "europe"
    JAPAN_LOCAL_NAMING = "japan_local_naming"

    @property
    def is_japan_device(self) -> bool:
        return self is Variant.JAPAN

    @property
    def name_order(self) -> str:
        if self in (Variant.JAPAN, Variant.JAPAN_LOCAL_NAMING):
            return "japanese"
        if self is Variant.EUROPE:
            return "europe"
        return "default"

    @classmethod
    def parse(cls, value: Any) -> "Variant":
        if isinstance(value, cls):
            return value
        normalized = str(value or "default").strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown card variant: {value!r}") from None


class CardVersion(str, Enum):
    V21 = "v21"
    V30 = "v30"

    @classmethod
    def parse(cls, value: Any) -> "CardVersion":
        if isinstance(value, cls):
            return value
        normalized = str(value or "v21").strip().lower().replace(".", "")
        if not normalized.startswith("v"):
            normalized = f"v{normalized}"
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown card version: {value!r}") from None


@dataclass
class Property:
    name: str = ""
    params: Dict[str, List[str]] = field(default_factory=dict)
    values: List[str] = field(default_factory=list)
    payload: Optional[bytes] = None

    def add_parameter(self, param_name: str, param_value: str) -> None:
        values = self.params.setdefault(param_name, [])
        # TYPE behaves as a set; arrival order is kept so resolution is deterministic.
        if param_name == TYPE_PARAM and param_value in values:
            return
        values.append(param_value)

    def add_value(self, value: str) -> None:
        self.values.append(value)

    def get_parameters(self, param_name: str) -> Optional[List[str]]:
        return self.params.get(param_name)

    def joined_value(self) -> str:
        return ";".join(self.values).strip()

    def clear(self) -> None:
        self.name = ""
        self.params.clear()
        self.values.clear()
        self.payload = None


@dataclass
class PhoneEntry:
    category: str
    value: str
    label: Optional[str] = None
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "value": self.value,
            "label": self.label,
            "is_primary": self.is_primary,
        }


@dataclass
class EmailEntry:
    category: str
    value: str
    label: Optional[str] = None
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "value": self.value,
            "label": self.label,
            "is_primary": self.is_primary,
        }


POSTAL_SLOT_NAMES = (
    "po_box",
    "extended",
    "street",
    "locality",
    "region",
    "postal_code",
    "country",
)


def format_postal_slots(
    slots: Sequence[Optional[str]], variant: Variant = Variant.DEFAULT
) -> str:
    """Join the non-empty slots with spaces, country first on Japanese devices."""
    ordered = reversed(slots) if Variant.parse(variant).is_japan_device else iter(slots)
    return " ".join(part for part in ordered if part).strip()


@dataclass
class PostalEntry:
    slots: Tuple[Optional[str], ...]
    category: str = "home"
    label: Optional[str] = None
    is_primary: bool = False

    def __post_init__(self) -> None:
        if len(self.slots) != len(POSTAL_SLOT_NAMES):
            raise ValueError(
                f"postal entry needs {len(POSTAL_SLOT_NAMES)} slots, got {len(self.slots)}"
            )

    @property
    def po_box(self) -> Optional[str]:
        return self.slots[0]

    @property
    def extended(self) -> Optional[str]:
        return self.slots[1]

    @property
    def street(self) -> Optional[str]:
        return self.slots[2]

    @property
    def locality(self) -> Optional[str]:
        return self.slots[3]

    @property
    def region(self) -> Optional[str]:
        return self.slots[4]

    @property
    def postal_code(self) -> Optional[str]:
        return self.slots[5]

    @property
    def country(self) -> Optional[str]:
        return self.slots[6]

    def formatted_address(self, variant: Variant = Variant.DEFAULT) -> str:
        return format_postal_slots(self.slots, variant)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(zip(POSTAL_SLOT_NAMES, self.slots))
        payload.update(
            {"category": self.category, "label": self.label, "is_primary": self.is_primary}
        )
        return payload


@dataclass
class OrganizationEntry:
    category: str = "work"
    company: Optional[str] = None
    department: Optional[str] = None
    title: Optional[str] = None
    is_primary: bool = False

    def is_open(self) -> bool:
        # "" means ORG was present with empty components; only None is open.
        return self.company is None and self.department is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "company": self.company,
            "department": self.department,
            "title": self.title,
            "is_primary": self.is_primary,
        }


@dataclass
class ImEntry:
    category: str
    value: str
    label: Optional[str] = None
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "value": self.value,
            "label": self.label,
            "is_primary": self.is_primary,
        }


@dataclass
class PhotoEntry:
    category: str = "photo"
    format_name: Optional[str] = None
    data: Optional[bytes] = None
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "format_name": self.format_name,
            "size": len(self.data) if self.data is not None else 0,
            "is_primary": self.is_primary,
        }


@dataclass
class ContactRecord:
    variant: Variant = Variant.DEFAULT
    version: CardVersion = CardVersion.V21
    account: Any = None

    family_name: Optional[str] = None
    given_name: Optional[str] = None
    middle_name: Optional[str] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    full_name: Optional[str] = None

    phonetic_family_name: Optional[str] = None
    phonetic_given_name: Optional[str] = None
    phonetic_middle_name: Optional[str] = None
    phonetic_full_name: Optional[str] = None

    birthday: Optional[str] = None

    nicknames: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    phones: List[PhoneEntry] = field(default_factory=list)
    emails: List[EmailEntry] = field(default_factory=list)
    postal_addresses: List[PostalEntry] = field(default_factory=list)
    organizations: List[OrganizationEntry] = field(default_factory=list)
    ims: List[ImEntry] = field(default_factory=list)
    photos: List[PhotoEntry] = field(default_factory=list)
    websites: List[str] = field(default_factory=list)

    _display_name: Optional[str] = field(default=None, init=False, repr=False)
    _consolidated: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.variant = Variant.parse(self.variant)
        self.version = CardVersion.parse(self.version)

    @property
    def is_consolidated(self) -> bool:
        return self._consolidated

    @property
    def display_name(self) -> str:
        if not self._consolidated:
            raise RecordStateError("display_name is only available after consolidate()")
        return self._display_name or ""

    def is_ignorable(self) -> bool:
        return self.display_name == ""

    def ensure_mutable(self) -> None:
        if self._consolidated:
            raise RecordStateError("record is read-only once consolidated")

    def mark_consolidated(self, display_name: str) -> None:
        self.ensure_mutable()
        self._display_name = display_name
        if self.phonetic_full_name is not None:
            self.phonetic_full_name = self.phonetic_full_name.strip()
        self._consolidated = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "display_name": self.display_name,
            "full_name": self.full_name or "",
            "prefix": self.prefix or "",
            "given_name": self.given_name or "",
            "middle_name": self.middle_name or "",
            "family_name": self.family_name or "",
            "suffix": self.suffix or "",
            "phonetic_given_name": self.phonetic_given_name or "",
            "phonetic_middle_name": self.phonetic_middle_name or "",
            "phonetic_family_name": self.phonetic_family_name or "",
            "phonetic_full_name": self.phonetic_full_name or "",
            "nicknames": "|".join(self.nicknames),
            "birthday": self.birthday or "",
            "emails": "|".join(_labelled(entry) for entry in self.emails),
            "phones": "|".join(_labelled(entry) for entry in self.phones),
            "ims": "|".join(_labelled(entry) for entry in self.ims),
            "organizations_json": json.dumps(
                [org.to_dict() for org in self.organizations], ensure_ascii=False
            ),
            "addresses_json": json.dumps(
                [
                    dict(address.to_dict(), formatted=address.formatted_address(self.variant))
                    for address in self.postal_addresses
                ],
                ensure_ascii=False,
            ),
            "websites": "|".join(self.websites),
            "notes": "\n".join(self.notes),
            "photo_count": len(self.photos),
            "account": "" if self.account is None else str(self.account),
        }


def _labelled(entry: Any) -> str:
    label = entry.label if entry.category == "custom" and entry.label else entry.category
    marker = "*" if entry.is_primary else ""
    return f"{entry.value}::{marker}{label}"
