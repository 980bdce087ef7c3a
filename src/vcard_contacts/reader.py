"""Lenient vCard tokenizer producing Property values for the dispatcher.

Only the tokenizing a normalizer needs is done here: line unfolding, group
prefixes, parameters, value splitting and base64 payloads. Card syntax is not
validated and character sets are not transcoded.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from .models import TYPE_PARAM, CardVersion, Property
from .names import split_escaped_values, unescape_text

logger = logging.getLogger(__name__)

GROUP_PREFIX = re.compile(r"^[A-Za-z0-9-]+\.(?=[A-Za-z])")

STRUCTURED_PROPERTIES = frozenset({"N", "ADR", "ORG"})
# Split later by the dispatcher, so escapes must survive tokenizing.
RAW_PROPERTIES = frozenset({"SOUND"})
BASE64_ENCODINGS = frozenset({"B", "BASE64"})
BARE_ENCODINGS = frozenset({"B", "BASE64", "QUOTED-PRINTABLE", "8BIT", "7BIT"})


@dataclass
class ParsedCard:
    version: Optional[CardVersion] = None
    properties: List[Property] = field(default_factory=list)


def unfold_lines(text: str) -> List[str]:
    lines: List[str] = []
    for raw_line in text.splitlines():
        if raw_line[:1] in (" ", "\t") and lines:
            lines[-1] += raw_line[1:]
        else:
            lines.append(raw_line)
    return lines


def _version_from_value(value: str) -> CardVersion:
    return CardVersion.V21 if value.strip().startswith("2") else CardVersion.V30


def parse_property_line(line: str, version: CardVersion = CardVersion.V21) -> Optional[Property]:
    line = line.strip()
    if ":" not in line:
        return None
    head, value = line.split(":", 1)
    name_part, *param_parts = head.split(";")
    name = GROUP_PREFIX.sub("", name_part).strip().upper()
    if not name:
        return None

    prop = Property(name=name)
    for param in param_parts:
        param = param.strip()
        if not param:
            continue
        if "=" in param:
            key, raw_values = param.split("=", 1)
            key = key.strip().upper()
            for token in raw_values.split(","):
                token = token.strip().strip('"')
                if token:
                    prop.add_parameter(key, token)
        elif param.upper() in BARE_ENCODINGS:
            prop.add_parameter("ENCODING", param.upper())
        else:
            # vCard 2.1 allows bare type tokens, e.g. TEL;CELL;PREF:...
            prop.add_parameter(TYPE_PARAM, param)

    encodings = {token.upper() for token in prop.get_parameters("ENCODING") or []}
    if encodings & BASE64_ENCODINGS:
        try:
            prop.payload = base64.b64decode(value.strip())
        except (binascii.Error, ValueError):
            logger.debug("Undecodable base64 payload on %s", name)
        prop.add_value(value.strip())
        return prop

    if name in STRUCTURED_PROPERTIES:
        for segment in split_escaped_values(value, version):
            prop.add_value(segment.strip())
    elif name in RAW_PROPERTIES:
        prop.add_value(value.strip())
    else:
        prop.add_value(unescape_text(value, version).strip())
    return prop


def iter_vcard_properties(text: str) -> Iterator[ParsedCard]:
    card: Optional[ParsedCard] = None
    for line in unfold_lines(text):
        stripped = line.strip()
        if not stripped:
            continue
        upper = stripped.upper()
        if upper == "BEGIN:VCARD":
            card = ParsedCard()
            continue
        if upper == "END:VCARD":
            if card is not None:
                yield card
            card = None
            continue
        if card is None:
            continue
        if upper.startswith("VERSION:"):
            card.version = _version_from_value(stripped.split(":", 1)[1])
        prop = parse_property_line(stripped, card.version or CardVersion.V21)
        if prop is None:
            logger.debug("Skipping unparseable line: %r", stripped[:40])
            continue
        card.properties.append(prop)
    if card is not None:
        logger.warning("Card without END:VCARD dropped")


def read_vcard_file(path: Path) -> List[ParsedCard]:
    content = Path(path).read_text(encoding="utf-8", errors="replace")
    return list(iter_vcard_properties(content))


__all__ = [
    "ParsedCard",
    "iter_vcard_properties",
    "parse_property_line",
    "read_vcard_file",
    "unfold_lines",
]
