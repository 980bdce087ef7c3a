from __future__ import annotations

from typing import Optional, Sequence, Tuple

from .models import POSTAL_SLOT_NAMES, format_postal_slots

POSTAL_SLOT_COUNT = len(POSTAL_SLOT_NAMES)


def pack_postal_slots(values: Sequence[str]) -> Tuple[Optional[str], ...]:
    """PO box, extended, street, locality, region, postal code, country."""
    head = list(values[:POSTAL_SLOT_COUNT])
    padding = [None] * (POSTAL_SLOT_COUNT - len(head))
    return tuple(head + padding)


__all__ = ["POSTAL_SLOT_COUNT", "format_postal_slots", "pack_postal_slots"]
