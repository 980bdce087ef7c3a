from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Optional

from .config_loader import PipelineConfig, load_pipeline_config
from .dispatcher import PropertyDispatcher, build_record
from .models import (
    CardVersion,
    ContactRecord,
    EmailEntry,
    ImEntry,
    OrganizationEntry,
    PhoneEntry,
    PhotoEntry,
    PostalEntry,
    Property,
    RecordStateError,
    Variant,
)
from .phone import normalize_phone
from .reader import iter_vcard_properties, read_vcard_file
from .sink import CsvRecordSink, RecordSink

logger = logging.getLogger(__name__)

__all__ = [
    "CardVersion",
    "ContactRecord",
    "CsvRecordSink",
    "EmailEntry",
    "ImEntry",
    "OrganizationEntry",
    "PhoneEntry",
    "PhotoEntry",
    "PipelineConfig",
    "PostalEntry",
    "Property",
    "PropertyDispatcher",
    "RecordSink",
    "RecordStateError",
    "Variant",
    "build_record",
    "iter_vcard_properties",
    "load_config",
    "make_property",
    "normalize_phone",
    "read_vcard_file",
    "warn_missing",
]


def load_config(args: Any) -> PipelineConfig:
    return load_pipeline_config(args)


def warn_missing(path: Optional[str], label: str) -> bool:
    if not path or not os.path.exists(path):
        logger.warning("%s path missing: %s", label, path)
        return True
    return False


def make_property(
    name: str,
    values: Iterable[str] = (),
    types: Iterable[str] = (),
    payload: Optional[bytes] = None,
    **params: Iterable[str],
) -> Property:
    """Build a Property the way a tokenizer would, e.g. for host code and tests."""
    prop = Property(name=name, payload=payload)
    for token in types:
        prop.add_parameter("TYPE", token)
    for param_name, param_values in params.items():
        for param_value in param_values:
            prop.add_parameter(param_name.upper(), param_value)
    for value in values:
        prop.add_value(value)
    return prop
