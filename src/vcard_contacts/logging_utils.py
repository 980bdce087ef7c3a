from __future__ import annotations

import logging
import os
from typing import Optional

from .config_loader import PipelineConfig

LOG_LEVEL_ENV = "VCARD_CONTACTS_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def resolve_level(level_name: Optional[str]) -> int:
    """Numeric level for a name such as ``debug`` or ``10``; unknown names mean WARNING."""
    normalized = (level_name or "WARNING").strip().upper()
    if normalized.isdigit():
        return int(normalized)
    level = logging.getLevelName(normalized)
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(config: PipelineConfig, level_override: Optional[str] = None) -> int:
    """
    Set the level for the package loggers and return it.

    Precedence: the ``VCARD_CONTACTS_LOG_LEVEL`` environment variable, then
    ``level_override`` (the ``--log-level`` flag), then ``logging.level`` from
    the YAML config, then WARNING. A root handler is only installed when the
    host application has not configured one.
    """
    level_name = os.getenv(LOG_LEVEL_ENV) or level_override or config.logging.level
    level_value = resolve_level(level_name)

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level_value, format=LOG_FORMAT)
    logging.getLogger("vcard_contacts").setLevel(level_value)
    return level_value
