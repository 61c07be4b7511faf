from __future__ import annotations

import logging
import os
from typing import Optional

from .config_loader import ReconcileConfig

LOG_LEVEL_ENV = "CONTACT_RECONCILE_LOG_LEVEL"


def effective_level_name(config: ReconcileConfig, level_override: Optional[str] = None) -> str:
    """
    Pick the level name by precedence: ``CONTACT_RECONCILE_LOG_LEVEL``, then
    the caller's override (the ``--log-level`` flag), then ``logging.level``
    from the YAML config, then ``WARNING``.
    """
    name = os.getenv(LOG_LEVEL_ENV) or level_override or config.logging.level or "WARNING"
    return name.strip().upper()


def _level_value(name: str) -> int:
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    # getLevelName returns "Level X" for names it does not know
    return value if isinstance(value, int) else logging.WARNING


def configure_logging(config: ReconcileConfig, level_override: Optional[str] = None) -> int:
    level_value = _level_value(effective_level_name(config, level_override))
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level_value)
    else:
        logging.basicConfig(level=level_value)
    return level_value
