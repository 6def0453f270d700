from __future__ import annotations

import logging
import os
from typing import Optional

from .config_loader import ImportConfig

LOG_LEVEL_ENV = "CONTACTS_IMPORT_LOG_LEVEL"


def _resolve_level(level_name: Optional[str]) -> int:
    """Numeric level for a name such as ``"debug"`` or ``"15"``; unknown names give WARNING."""
    name = (level_name or "").strip().upper()
    if name.isdigit():
        return int(name)
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(config: ImportConfig, level_override: Optional[str] = None) -> None:
    """
    Configure the root logger according to precedence:

    1. ``CONTACTS_IMPORT_LOG_LEVEL`` environment variable (if set)
    2. ``level_override`` provided by the caller (e.g., CLI flag)
    3. ``config.logging.level`` from the YAML config
    4. Default ``WARNING`` level
    """
    env_level = os.getenv(LOG_LEVEL_ENV)
    effective_level_name = env_level or level_override or config.logging.level or "WARNING"
    level_value = _resolve_level(effective_level_name)

    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level_value)
    else:
        logging.basicConfig(
            level=level_value,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
