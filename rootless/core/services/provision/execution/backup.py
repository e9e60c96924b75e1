"""
L4 Execution — Pre-edit backup.

Creates a timestamped sibling copy (``PATH.bak.YYYYMMDD_HHMMSS``)
before a profile file is rewritten.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from rootless.core.services.provision.data.constants import BACKUP_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


def backup_path(path: Path, now: datetime | None = None) -> Path:
    ts = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    return path.with_name(f"{path.name}.bak.{ts}")


def backup_file(path: Path, *, now: datetime | None = None) -> Path:
    """Copy ``path`` to its timestamped backup and return the backup path.

    Two backups within the same second share a name; the later one
    wins and a warning is logged.

    Raises:
        OSError: The copy failed.  The caller must not rewrite ``path``.
    """
    dest = backup_path(path, now)
    if dest.exists():
        logger.warning("Overwriting existing backup %s", dest)
    shutil.copy2(path, dest)
    logger.info("Backed up %s → %s", path, dest)
    return dest
