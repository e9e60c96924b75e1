"""
L4 Execution — Shell profile file mutation.

Wraps the pure block logic in ``domain/profile_block.py`` with file I/O:
missing files are skipped (never created), rewrites are atomic and
follow symlinks, removals are preceded by a backup, and a failure on one
file never stops the others.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path

from rootless.core.models.profile import ProfileBlockSpec
from rootless.core.models.report import FileOutcome, ProfileReport
from rootless.core.models.tool import ToolDefinition
from rootless.core.services.provision.data.profile_maps import (
    _PROFILE_MAP,
    DEFAULT_PROFILES,
)
from rootless.core.services.provision.detection.environment import (
    live_environment_satisfies,
)
from rootless.core.services.provision.domain.profile_block import (
    apply_block,
    has_block,
    remove_block,
)
from rootless.core.services.provision.execution.backup import backup_file

logger = logging.getLogger(__name__)


def expand_profile(path: str, home: Path) -> Path:
    """Expand ``~`` and ``{home}`` against ``home`` (not the real $HOME)."""
    if path == "~":
        return home
    if path.startswith("~/"):
        return home / path[2:]
    return Path(path.replace("{home}", str(home)))


def select_profiles(
    tool: ToolDefinition,
    home: Path,
    environ: Mapping[str, str] | None = None,
    defaults: list[str] | None = None,
) -> list[Path]:
    """Candidate profile files for ``tool``.

    ``existing`` returns every candidate; files that do not exist are
    reported as skipped later.  ``login_shell`` returns the rc file of
    ``$SHELL`` when it exists, else the first existing candidate.
    """
    env = os.environ if environ is None else environ
    candidates = [
        expand_profile(p, home)
        for p in (tool.profiles or defaults or list(DEFAULT_PROFILES))
    ]
    if tool.profile_selection == "existing":
        return candidates

    shell = Path(env.get("SHELL", "")).name
    mapped = _PROFILE_MAP.get(shell)
    if mapped:
        rc = expand_profile(mapped["rc_file"], home)
        if rc.exists():
            logger.debug("Login shell %s → %s", shell, rc)
            return [rc]

    for candidate in candidates:
        if candidate.exists():
            return [candidate]
    return candidates[:1]


def _atomic_write(path: Path, contents: str) -> None:
    """Replace the file behind ``path`` with ``contents``.

    Writes to a temp file beside the symlink target and renames it over
    the target, keeping the target's mode.
    """
    target = path.resolve()
    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp",
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(contents)
        shutil.copymode(target, tmp)
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


class ProfileMutator:
    """Apply and remove profile blocks across a set of files."""

    def __init__(self, home: Path, environ: Mapping[str, str] | None = None) -> None:
        self.home = home
        self.environ = environ

    def apply(self, spec: ProfileBlockSpec, profiles: list[Path]) -> ProfileReport:
        """Insert ``spec`` into each existing file of ``profiles``.

        When the live session already satisfies the block's live check
        no file is read or written.
        """
        report = ProfileReport()
        if live_environment_satisfies(spec.live_check, self.home, self.environ):
            logger.info("Live environment already provides %s, profiles left alone", spec.marker)
            report.live_env_satisfied = True
            return report

        for path in profiles:
            outcome = report.add(self._apply_one(spec, path))
            logger.debug("%s: %s", path, outcome.status)
        return report

    def _apply_one(self, spec: ProfileBlockSpec, path: Path) -> FileOutcome:
        if not path.exists():
            return FileOutcome(path=str(path), status="skipped")
        try:
            change = apply_block(path.read_text(encoding="utf-8"), spec)
            if not change.changed:
                return FileOutcome(
                    path=str(path),
                    status="already_configured",
                    already_configured=change.present,
                )
            _atomic_write(path, change.contents)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot update %s: %s", path, e)
            return FileOutcome(path=str(path), status="failed", error=str(e))

        logger.info("Updated %s (+%d lines)", path, len(change.added))
        return FileOutcome(
            path=str(path),
            status="updated",
            lines_added=change.added,
            already_configured=change.present,
        )

    def remove(self, spec: ProfileBlockSpec, profiles: list[Path]) -> ProfileReport:
        """Excise ``spec`` from each file of ``profiles``, backing up first.

        ``{home}`` in line-filter match strings is expanded, so a catalog
        can target the absolute paths vendor installers write.
        """
        if spec.removal.match:
            removal = spec.removal.model_copy(update={
                "match": [m.replace("{home}", str(self.home)) for m in spec.removal.match],
            })
            spec = spec.model_copy(update={"removal": removal})

        report = ProfileReport()
        for path in profiles:
            outcome = report.add(self._remove_one(spec, path))
            logger.debug("%s: %s", path, outcome.status)
        return report

    def _remove_one(self, spec: ProfileBlockSpec, path: Path) -> FileOutcome:
        if not path.exists():
            return FileOutcome(path=str(path), status="skipped")
        backup: Path | None = None
        try:
            contents = path.read_text(encoding="utf-8")
            if not has_block(contents, spec):
                return FileOutcome(path=str(path), status="nothing_to_remove")
            change = remove_block(contents, spec)
            if not change.changed:
                return FileOutcome(path=str(path), status="nothing_to_remove")
            backup = backup_file(path)
            _atomic_write(path, change.contents)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot clean %s: %s", path, e)
            return FileOutcome(
                path=str(path),
                status="failed",
                error=str(e),
                backup=str(backup) if backup else None,
            )

        logger.info("Removed %d lines from %s", change.removed, path)
        return FileOutcome(
            path=str(path),
            status="removed",
            lines_removed=change.removed,
            backup=str(backup),
        )
