"""
L3 Detection — Live session environment checks.

Answers "does the running shell already satisfy this tool?" and
"is this command on PATH?".  Never writes.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from pathlib import Path

from rootless.core.models.profile import LiveCheck


def _expand(value: str, home: Path) -> str:
    return value.replace("{home}", str(home)).rstrip("/")


def path_contains(environ: Mapping[str, str], directory: str) -> bool:
    """Whether ``directory`` is an entry of ``environ["PATH"]``."""
    entries = environ.get("PATH", "").split(os.pathsep)
    wanted = directory.rstrip("/")
    return any(e.rstrip("/") == wanted for e in entries if e)


def live_environment_satisfies(
    check: LiveCheck | None,
    home: Path,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Whether the live session already provides what the block would export.

    Every non-empty condition of ``check`` must hold; an empty or
    missing check never short-circuits.
    """
    if check is None or not (check.var or check.path_contains):
        return False
    env = os.environ if environ is None else environ

    if check.var:
        current = env.get(check.var)
        if current is None:
            return False
        if check.equals and current.rstrip("/") != _expand(check.equals, home):
            return False

    if check.path_contains and not path_contains(env, _expand(check.path_contains, home)):
        return False

    return True


def missing_commands(commands: list[str]) -> list[str]:
    """Names from ``commands`` that are not on PATH."""
    return [c for c in commands if not shutil.which(c)]
