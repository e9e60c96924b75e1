"""
L4 Execution — Scoped scratch directory.

Every fetch happens inside a ``Workspace``; the directory is removed
when the scope exits, on success and on every failure path.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class Workspace:
    """A temporary directory owned by one fetch.

    Usage::

        with Workspace("go") as ws:
            archive = ws.path / "go.tar.gz"
            ...
        # ws.path no longer exists
    """

    def __init__(self, label: str = "rootless", parent: str | Path | None = None) -> None:
        self.label = label
        self.parent = Path(parent) if parent is not None else None
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Workspace is not open")
        return self._path

    def __enter__(self) -> Workspace:
        if self.parent is not None:
            self.parent.mkdir(parents=True, exist_ok=True)
        self._path = Path(tempfile.mkdtemp(
            prefix=f"rootless-{self.label}-",
            dir=str(self.parent) if self.parent is not None else None,
        ))
        logger.debug("Workspace created: %s", self._path)
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        if self._path is None:
            return
        path, self._path = self._path, None
        shutil.rmtree(path, ignore_errors=True)
        if path.exists():
            logger.warning("Workspace not fully removed: %s", path)
        else:
            logger.debug("Workspace removed: %s", path)
