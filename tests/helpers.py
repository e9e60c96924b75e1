"""
Test helpers — archive builders and collaborator stand-ins.
"""

from __future__ import annotations

import io
import tarfile
import zipfile
from pathlib import Path

from rootless.core.models.artifact import ArtifactReference


def _add_tar_member(tf: tarfile.TarFile, name: str, content: str, mode: int) -> None:
    data = content.encode()
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mode = mode
    tf.addfile(info, io.BytesIO(data))


def build_tarball(path: Path, files: dict[str, str], *, executable: tuple[str, ...] = ()) -> Path:
    """Write a ``.tar.gz`` holding ``files`` (relative name → text)."""
    with tarfile.open(path, "w:gz") as tf:
        for name, content in files.items():
            mode = 0o755 if name in executable else 0o644
            _add_tar_member(tf, name, content, mode)
    return path


def build_zip(path: Path, files: dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = 0o755 << 16
            zf.writestr(info, content)
    return path


class StubLocator:
    """Stands in for ``ArtifactLocator``; returns a fixed reference."""

    def __init__(self, ref: ArtifactReference | None = None, error: Exception | None = None):
        self.ref = ref
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    def locate(self, tool, platform, version="latest"):
        self.calls.append((tool.name, platform.slug, version))
        if self.error is not None:
            raise self.error
        return self.ref


class StubClient:
    """Stands in for ``CatalogClient``; serves canned bodies by URL."""

    def __init__(self, pages: dict[str, object] | None = None, error: Exception | None = None):
        self.pages = pages or {}
        self.error = error
        self.requested: list[str] = []

    def get_text(self, url, *, accept=None, missing_ok=False):
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.pages:
            if missing_ok:
                return None
            raise AssertionError(f"unexpected request: {url}")
        return self.pages[url]

    def get_json(self, url, *, missing_ok=False):
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.pages:
            if missing_ok:
                return None
            raise AssertionError(f"unexpected request: {url}")
        return self.pages[url]
