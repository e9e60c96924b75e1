"""
L4 Execution — Download and unpack.

``Fetcher.fetch`` is a context manager: the unpacked payload is only
valid inside the ``with`` block, and the scratch workspace is gone as
soon as the block exits, whatever happened inside it.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import urllib.error
import urllib.request
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from rootless.core.models.artifact import ArtifactReference, ArtifactSpec
from rootless.core.services.provision.data.constants import (
    DEFAULT_HTTP_TIMEOUT,
    USER_AGENT,
)
from rootless.core.services.provision.domain.download_helpers import (
    _fmt_size,
    archive_suffix,
)
from rootless.core.services.provision.errors import (
    DownloadFailed,
    PayloadLayoutMismatch,
    UnpackFailed,
)
from rootless.core.services.provision.execution.workspace import Workspace

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


@dataclass
class UnpackedPayload:
    """The usable part of an unpacked artifact."""

    root: Path
    ref: ArtifactReference
    workspace: Path | None = None

    @property
    def spec(self) -> ArtifactSpec:
        return self.ref.spec

    def find_binary(self, name: str) -> Path | None:
        """Locate ``name`` at the payload root, else anywhere below it."""
        direct = self.root / name
        if direct.is_file():
            return direct
        for candidate in sorted(self.root.rglob(Path(name).name)):
            if candidate.is_file():
                return candidate
        return None


# ── Download ───────────────────────────────────────────────────


def download(url: str, dest: Path, *, timeout: int = DEFAULT_HTTP_TIMEOUT) -> Path:
    """Stream ``url`` to ``dest``.

    Raises:
        DownloadFailed: On transport or HTTP errors, or an empty body.
    """
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    logger.info("Downloading %s", url)
    written = 0
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp, open(dest, "wb") as f:
            while True:
                chunk = resp.read(_CHUNK)
                if not chunk:
                    break
                f.write(chunk)
                written += len(chunk)
    except urllib.error.HTTPError as exc:
        raise DownloadFailed(f"Download failed ({exc.code}): {url}") from exc
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise DownloadFailed(f"Download failed: {url}: {exc}") from exc

    if written == 0:
        raise DownloadFailed(f"Download returned an empty body: {url}")
    logger.info("Downloaded %s (%s)", dest.name, _fmt_size(written))
    return dest


# ── Unpack ─────────────────────────────────────────────────────


def _extract_zip(archive: Path, dest: Path) -> None:
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            extracted = Path(zf.extract(info, dest))
            # zipfile drops Unix modes; restore the execute bits
            mode = (info.external_attr >> 16) & 0o777
            if mode and not info.is_dir():
                os.chmod(extracted, mode)


def unpack(archive: Path, dest: Path, spec: ArtifactSpec) -> Path:
    """Extract ``archive`` into ``dest``.

    A bare file (no archive suffix) is accepted only for a single-binary
    ``binaries`` layout and is placed in ``dest`` under that binary name.

    Raises:
        UnpackFailed: Corrupt archive or unrecognised format.
    """
    dest.mkdir(parents=True, exist_ok=True)
    suffix = archive_suffix(archive.name)

    if suffix is None:
        if spec.layout == "binaries" and len(spec.binaries) == 1:
            shutil.copy2(archive, dest / Path(spec.binaries[0]).name)
            return dest
        raise UnpackFailed(f"Unrecognised archive format: {archive.name}")

    logger.info("Unpacking %s", archive.name)
    try:
        if suffix == ".zip":
            _extract_zip(archive, dest)
        else:
            with tarfile.open(archive, "r:*") as tf:
                tf.extractall(dest, filter="data")
    except (tarfile.TarError, zipfile.BadZipFile, EOFError, OSError) as exc:
        raise UnpackFailed(f"Cannot unpack {archive.name}: {exc}") from exc
    return dest


def locate_payload(extracted: Path, ref: ArtifactReference) -> UnpackedPayload:
    """Find the payload root inside ``extracted`` and validate its layout.

    The root is ``extracted`` itself when it already holds ``expect``;
    otherwise the directory matched by ``payload_glob``, or the single
    top-level directory of the archive, or ``extracted`` when the
    archive has no common top-level directory.

    Raises:
        PayloadLayoutMismatch: No matching root, the ``expect`` path is
            missing, or a declared binary cannot be found.
    """
    spec = ref.spec
    if spec.expect and (extracted / spec.expect).exists():
        root = extracted
    elif spec.payload_glob:
        matches = sorted(p for p in extracted.glob(spec.payload_glob) if p.is_dir())
        if not matches:
            raise PayloadLayoutMismatch(
                f"{ref.filename}: no directory matching {spec.payload_glob!r}"
            )
        root = matches[0]
    else:
        # macOS archives may carry AppleDouble "._*" entries
        entries = [p for p in extracted.iterdir() if not p.name.startswith("._")]
        root = entries[0] if len(entries) == 1 and entries[0].is_dir() else extracted

    if spec.expect and not (root / spec.expect).exists():
        raise PayloadLayoutMismatch(
            f"{ref.filename}: expected {spec.expect!r} in {root.name}/"
        )

    payload = UnpackedPayload(root=root, ref=ref)
    if spec.layout == "binaries":
        missing = [b for b in spec.binaries if payload.find_binary(b) is None]
        if missing:
            raise PayloadLayoutMismatch(
                f"{ref.filename}: missing binaries {', '.join(missing)}"
            )
    logger.debug("Payload root: %s", root)
    return payload


# ── Fetcher ────────────────────────────────────────────────────


class Fetcher:
    """Download, unpack and validate an artifact inside a scoped workspace."""

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_HTTP_TIMEOUT,
        workdir: str | Path | None = None,
    ) -> None:
        self.timeout = timeout
        self.workdir = workdir

    @contextmanager
    def fetch(self, ref: ArtifactReference, label: str = "artifact") -> Iterator[UnpackedPayload]:
        with Workspace(label, parent=self.workdir) as ws:
            archive = download(
                ref.url, ws.path / (ref.filename or "artifact"), timeout=self.timeout,
            )
            extracted = unpack(archive, ws.path / "unpacked", ref.spec)
            payload = locate_payload(extracted, ref)
            payload.workspace = ws.path
            yield payload
