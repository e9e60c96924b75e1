"""
L1 Domain — Download helpers (pure).

Archive naming and size formatting.  No I/O, no subprocess.
"""

from __future__ import annotations

from urllib.parse import unquote, urlparse

from rootless.core.services.provision.data.constants import ARCHIVE_SUFFIXES


def _fmt_size(n: int | float) -> str:
    """Format byte count to human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"


def filename_from_url(url: str) -> str:
    """Last path segment of ``url`` (query string ignored)."""
    path = unquote(urlparse(url).path)
    return path.rstrip("/").rsplit("/", 1)[-1]


def archive_suffix(filename: str) -> str | None:
    """The recognised archive suffix of ``filename``, or None."""
    lower = filename.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lower.endswith(suffix):
            return suffix
    return None
