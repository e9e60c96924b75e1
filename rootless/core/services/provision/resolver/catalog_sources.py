"""
L2 Resolver — Upstream catalog queries.

Each source answers one question: "given this tool's platform naming and
a version hint, which artifact is newest?"  A source returns ``None``
when the catalog legitimately has no match and raises ``NetworkError``
when the catalog cannot be fetched or parsed.  The two must never be
confused: only ``None`` lets the locator fall back to the next kind.

Structured sources (``json_index``, ``github_release``) are preferred.
``index_page`` scrapes HTML and takes the first match as the newest; it
depends on the page listing newest first.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urljoin

from rootless.core.models.artifact import CatalogSource
from rootless.core.services.provision.data.constants import (
    DEFAULT_HTTP_TIMEOUT,
    USER_AGENT,
)
from rootless.core.services.provision.domain.download_helpers import filename_from_url
from rootless.core.services.provision.errors import NetworkError

logger = logging.getLogger(__name__)

_ANY_VERSION = r"[0-9][0-9A-Za-z.\-]*"


@dataclass
class CatalogMatch:
    """A catalog hit: where to download and which version it is."""

    url: str
    filename: str
    version: str = "latest"


class CatalogClient:
    """HTTP GET with a bounded timeout and a per-run body cache.

    Several kinds of one tool often query the same page (SQLite's
    binary and source archives share a download index), so bodies are
    cached for the client's lifetime.
    """

    def __init__(self, timeout: int = DEFAULT_HTTP_TIMEOUT) -> None:
        self.timeout = timeout
        self._cache: dict[str, str | None] = {}

    def get_text(
        self,
        url: str,
        *,
        accept: str | None = None,
        missing_ok: bool = False,
    ) -> str | None:
        """Fetch ``url`` as text.

        Returns None for a 404 when ``missing_ok`` is set.

        Raises:
            NetworkError: On any other transport or HTTP failure.
        """
        if url in self._cache:
            return self._cache[url]

        headers = {"User-Agent": USER_AGENT}
        if accept:
            headers["Accept"] = accept
        req = urllib.request.Request(url, headers=headers)

        logger.debug("GET %s (timeout=%ss)", url, self.timeout)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            if missing_ok and exc.code == 404:
                self._cache[url] = None
                return None
            raise NetworkError(f"Catalog request failed ({exc.code}): {url}") from exc
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise NetworkError(f"Cannot reach catalog {url}: {exc}") from exc

        self._cache[url] = body
        return body

    def get_json(self, url: str, *, missing_ok: bool = False) -> Any:
        body = self.get_text(
            url, accept="application/vnd.github+json, application/json",
            missing_ok=missing_ok,
        )
        if body is None:
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise NetworkError(f"Malformed JSON from {url}: {exc}") from exc


# ── Template helpers ───────────────────────────────────────────


def _render_url(template: str, tokens: dict[str, str], version: str) -> str:
    result = template
    for key, value in tokens.items():
        result = result.replace(f"{{{key}}}", value)
    return result.replace("{version}", version)


def _render_pattern(pattern: str, tokens: dict[str, str], version: str) -> re.Pattern[str]:
    """Compile ``pattern`` with ``{os}``/``{arch}``/``{version}`` filled in.

    Only those three placeholders are replaced, so regex quantifiers
    like ``{4}`` survive.  Substituted values are escaped.
    """
    result = pattern
    for key, value in tokens.items():
        result = result.replace(f"{{{key}}}", re.escape(value))
    version_re = _ANY_VERSION if version == "latest" else re.escape(version)
    result = result.replace("{version}", version_re)
    try:
        return re.compile(result)
    except re.error as exc:
        raise NetworkError(f"Invalid catalog pattern {pattern!r}: {exc}") from exc


def _source_url(source: CatalogSource, tokens: dict[str, str], version: str) -> str:
    pinned = version != "latest" and source.pinned_url
    return _render_url(source.pinned_url if pinned else source.url, tokens, version)


# ── Sources ────────────────────────────────────────────────────


def _find_json_index(
    source: CatalogSource,
    tokens: dict[str, str],
    version: str,
    client: CatalogClient,
) -> CatalogMatch | None:
    """Structured download index: ``[{version, stable, files: [{filename}]}]``.

    Releases are scanned in catalog order; unstable releases are skipped
    unless a version is pinned.
    """
    url = _source_url(source, tokens, version)
    data = client.get_json(url)
    if not isinstance(data, list):
        raise NetworkError(f"Unexpected index format from {url}")

    regex = _render_pattern(source.pattern, tokens, "latest")
    for release in data:
        if not isinstance(release, dict):
            continue
        release_version = str(release.get("version", ""))
        if version == "latest":
            if not release.get("stable", True):
                continue
        elif release_version.removeprefix("go") != version.removeprefix("go"):
            continue
        for entry in release.get("files", []):
            name = entry.get("filename", "") if isinstance(entry, dict) else ""
            if name and regex.fullmatch(name):
                return CatalogMatch(
                    url=urljoin(source.base_url or url, name),
                    filename=name,
                    version=release_version or version,
                )
    return None


def _find_github_release(
    source: CatalogSource,
    tokens: dict[str, str],
    version: str,
    client: CatalogClient,
) -> CatalogMatch | None:
    """GitHub releases API; asset name matched against the pattern."""
    api = source.url or "https://api.github.com"
    if version == "latest":
        url = f"{api.rstrip('/')}/repos/{source.repo}/releases/latest"
    else:
        tag = version if version.startswith("v") else f"v{version}"
        url = f"{api.rstrip('/')}/repos/{source.repo}/releases/tags/{tag}"

    data = client.get_json(url, missing_ok=True)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise NetworkError(f"Unexpected release format from {url}")

    release_version = str(data.get("tag_name", "")).lstrip("v")
    regex = _render_pattern(source.pattern, tokens, release_version or version)
    for asset in data.get("assets", []):
        name = asset.get("name", "")
        if name and regex.fullmatch(name):
            return CatalogMatch(
                url=asset["browser_download_url"],
                filename=name,
                version=release_version or version,
            )

    logger.debug(
        "No asset of %s %s matches %s (have: %s)",
        source.repo, release_version, regex.pattern,
        [a.get("name") for a in data.get("assets", [])[:10]],
    )
    return None


def _find_index_page(
    source: CatalogSource,
    tokens: dict[str, str],
    version: str,
    client: CatalogClient,
) -> CatalogMatch | None:
    """Regex search over an HTML page; first match wins."""
    url = _render_url(source.url, tokens, version)
    body = client.get_text(url) or ""
    regex = _render_pattern(source.pattern, tokens, "latest")
    version_re = re.compile(source.version_pattern) if source.version_pattern else None

    for m in regex.finditer(body):
        found = m.group(0)
        found_version = "latest"
        if version_re is not None:
            vm = version_re.search(found)
            if vm:
                found_version = vm.group(1) if vm.groups() else vm.group(0)
        if version != "latest" and found_version != version:
            continue
        full = urljoin(source.base_url or url, found)
        return CatalogMatch(url=full, filename=filename_from_url(full), version=found_version)
    return None


def _find_url_template(
    source: CatalogSource,
    tokens: dict[str, str],
    version: str,
    client: CatalogClient,
) -> CatalogMatch | None:
    """Fixed URL; no query is made so it always matches."""
    url = _source_url(source, tokens, version)
    return CatalogMatch(url=url, filename=filename_from_url(url), version=version)


_SOURCES: dict[str, Callable[..., CatalogMatch | None]] = {
    "json_index": _find_json_index,
    "github_release": _find_github_release,
    "index_page": _find_index_page,
    "url_template": _find_url_template,
}


def find_artifact(
    source: CatalogSource,
    tokens: dict[str, str],
    version: str,
    client: CatalogClient,
) -> CatalogMatch | None:
    """Dispatch to the catalog source named by ``source.type``."""
    finder = _SOURCES[source.type]
    return finder(source, tokens, version, client)
