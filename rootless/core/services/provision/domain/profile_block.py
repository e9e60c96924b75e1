"""
L1 Domain — Profile block editing (pure).

``(file contents, block spec) -> new contents``.  No I/O, so every
idempotence and round-trip property can be tested on strings.

Invariant: at most one block per marker per file.  A file that already
holds the marker is topped up inside the existing block, never given a
second header.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rootless.core.models.profile import ExportLine, ProfileBlockSpec


@dataclass
class BlockChange:
    """Outcome of a pure block edit."""

    contents: str
    added: list[str] = field(default_factory=list)     # rendered lines inserted
    present: list[str] = field(default_factory=list)   # variable names already configured
    removed: int = 0                                   # lines dropped

    @property
    def changed(self) -> bool:
        return bool(self.added) or self.removed > 0


def _join(lines: list[str]) -> str:
    return "\n".join(lines) + "\n" if lines else ""


def _is_marker(line: str, marker: str) -> bool:
    return line.strip() == marker.strip()


def _marker_index(lines: list[str], marker: str) -> int | None:
    for i, line in enumerate(lines):
        if _is_marker(line, marker):
            return i
    return None


def _belongs(line: str, exports: list[ExportLine]) -> bool:
    """Whether ``line`` is one of the block's export lines.

    PATH lines only match exactly: a user's own ``export PATH=`` placed
    right after the block must survive.  Other variables match by name so
    an edited value is still recognised.
    """
    stripped = line.strip()
    for export in exports:
        if stripped == export.render():
            return True
        if export.name != "PATH" and stripped.startswith(export.needle):
            return True
    return False


def _block_end(lines: list[str], start: int, exports: list[ExportLine]) -> int:
    """Index one past the last contiguous line of the block at ``start``."""
    end = start + 1
    while end < len(lines) and _belongs(lines[end], exports):
        end += 1
    return end


def render_block(spec: ProfileBlockSpec, exports: list[ExportLine] | None = None) -> list[str]:
    """Marker line followed by one rendered line per export."""
    chosen = spec.exports if exports is None else exports
    return [spec.marker] + [e.render() for e in chosen]


def block_present(contents: str, spec: ProfileBlockSpec) -> bool:
    """Detection predicate: is this tool already configured in ``contents``?

    With a block-level predicate, either the predicate or the marker line
    counts as configured.
    """
    if spec.detect:
        return spec.detect in contents or _marker_index(contents.splitlines(), spec.marker) is not None
    return all(e.needle in contents for e in spec.exports)


def has_block(contents: str, spec: ProfileBlockSpec) -> bool:
    """Whether ``remove_block`` would find anything to excise."""
    lines = contents.splitlines()
    if spec.removal.strategy == "line_filter":
        needles = spec.removal.match or [spec.marker]
        return any(
            _is_marker(line, spec.marker) or any(n in line for n in needles)
            for line in lines
        )
    return _marker_index(lines, spec.marker) is not None


def apply_block(contents: str, spec: ProfileBlockSpec) -> BlockChange:
    """Insert the block (or its missing exports) into ``contents``.

    Block-level detection (``spec.detect``): if the predicate or the
    marker is found, nothing changes.  Per-variable detection: each
    export is checked on its own and only the missing ones are written.
    """
    if spec.detect and block_present(contents, spec):
        return BlockChange(contents, present=[e.name for e in spec.exports])

    lines = contents.splitlines()
    marker_at = _marker_index(lines, spec.marker)

    if spec.per_variable:
        missing = [e for e in spec.exports if e.needle not in contents]
    else:
        missing = list(spec.exports)

    present = [e.name for e in spec.exports if e not in missing]
    if not missing:
        return BlockChange(contents, present=present)

    new_lines = [e.render() for e in missing]

    if marker_at is not None:
        end = _block_end(lines, marker_at, spec.exports)
        lines[end:end] = new_lines
        return BlockChange(_join(lines), added=new_lines, present=present)

    prefix = contents
    if prefix and not prefix.endswith("\n"):
        prefix += "\n"
    if prefix:
        prefix += "\n"
    block = render_block(spec, missing)
    return BlockChange(prefix + _join(block), added=new_lines, present=present)


def remove_block(contents: str, spec: ProfileBlockSpec) -> BlockChange:
    """Excise the block from ``contents``.

    ``range``: every marker line through the end of its block, plus the
    blank separator line that ``apply_block`` wrote before it.
    ``line_filter``: every line containing a ``match`` substring, and the
    marker line itself.
    """
    lines = contents.splitlines()

    if spec.removal.strategy == "line_filter":
        needles = spec.removal.match or [spec.marker]
        kept = [
            line for line in lines
            if not (_is_marker(line, spec.marker) or any(n in line for n in needles))
        ]
        removed = len(lines) - len(kept)
        if not removed:
            return BlockChange(contents)
        return BlockChange(_join(kept), removed=removed)

    kept: list[str] = []
    removed = 0
    i = 0
    while i < len(lines):
        if _is_marker(lines[i], spec.marker):
            end = _block_end(lines, i, spec.exports)
            if kept and not kept[-1].strip():
                kept.pop()
                removed += 1
            removed += end - i
            i = end
            continue
        kept.append(lines[i])
        i += 1

    if not removed:
        return BlockChange(contents)
    return BlockChange(_join(kept), removed=removed)
