"""
Profile block model — what a tool writes into shell startup files.

A block is a comment header (the marker) followed by one ``export``
line per variable.  The block spec also says how to detect an existing
block, how to remove it, and when the live session already satisfies
it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

_SHELL_SPECIALS = ("\\", '"', "$", "`")


def _escape_double_quoted(value: str) -> str:
    """Escape a literal value for use inside a double-quoted shell string."""
    for ch in _SHELL_SPECIALS:
        value = value.replace(ch, "\\" + ch)
    return value


class ExportLine(BaseModel):
    """One ``export NAME="value"`` line.

    ``value`` is written verbatim so catalog values may reference
    ``$HOME`` or ``$PATH``.  User-supplied values set ``quote`` so shell
    metacharacters are escaped.
    """

    name: str
    value: str
    quote: bool = False

    @property
    def needle(self) -> str:
        """Substring that identifies this variable in a profile file."""
        return f"export {self.name}="

    def render(self) -> str:
        value = _escape_double_quoted(self.value) if self.quote else self.value
        return f'export {self.name}="{value}"'


class LiveCheck(BaseModel):
    """Conditions under which the running session needs no profile edits.

    All non-empty conditions must hold.  ``{home}`` is expanded before
    comparison.
    """

    var: str = ""
    equals: str = ""
    path_contains: str = ""


class RemovalSpec(BaseModel):
    """How to excise a block on uninstall.

    ``range`` deletes the marker line through the last contiguous line
    of the block.  ``line_filter`` drops every line containing one of
    the ``match`` substrings.
    """

    strategy: Literal["range", "line_filter"] = "range"
    match: list[str] = Field(default_factory=list)


class ProfileBlockSpec(BaseModel):
    """A uniquely-markered block of exports for one tool."""

    marker: str
    exports: list[ExportLine] = Field(default_factory=list)
    detect: str = ""          # block-level predicate; empty = per-variable
    removal: RemovalSpec = Field(default_factory=RemovalSpec)
    live_check: LiveCheck | None = None

    @property
    def per_variable(self) -> bool:
        """Whether each export is detected and appended independently."""
        return not self.detect

    def with_exports(self, extra: list[ExportLine]) -> ProfileBlockSpec:
        """Return a copy with ``extra`` exports appended (deduplicated by name)."""
        if not extra:
            return self
        names = {e.name for e in self.exports}
        merged = list(self.exports) + [e for e in extra if e.name not in names]
        return self.model_copy(update={"exports": merged})
