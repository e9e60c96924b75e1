"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Canonical OS names keyed by ``platform.system()``.
OS_MAP: dict[str, str] = {
    "Linux": "linux",
    "Darwin": "macos",
}

# Canonical architecture names keyed by ``platform.machine()``.
#
# Upstream projects disagree on naming (Go uses amd64, SQLite uses x64,
# Neovim uses x86_64).  The canonical pair is translated per tool through
# ``ToolDefinition.platform_names`` before any URL or pattern is built.
ARCH_MAP: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "AMD64": "x86_64",     # WSL2 reports upper-case
    "aarch64": "arm64",
    "arm64": "arm64",      # macOS (Darwin reports arm64)
}

# Parallel jobs when every CPU probe fails.
DEFAULT_BUILD_JOBS = 2

# Seconds per build phase.
BUILD_TIMEOUTS: dict[str, int] = {
    "configure": 300,
    "compile": 1800,
    "install": 300,
}

# Seconds before an HTTP request is abandoned.
DEFAULT_HTTP_TIMEOUT = 30

USER_AGENT = "rootless/0.1"

# Archive suffixes we can unpack, longest first so ``.tar.gz`` wins over ``.gz``.
ARCHIVE_SUFFIXES: tuple[str, ...] = (
    ".tar.gz", ".tgz", ".tar.xz", ".txz", ".tar.bz2", ".tbz2", ".zip",
)

# Mode for installed executables, set explicitly rather than inherited.
EXECUTABLE_MODE = 0o755

# Backup suffix: ``<file>.bak.<YYYYmmdd_HHMMSS>``.
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
