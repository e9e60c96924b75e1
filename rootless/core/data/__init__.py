"""
Bundled static data.

``tools/`` holds one YAML descriptor per provisioned tool.  The catalog
loader reads them from here; nothing in this package has logic.
"""

from __future__ import annotations

from pathlib import Path

_DATA_DIR = Path(__file__).parent

TOOLS_DIR = _DATA_DIR / "tools"
