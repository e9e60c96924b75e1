"""
L1 Domain — pure logic.

No I/O, no subprocess: string in, string out.
"""

from rootless.core.services.provision.domain.download_helpers import (  # noqa: F401
    _fmt_size,
    archive_suffix,
    filename_from_url,
)
from rootless.core.services.provision.domain.profile_block import (  # noqa: F401
    BlockChange,
    apply_block,
    block_present,
    has_block,
    remove_block,
    render_block,
)
