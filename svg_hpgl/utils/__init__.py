"""Cross-cutting utilities (lowest dependency layer).

    - Atomic file writes and YAML loading (fs)
    - Unified logging setup for entry points (logging_config)

No module in utils/ may import from the rest of the package.

Convenience imports:
    from svg_hpgl.utils import fs
    from svg_hpgl.utils.logging_config import setup_logging, log_context
"""

from . import fs
from . import logging_config

__all__ = ["fs", "logging_config"]
