"""Runtime settings for the Safe Harbor command-line tools.

Statutory dates and thresholds live as constants in the rule modules.
Settings cover where output goes and how much is logged:

    SAFE_HARBOR_OUTPUT_DIR   directory for exported contracts and reports
    SAFE_HARBOR_LOG_LEVEL    logging level name (default WARNING)
"""

import logging
import os
from dataclasses import dataclass


@dataclass
class Settings:
    output_dir: str = "."
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            output_dir=os.environ.get("SAFE_HARBOR_OUTPUT_DIR", "."),
            log_level=os.environ.get("SAFE_HARBOR_LOG_LEVEL", "WARNING").upper(),
        )


def configure_logging(level: str) -> None:
    """Configure root logging; unknown level names fall back to WARNING."""
    value = logging.getLevelName(level.upper())
    logging.basicConfig(
        level=value if isinstance(value, int) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
