# pharbuild/config.py
"""
Host settings that govern archive creation.

Read once from the environment and handed to the Compiler:

    PHARBUILD_READONLY   - truthy value disables archive creation
    PHARBUILD_LEXER      - lexer used for stripping (default: php)
    PHARBUILD_SIGNATURE  - default signature algorithm (default: SHA1)
    SOURCE_DATE_EPOCH    - fixed timestamp for archive entries
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Host configuration for building archives."""
    readonly: bool = False
    lexer: str = "php"
    signature: str = "SHA1"
    timestamp: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        timestamp = env.get("SOURCE_DATE_EPOCH")
        return cls(
            readonly=env.get("PHARBUILD_READONLY", "").strip().lower() in _TRUTHY,
            lexer=env.get("PHARBUILD_LEXER", "php").strip() or "php",
            signature=env.get("PHARBUILD_SIGNATURE", "SHA1").strip() or "SHA1",
            timestamp=int(timestamp) if timestamp and timestamp.strip().isdigit() else None,
        )
