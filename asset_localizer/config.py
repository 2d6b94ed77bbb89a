"""Configuration objects and constants for asset generation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 768
DEFAULT_TIMEOUT = 60.0
MAX_PROMPT_KEYWORDS = 5


@dataclass
class GenerationConfig:
    """Settings that control how assets are requested from the generation service."""

    endpoint_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    default_width: int = DEFAULT_WIDTH
    default_height: int = DEFAULT_HEIGHT
    max_keywords: int = MAX_PROMPT_KEYWORDS
    request_delay: float = 0.0

    @classmethod
    def from_env(cls) -> "GenerationConfig":
        """Build a config from ASSET_SERVICE_* environment variables."""
        timeout = os.getenv("ASSET_SERVICE_TIMEOUT")
        return cls(
            endpoint_url=os.getenv("ASSET_SERVICE_URL") or None,
            api_key=os.getenv("ASSET_SERVICE_API_KEY") or None,
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
        )
