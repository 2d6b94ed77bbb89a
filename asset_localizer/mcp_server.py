"""MCP server exposing asset detection and localization tools."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from .config import GenerationConfig
from .detector import detect_assets as _detect_assets
from .generation import HttpAssetGenerator
from .models import BusinessContext
from .orchestrator import run_pipeline

logger = logging.getLogger("asset_localizer.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="asset-localizer")


@mcp.tool()
async def detect_assets(html: str) -> List[Dict[str, Any]]:
    """List the images, backgrounds and videos in an HTML document that can be replaced."""
    return [asdict(asset) for asset in _detect_assets(html)]


@mcp.tool()
async def localize(
    html: str,
    business_name: str,
    industry: Optional[str] = None,
    location: Optional[str] = None,
    keywords: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Generate business-specific assets for an HTML document and return the rewritten page."""
    config = GenerationConfig.from_env()
    if not config.endpoint_url:
        raise RuntimeError("ASSET_SERVICE_URL must be set to generate assets")
    generator = HttpAssetGenerator(config)
    business = BusinessContext(
        business_name=business_name, industry=industry, location=location
    )
    try:
        result = await run_pipeline(html, generator, business, keywords or [], config)
    finally:
        generator.close()
    return result.to_dict()


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
