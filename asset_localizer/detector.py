"""HTML scanning utilities that enumerate replaceable visual assets."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.exceptions import ParserRejectedMarkup

from .errors import DetectionError
from .models import AssetKind, DetectedAsset, Dimensions
from .sections import classify_section
from .utils import collapse_whitespace, parse_dimension

logger = logging.getLogger("asset_localizer")

BACKGROUND_URL_PATTERN = re.compile(r"""url\(['"]?([^'")]+)['"]?\)""")
BACKGROUND_TEXT = "Background image"
VIDEO_TEXT = "Video thumbnail"

_ID_PREFIXES = {
    AssetKind.IMAGE: "img",
    AssetKind.BACKGROUND: "bg",
    AssetKind.VIDEO: "vid",
}


def parse_document(document: str) -> BeautifulSoup:
    """Parse markup leniently, raising DetectionError if no tree can be built."""
    try:
        return BeautifulSoup(document, "html.parser")
    except (ParserRejectedMarkup, AssertionError, ValueError) as exc:
        raise DetectionError(f"Unable to parse document: {exc}") from exc


def is_inline_reference(reference: str) -> bool:
    """Embedded data URIs are part of the markup, not assets to replace."""
    return reference.strip().lower().startswith("data:")


def _image_reference(img: Tag) -> Optional[str]:
    src = (img.get("src") or "").strip()
    if not src or is_inline_reference(src) or "placeholder" in src:
        return None
    return src


def _background_reference(element: Tag) -> Optional[str]:
    style = element.get("style") or ""
    if "background" not in style:
        return None
    match = BACKGROUND_URL_PATTERN.search(style)
    if not match:
        return None
    src = match.group(1).strip()
    if not src or is_inline_reference(src):
        return None
    return src


def _video_reference(element: Tag) -> Optional[str]:
    src = (element.get("src") or element.get("poster") or "").strip()
    if not src or is_inline_reference(src):
        return None
    return src


def _iter_video_elements(soup: BeautifulSoup) -> Iterable[Tag]:
    """Yield <video> elements and <source> children of videos in document order."""
    for element in soup.find_all(["video", "source"]):
        if element.name == "video" or element.find_parent("video") is not None:
            yield element


class _AssetCollector:
    """Accumulates assets while sharing one id counter across detection phases."""

    def __init__(self) -> None:
        self.assets: List[DetectedAsset] = []
        self._counter = 0

    def add(
        self,
        element: Tag,
        kind: AssetKind,
        reference: str,
        descriptive_text: str,
        dimensions: Optional[Dimensions] = None,
    ) -> None:
        asset_id = f"{_ID_PREFIXES[kind]}-{self._counter}"
        self._counter += 1
        self.assets.append(
            DetectedAsset(
                id=asset_id,
                kind=kind,
                original_reference=reference,
                descriptive_text=descriptive_text,
                section=classify_section(element),
                dimensions=dimensions or Dimensions(),
            )
        )


def detect_assets(document: str) -> List[DetectedAsset]:
    """Return every replaceable asset: images, then backgrounds, then videos."""
    try:
        soup = parse_document(document)
    except DetectionError as exc:
        logger.warning("Skipping asset detection: %s", exc)
        return []

    collector = _AssetCollector()

    for img in soup.find_all("img"):
        src = _image_reference(img)
        if src is None:
            continue
        collector.add(
            img,
            AssetKind.IMAGE,
            src,
            collapse_whitespace(img.get("alt") or ""),
            Dimensions(
                width=parse_dimension(img.get("width")),
                height=parse_dimension(img.get("height")),
            ),
        )

    for element in soup.find_all(style=True):
        src = _background_reference(element)
        if src is None:
            continue
        collector.add(element, AssetKind.BACKGROUND, src, BACKGROUND_TEXT)

    for element in _iter_video_elements(soup):
        src = _video_reference(element)
        if src is None:
            continue
        collector.add(element, AssetKind.VIDEO, src, VIDEO_TEXT)

    logger.debug("Detected %d replaceable asset(s)", len(collector.assets))
    return collector.assets
