"""Reference substitution that edits attribute values in place.

BeautifulSoup is only used to find the elements to change. Edits are spliced
into the original text at the tag's source position, so markup outside the
rewritten attribute value is kept byte for byte.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .detector import parse_document
from .errors import DetectionError, RewriteNoMatchError
from .models import AssetKind

logger = logging.getLogger("asset_localizer")

_TAG_OPEN = re.compile(r"<([a-zA-Z][^\s/>]*)")
_ATTRIBUTE = re.compile(
    r"""\s*([^\s"'>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+)))?"""
)


@dataclass
class _RawAttribute:
    name: str
    value: str
    start: int
    end: int
    quote: str


@dataclass
class _Edit:
    start: int
    end: int
    replacement: str


def _line_starts(document: str) -> List[int]:
    starts = [0]
    for index, char in enumerate(document):
        if char == "\n":
            starts.append(index + 1)
    return starts


def _tag_offset(document: str, tag: Tag, line_starts: List[int]) -> Optional[int]:
    """Translate a tag's parser position into an offset into ``document``."""
    line = getattr(tag, "sourceline", None)
    column = getattr(tag, "sourcepos", None)
    if line is None or column is None or line < 1 or line > len(line_starts):
        return None
    offset = line_starts[line - 1] + column
    match = _TAG_OPEN.match(document, offset)
    if not match or match.group(1).lower() != tag.name:
        return None
    return offset


def _iter_raw_attributes(document: str, offset: int) -> Iterator[_RawAttribute]:
    """Yield attributes of the start tag at ``offset`` with their value spans."""
    opening = _TAG_OPEN.match(document, offset)
    if not opening:
        return
    pos = opening.end()
    length = len(document)
    while pos < length and document[pos] != ">":
        match = _ATTRIBUTE.match(document, pos)
        if not match:
            pos += 1
            continue
        pos = match.end()
        for group, quote in ((2, '"'), (3, "'"), (4, "")):
            if match.group(group) is not None:
                yield _RawAttribute(
                    name=match.group(1).lower(),
                    value=match.group(group),
                    start=match.start(group),
                    end=match.end(group),
                    quote=quote,
                )
                break


def _find_raw_attribute(
    document: str, offset: int, name: str
) -> Optional[_RawAttribute]:
    found = None
    for attribute in _iter_raw_attributes(document, offset):
        if attribute.name == name:
            found = attribute
    return found


def _escape_value(value: str, quote: str) -> str:
    escaped = html.escape(value, quote=False)
    if quote == '"':
        return escaped.replace('"', "&quot;")
    if quote == "'":
        return escaped.replace("'", "&#x27;")
    if re.search(r"[\s\"'=<>`]", value):
        # An unquoted value cannot hold these; the caller wraps it in quotes.
        return '"' + escaped.replace('"', "&quot;") + '"'
    return escaped


def _replace_value_edit(
    raw: _RawAttribute, original: str, new_reference: str, partial: bool
) -> Optional[_Edit]:
    """Build the edit that swaps ``original`` for ``new_reference`` in ``raw``."""
    if partial and original in raw.value:
        # Keep the raw style text; only the reference itself is swapped.
        replacement = raw.value.replace(
            original, _escape_value(new_reference, raw.quote or '"'), 1
        )
        if not raw.quote and re.search(r"[\s\"'=<>`]", replacement):
            replacement = '"' + replacement + '"'
        return _Edit(raw.start, raw.end, replacement)

    unescaped = html.unescape(raw.value)
    if partial:
        if original not in unescaped:
            return None
        updated = unescaped.replace(original, new_reference, 1)
    else:
        if unescaped.strip() != original:
            return None
        updated = new_reference
    return _Edit(raw.start, raw.end, _escape_value(updated, raw.quote))


def _collect_edits(
    document: str,
    soup: BeautifulSoup,
    original: str,
    new_reference: str,
    kind: AssetKind,
    occurrence: int,
) -> List[_Edit]:
    line_starts = _line_starts(document)
    edits: List[_Edit] = []

    if kind is AssetKind.BACKGROUND:
        candidates: List[Tuple[Tag, str]] = [
            (element, "style")
            for element in soup.find_all(style=True)
            if original in (element.get("style") or "")
        ]
        partial = True
        first_only = False
    elif kind is AssetKind.VIDEO:
        candidates = [
            (element, "poster")
            for element in soup.find_all("video")
            if (element.get("poster") or "").strip() == original
        ]
        partial = False
        first_only = True
    else:
        candidates = [
            (element, "src")
            for element in soup.find_all("img")
            if (element.get("src") or "").strip() == original
        ]
        partial = False
        first_only = True

    for element, attribute_name in candidates:
        offset = _tag_offset(document, element, line_starts)
        if offset is None:
            logger.debug("No source position for <%s>; skipping", element.name)
            continue
        raw = _find_raw_attribute(document, offset, attribute_name)
        if raw is None:
            continue
        edit = _replace_value_edit(raw, original, new_reference, partial)
        if edit is None:
            continue
        if first_only and occurrence > 0:
            occurrence -= 1
            continue
        edits.append(edit)
        if first_only:
            break
    return edits


def rewrite_reference(
    document: str,
    original_reference: str,
    new_reference: str,
    kind: AssetKind,
    *,
    occurrence: int = 0,
    strict: bool = False,
) -> str:
    """Swap ``original_reference`` for ``new_reference`` on the matching element(s).

    Images and video posters are matched on exact attribute equality and only
    one element is rewritten: the ``occurrence``-th (zero-based) of the
    elements that still carry the reference. Background references are
    replaced inside every inline style that contains them. When nothing
    matches the document is returned unchanged, unless ``strict`` is set, in
    which case RewriteNoMatchError is raised.
    """
    if not original_reference or not document:
        edits: List[_Edit] = []
    else:
        try:
            soup = parse_document(document)
        except DetectionError as exc:
            logger.warning("Unable to rewrite %s: %s", original_reference, exc)
            edits = []
        else:
            edits = _collect_edits(
                document, soup, original_reference, new_reference, kind, occurrence
            )

    if not edits:
        if strict:
            raise RewriteNoMatchError(
                f"{kind.value} reference {original_reference!r} not found in document"
            )
        return document

    updated = document
    for edit in sorted(edits, key=lambda item: item.start, reverse=True):
        updated = updated[: edit.start] + edit.replacement + updated[edit.end :]
    return updated
