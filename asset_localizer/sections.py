"""Heuristic section labelling based on ancestor class and id attributes."""

from __future__ import annotations

from typing import Tuple

from bs4 import BeautifulSoup, Tag

from .utils import attribute_text

GENERAL_SECTION = "general"

# Checked in order at every ancestor; the first keyword hit decides the label.
SECTION_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("hero", "banner"), "hero"),
    (("about", "story"), "about"),
    (("service", "feature"), "services"),
    (("testimonial", "review"), "testimonials"),
    (("team",), "team"),
    (("contact",), "contact"),
    (("gallery", "portfolio"), "gallery"),
    (("footer",), "footer"),
    (("header", "nav"), "header"),
)


def classify_tokens(class_text: str, id_text: str) -> str | None:
    """Return the section label for a single element's class/id text, if any."""
    combined = f"{class_text} {id_text}".lower()
    for keywords, label in SECTION_RULES:
        if any(keyword in combined for keyword in keywords):
            return label
    return None


def classify_section(element: Tag) -> str:
    """Walk outward from ``element`` and label it by the closest matching ancestor."""
    current = element
    while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
        label = classify_tokens(
            attribute_text(current.get("class")),
            attribute_text(current.get("id")),
        )
        if label:
            return label
        current = current.parent
    return GENERAL_SECTION
