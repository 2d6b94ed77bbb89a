"""Prompt synthesis for asset generation requests."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .config import MAX_PROMPT_KEYWORDS
from .errors import PromptSynthesisError
from .models import AssetKind, BusinessContext, DetectedAsset

DEFAULT_BUSINESS_NAME = "the business"
MIN_CONTEXT_CHARS = 5
FALLBACK_SECTION = "hero"

SECTION_TEMPLATES: Dict[str, str] = {
    "hero": (
        "Professional hero image for {name}, {industry} company{location_clause}. "
        "Modern, high-quality, inspiring business photograph. 16:9 aspect ratio."
    ),
    "about": (
        "Professional team or office photo for {name}. Authentic, warm, inviting "
        "business atmosphere. Shows professionalism and expertise."
    ),
    "services": (
        "High-quality service illustration for {service_industry} services. Clean, "
        "modern, professional imagery representing quality work."
    ),
    "features": (
        "Feature highlight image for {name}. Clean, modern design showing "
        "{feature_keywords}."
    ),
    "testimonials": (
        "Customer success imagery for {name}. Happy, satisfied customers. "
        "Professional and trustworthy appearance."
    ),
    "contact": (
        "Contact section image for {name}. Professional, welcoming, approachable "
        "business setting."
    ),
    "gallery": (
        "Portfolio/gallery image for {industry} company. High-quality work showcase."
    ),
    "team": (
        "Professional team member portrait. Modern business headshot with friendly, "
        "professional appearance."
    ),
    "background": (
        "Abstract professional background for {industry} website. Subtle, elegant, "
        "modern gradient or pattern."
    ),
}


def _template_fields(
    business: Optional[BusinessContext], keywords: Sequence[str]
) -> Dict[str, str]:
    name = (business.business_name.strip() if business else "") or DEFAULT_BUSINESS_NAME
    industry = (business.industry or "").strip() if business else ""
    location = (business.location or "").strip() if business else ""
    return {
        "name": name,
        "industry": industry or "business",
        "service_industry": industry or "professional",
        "location_clause": f" in {location}" if location else "",
        "feature_keywords": ", ".join(keywords[:3]) or "professional services",
    }


def synthesize_prompt(
    asset: DetectedAsset,
    business: Optional[BusinessContext],
    keywords: Sequence[str] = (),
    max_keywords: int = MAX_PROMPT_KEYWORDS,
) -> str:
    """Build the generation prompt for ``asset`` from its section and business context."""
    cleaned_keywords: List[str] = [kw.strip() for kw in keywords if kw and kw.strip()]
    template = SECTION_TEMPLATES.get(asset.section, SECTION_TEMPLATES[FALLBACK_SECTION])
    try:
        prompt = template.format(**_template_fields(business, cleaned_keywords))
    except (KeyError, IndexError) as exc:
        raise PromptSynthesisError(
            f"Prompt template for section {asset.section!r} is invalid: {exc}"
        ) from exc

    description = asset.descriptive_text.strip()
    if len(description) > MIN_CONTEXT_CHARS:
        prompt += f" Context: {description}."

    if cleaned_keywords:
        prompt += f" Keywords: {', '.join(cleaned_keywords[:max_keywords])}."

    if asset.kind is AssetKind.VIDEO:
        prompt = f"Video thumbnail/poster: {prompt}"
    return prompt
