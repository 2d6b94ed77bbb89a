from asset_localizer.models import AssetKind, BusinessContext, DetectedAsset
from asset_localizer.prompts import SECTION_TEMPLATES, synthesize_prompt

KEYWORDS = ["fresh bread", "austin bakery", "cakes", "pastry", "coffee", "brunch"]


def _asset(section: str, text: str = "", kind: AssetKind = AssetKind.IMAGE) -> DetectedAsset:
    return DetectedAsset(
        id="img-0",
        kind=kind,
        original_reference="/a.jpg",
        descriptive_text=text,
        section=section,
    )


def test_hero_prompt_interpolates_business_and_location(business: BusinessContext) -> None:
    prompt = synthesize_prompt(_asset("hero"), business)

    assert prompt == (
        "Professional hero image for Acme Bakery, bakery company in Austin. "
        "Modern, high-quality, inspiring business photograph. 16:9 aspect ratio."
    )


def test_context_and_keyword_clauses_are_appended(business: BusinessContext) -> None:
    prompt = synthesize_prompt(_asset("about", "Team photo"), business, KEYWORDS)

    assert prompt == (
        "Professional team or office photo for Acme Bakery. Authentic, warm, inviting "
        "business atmosphere. Shows professionalism and expertise. Context: Team photo. "
        "Keywords: fresh bread, austin bakery, cakes, pastry, coffee."
    )


def test_short_descriptions_are_not_used_as_context(business: BusinessContext) -> None:
    prompt = synthesize_prompt(_asset("contact", "Logo"), business)

    assert "Context:" not in prompt


def test_unmapped_sections_fall_back_to_hero_template(business: BusinessContext) -> None:
    hero = synthesize_prompt(_asset("hero"), business)

    for section in ("general", "header", "footer"):
        assert synthesize_prompt(_asset(section), business) == hero


def test_video_prompts_are_marked_as_posters(business: BusinessContext) -> None:
    prompt = synthesize_prompt(
        _asset("gallery", "Video thumbnail", AssetKind.VIDEO), business
    )

    assert prompt == (
        "Video thumbnail/poster: Portfolio/gallery image for bakery company. "
        "High-quality work showcase. Context: Video thumbnail."
    )


def test_missing_business_context_uses_generic_defaults() -> None:
    prompt = synthesize_prompt(_asset("hero"), None)

    assert prompt.startswith("Professional hero image for the business, business company.")
    assert " in " not in prompt.split(".")[0]


def test_industry_defaults_per_template() -> None:
    business = BusinessContext(business_name="Acme")

    assert "for professional services" in synthesize_prompt(_asset("services"), business)
    assert "for business website" in synthesize_prompt(_asset("background"), business)


def test_features_template_lists_first_three_keywords(business: BusinessContext) -> None:
    prompt = synthesize_prompt(_asset("features"), business, KEYWORDS)

    assert "design showing fresh bread, austin bakery, cakes." in prompt
    assert synthesize_prompt(_asset("features"), business).endswith(
        "design showing professional services."
    )


def test_prompt_synthesis_is_deterministic(business: BusinessContext) -> None:
    asset = _asset("testimonials", "Happy customer holding cake")

    assert synthesize_prompt(asset, business, KEYWORDS) == synthesize_prompt(
        asset, business, KEYWORDS
    )


def test_every_template_renders(business: BusinessContext) -> None:
    for section in SECTION_TEMPLATES:
        assert synthesize_prompt(_asset(section), business, KEYWORDS)
