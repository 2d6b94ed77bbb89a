import asyncio
from typing import Any, Dict, List, Optional

import pytest
import requests

from asset_localizer.config import GenerationConfig
from asset_localizer.errors import GenerationRequestError
from asset_localizer.generation import HttpAssetGenerator
from asset_localizer.models import AssetKind, BusinessContext, GenerationRequest

_MISSING = object()


class _FakeResponse:
    def __init__(self, status_code: int, body: Any = _MISSING) -> None:
        self.status_code = status_code
        self._body = body

    def json(self) -> Any:
        if self._body is _MISSING:
            raise ValueError("No JSON object could be decoded")
        return self._body


class _FakeSession:
    def __init__(self, response: Optional[_FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def close(self) -> None:
        self.closed = True


def _request() -> GenerationRequest:
    return GenerationRequest(
        prompt="Professional hero image for Acme.",
        original_reference="/hero.jpg",
        section="hero",
        kind=AssetKind.BACKGROUND,
        business_context=BusinessContext("Acme", industry="bakery"),
        requested_width=1024,
        requested_height=768,
    )


def _generator(session: _FakeSession, api_key: Optional[str] = "secret") -> HttpAssetGenerator:
    config = GenerationConfig(endpoint_url="https://assets.example.com/generate", api_key=api_key, timeout=12.5)
    return HttpAssetGenerator(config, session=session)  # type: ignore[arg-type]


def test_generate_posts_payload_and_returns_image_url() -> None:
    session = _FakeSession(_FakeResponse(200, {"success": True, "imageUrl": "https://cdn/new.png"}))

    reference = asyncio.run(_generator(session).generate(_request()))

    assert reference == "https://cdn/new.png"
    (call,) = session.calls
    assert call["url"] == "https://assets.example.com/generate"
    assert call["timeout"] == 12.5
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["json"] == {
        "prompt": "Professional hero image for Acme.",
        "originalUrl": "/hero.jpg",
        "section": "hero",
        "type": "background",
        "businessContext": {
            "businessName": "Acme",
            "industry": "bakery",
            "location": None,
            "services": [],
        },
        "width": 1024,
        "height": 768,
    }


def test_generated_reference_key_is_accepted() -> None:
    session = _FakeSession(_FakeResponse(200, {"generatedReference": " /out.webp "}))

    assert _generator(session, api_key=None).generate_sync(_request()) == "/out.webp"
    assert "Authorization" not in session.calls[0]["headers"]


@pytest.mark.parametrize(
    "response, expected_message, expected_status",
    [
        (
            _FakeResponse(429, {"success": False, "error": "Daily image generation limit reached."}),
            "Daily image generation limit reached.",
            429,
        ),
        (
            _FakeResponse(500, {"success": False, "imageUrl": "https://via.placeholder.com/1024x768"}),
            "Generation service returned HTTP 500",
            500,
        ),
        (_FakeResponse(502), "Generation service returned HTTP 502", 502),
        (_FakeResponse(200), "Generation service returned non-JSON payload", 200),
        (_FakeResponse(200, ["not", "an", "object"]), "non-object payload", 200),
        (_FakeResponse(200, {"success": True}), "did not include an image URL", 200),
        (_FakeResponse(200, {"success": False, "error": "prompt rejected"}), "prompt rejected", 200),
    ],
)
def test_failed_responses_raise_generation_errors(
    response: _FakeResponse, expected_message: str, expected_status: int
) -> None:
    generator = _generator(_FakeSession(response))

    with pytest.raises(GenerationRequestError) as exc_info:
        generator.generate_sync(_request())

    assert expected_message in exc_info.value.message
    assert exc_info.value.status_code == expected_status


def test_transport_errors_raise_generation_errors() -> None:
    generator = _generator(_FakeSession(error=requests.ConnectionError("connection refused")))

    with pytest.raises(GenerationRequestError) as exc_info:
        asyncio.run(generator.generate(_request()))

    assert "connection refused" in str(exc_info.value)
    assert exc_info.value.status_code is None


def test_endpoint_is_required() -> None:
    with pytest.raises(ValueError):
        HttpAssetGenerator(GenerationConfig())


def test_close_releases_session() -> None:
    session = _FakeSession(_FakeResponse(200, {"imageUrl": "x"}))
    generator = _generator(session)

    generator.close()

    assert session.closed


def test_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ASSET_SERVICE_URL", "https://gen.example.com")
    monkeypatch.setenv("ASSET_SERVICE_API_KEY", "k")
    monkeypatch.setenv("ASSET_SERVICE_TIMEOUT", "5")

    config = GenerationConfig.from_env()

    assert (config.endpoint_url, config.api_key, config.timeout) == ("https://gen.example.com", "k", 5.0)
    assert (config.default_width, config.default_height) == (1024, 768)
