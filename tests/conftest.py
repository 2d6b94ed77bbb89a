from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Union

import pytest

from asset_localizer.models import BusinessContext, GenerationRequest

Outcome = Union[str, BaseException]


class FakeGenerator:
    """Scripted stand-in for the generation service.

    ``outcomes`` maps an original reference to the results returned on
    successive calls; references without a script get ``<stem>-new<suffix>``.
    A reference listed in ``gates`` blocks on its event before answering.
    """

    def __init__(
        self,
        outcomes: Optional[Dict[str, List[Outcome]]] = None,
        gates: Optional[Dict[str, asyncio.Event]] = None,
    ) -> None:
        self.outcomes = {key: list(value) for key, value in (outcomes or {}).items()}
        self.gates = gates or {}
        self.requests: List[GenerationRequest] = []
        self.active = 0
        self.max_active = 0

    def _default(self, reference: str) -> str:
        stem, dot, suffix = reference.rpartition(".")
        if not dot:
            return f"{reference}-new"
        return f"{stem}-new.{suffix}"

    async def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            gate = self.gates.pop(request.original_reference, None)
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)
            scripted = self.outcomes.get(request.original_reference)
            outcome: Outcome = scripted.pop(0) if scripted else self._default(
                request.original_reference
            )
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.active -= 1


@pytest.fixture
def fake_generator_factory() -> Callable[..., FakeGenerator]:
    return FakeGenerator


@pytest.fixture
def business() -> BusinessContext:
    return BusinessContext(
        business_name="Acme Bakery",
        industry="bakery",
        location="Austin",
        services=("cakes", "catering"),
    )


@pytest.fixture
def landing_page() -> str:
    return """<!DOCTYPE html>
<html>
<head><title>Template</title></head>
<body>
<header class="site-header"><img src="/logo.png" alt="Logo"></header>
<section class="hero-banner" style="background-image: url('/hero-bg.jpg'); color: #fff">
  <img src="/hero.jpg" alt="Smiling chef in kitchen" width="1200" height="600">
  <img src="data:image/png;base64,iVBORw0KGgo=" alt="inline pixel">
  <img src="https://via.placeholder.com/300x200" alt="placeholder">
</section>
<div id="gallery">
  <img src="/g1.jpg">
  <img src="/hero.jpg" alt="Hero again">
</div>
<footer class="site-footer">
  <video poster="/poster.jpg" autoplay muted>
    <source src="/clip.mp4" type="video/mp4">
  </video>
</footer>
</body>
</html>
"""
