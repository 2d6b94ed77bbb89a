"""Client for the external asset generation service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

import requests

from .config import GenerationConfig
from .errors import GenerationRequestError
from .models import GenerationRequest

logger = logging.getLogger("asset_localizer")

_REFERENCE_KEYS = ("imageUrl", "generatedReference")


class AssetGenerator(Protocol):
    """Anything that can turn a generation request into a new asset reference."""

    async def generate(self, request: GenerationRequest) -> str:
        ...


class HttpAssetGenerator:
    """POSTs generation requests to an HTTP endpoint, one call per asset."""

    def __init__(
        self,
        config: GenerationConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not config.endpoint_url:
            raise ValueError("An endpoint URL is required for the generation service")
        self.config = config
        self.endpoint_url = config.endpoint_url
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or body.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
        return f"Generation service returned HTTP {resp.status_code}"

    @staticmethod
    def _extract_reference(body: Any, status_code: int) -> str:
        if not isinstance(body, dict):
            raise GenerationRequestError(
                "Generation service returned a non-object payload", status_code
            )
        if body.get("success") is False:
            message = body.get("error") or "Generation service reported failure"
            raise GenerationRequestError(str(message), status_code)
        for key in _REFERENCE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        raise GenerationRequestError(
            "Generation service response did not include an image URL", status_code
        )

    def generate_sync(self, request: GenerationRequest) -> str:
        """Issue the request on the calling thread and return the new reference."""
        logger.debug(
            "Requesting %s asset for section %s (%dx%d)",
            request.kind.value,
            request.section,
            request.requested_width,
            request.requested_height,
        )
        try:
            resp = self._session.post(
                self.endpoint_url,
                json=request.to_payload(),
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise GenerationRequestError(f"Generation request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise GenerationRequestError(self._error_message(resp), resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise GenerationRequestError(
                "Generation service returned non-JSON payload", resp.status_code
            ) from exc
        return self._extract_reference(body, resp.status_code)

    async def generate(self, request: GenerationRequest) -> str:
        return await asyncio.to_thread(self.generate_sync, request)

    def close(self) -> None:
        self._session.close()
