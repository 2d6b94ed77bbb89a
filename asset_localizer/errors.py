"""Exception types raised by the asset localization pipeline."""

from __future__ import annotations

from typing import Optional


class AssetLocalizerError(Exception):
    """Base class for every pipeline error."""


class DetectionError(AssetLocalizerError):
    """A document fragment could not be parsed into an element tree."""


class PromptSynthesisError(AssetLocalizerError):
    """A prompt template could not be rendered for an asset."""


class GenerationRequestError(AssetLocalizerError):
    """The generation service failed to produce an asset."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        status = f" status={self.status_code}" if self.status_code is not None else ""
        return f"{self.message}{status}".strip()


class RewriteNoMatchError(AssetLocalizerError):
    """The original reference is not present in the current snapshot."""


class EmptyDocumentError(AssetLocalizerError):
    """The input document is empty, so no run can be created."""


class InvalidTransitionError(AssetLocalizerError):
    """An orchestrator operation was called in a state that does not allow it."""


class RunClosedError(InvalidTransitionError):
    """The run was already assembled and accepts no further mutation."""
