"""Data models used throughout the asset localization pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


class AssetKind(str, Enum):
    IMAGE = "image"
    BACKGROUND = "background"
    VIDEO = "video"


class AssetStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def is_processed(self) -> bool:
        """True once the pipeline may move past an asset in this status."""
        return self in (AssetStatus.COMPLETED, AssetStatus.ERROR, AssetStatus.SKIPPED)


@dataclass(frozen=True)
class Dimensions:
    """Size hint read from the asset element's attributes."""

    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class DetectedAsset:
    """One replaceable asset found in the document, plus its generation state."""

    id: str
    kind: AssetKind
    original_reference: str
    descriptive_text: str
    section: str
    dimensions: Dimensions = field(default_factory=Dimensions)
    status: AssetStatus = AssetStatus.PENDING
    generated_reference: Optional[str] = None
    prompt: Optional[str] = None
    error_detail: Optional[str] = None
    attempts: int = 0


@dataclass(frozen=True)
class BusinessContext:
    """Business details that steer prompt wording for a run."""

    business_name: str
    industry: Optional[str] = None
    location: Optional[str] = None
    services: Tuple[str, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "businessName": self.business_name,
            "industry": self.industry,
            "location": self.location,
            "services": list(self.services),
        }


@dataclass(frozen=True)
class PageKeywords:
    """SEO keywords planned for a single page of the site."""

    name: str
    keywords: Tuple[str, ...]
    page_type: Optional[str] = None


def flatten_keywords(pages: Iterable[PageKeywords]) -> List[str]:
    """Flatten per-page keywords into one ordered list without blanks or repeats."""
    flattened: List[str] = []
    seen = set()
    for page in pages:
        for keyword in page.keywords:
            cleaned = keyword.strip()
            if not cleaned or cleaned.lower() in seen:
                continue
            seen.add(cleaned.lower())
            flattened.append(cleaned)
    return flattened


@dataclass(frozen=True)
class GenerationRequest:
    """Payload sent to the generation service for a single asset."""

    prompt: str
    original_reference: str
    section: str
    kind: AssetKind
    business_context: Optional[BusinessContext]
    requested_width: int
    requested_height: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "originalUrl": self.original_reference,
            "section": self.section,
            "type": self.kind.value,
            "businessContext": (
                self.business_context.to_payload() if self.business_context else None
            ),
            "width": self.requested_width,
            "height": self.requested_height,
        }


@dataclass(frozen=True)
class ManifestEntry:
    """A successfully replaced asset recorded for downstream persistence."""

    original_reference: str
    generated_reference: str
    descriptive_text: str
    section: str
    prompt: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "originalReference": self.original_reference,
            "generatedReference": self.generated_reference,
            "descriptiveText": self.descriptive_text,
            "section": self.section,
            "prompt": self.prompt,
        }


@dataclass(frozen=True)
class CompletionResult:
    """Final document and manifest emitted once a run is fully processed."""

    final_document: str
    manifest: List[ManifestEntry]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "finalDocument": self.final_document,
            "manifest": [entry.to_dict() for entry in self.manifest],
        }


@dataclass(frozen=True)
class RunProgress:
    """Read-only snapshot of a run for progress displays."""

    cursor: int
    total: int
    statuses: Sequence[Tuple[str, AssetStatus]]
    document: str
    completed: int
    errored: int
    skipped: int
    all_processed: bool

    @property
    def percent(self) -> float:
        if not self.total:
            return 100.0
        processed = self.completed + self.errored + self.skipped
        return processed * 100.0 / self.total


@dataclass
class PipelineRun:
    """Mutable state of one pipeline invocation over a single document."""

    original_document: str
    assets: List[DetectedAsset]
    document: str = ""
    cursor: int = 0
    started: bool = False
    closed: bool = False

    def __post_init__(self) -> None:
        if not self.document:
            self.document = self.original_document

    @property
    def total(self) -> int:
        return len(self.assets)

    @property
    def current(self) -> Optional[DetectedAsset]:
        if 0 <= self.cursor < len(self.assets):
            return self.assets[self.cursor]
        return None

    def count(self, status: AssetStatus) -> int:
        return sum(1 for asset in self.assets if asset.status is status)

    @property
    def all_processed(self) -> bool:
        return all(asset.status.is_processed for asset in self.assets)

    def progress(self) -> RunProgress:
        return RunProgress(
            cursor=self.cursor,
            total=self.total,
            statuses=tuple((asset.id, asset.status) for asset in self.assets),
            document=self.document,
            completed=self.count(AssetStatus.COMPLETED),
            errored=self.count(AssetStatus.ERROR),
            skipped=self.count(AssetStatus.SKIPPED),
            all_processed=self.all_processed,
        )
