"""Final packaging of a processed run into a document plus manifest."""

from __future__ import annotations

import logging
from typing import List

from .errors import InvalidTransitionError, RunClosedError
from .models import AssetStatus, CompletionResult, ManifestEntry, PipelineRun

logger = logging.getLogger("asset_localizer")


def build_manifest(run: PipelineRun) -> List[ManifestEntry]:
    """List completed assets in run order; errored and skipped ones are left out."""
    manifest: List[ManifestEntry] = []
    for asset in run.assets:
        if asset.status is not AssetStatus.COMPLETED or not asset.generated_reference:
            continue
        manifest.append(
            ManifestEntry(
                original_reference=asset.original_reference,
                generated_reference=asset.generated_reference,
                descriptive_text=asset.descriptive_text,
                section=asset.section,
                prompt=asset.prompt or "",
            )
        )
    return manifest


def assemble(run: PipelineRun) -> CompletionResult:
    """Emit the live document and manifest, closing the run to further changes."""
    if run.closed:
        raise RunClosedError("Run has already been assembled")
    if not run.all_processed:
        raise InvalidTransitionError(
            f"Run is not fully processed ({run.count(AssetStatus.PENDING)} pending, "
            f"{run.count(AssetStatus.GENERATING)} generating)"
        )
    manifest = build_manifest(run)
    run.closed = True
    logger.info(
        "Assembled document with %d replaced asset(s) (%d failed, %d skipped)",
        len(manifest),
        run.count(AssetStatus.ERROR),
        run.count(AssetStatus.SKIPPED),
    )
    return CompletionResult(final_document=run.document, manifest=manifest)
