"""Sequential orchestration of asset generation for a single document."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence, Set

from .assembler import assemble
from .config import GenerationConfig
from .detector import detect_assets
from .errors import (
    EmptyDocumentError,
    GenerationRequestError,
    InvalidTransitionError,
    RunClosedError,
)
from .generation import AssetGenerator
from .models import (
    AssetStatus,
    BusinessContext,
    CompletionResult,
    DetectedAsset,
    GenerationRequest,
    PipelineRun,
    RunProgress,
)
from .prompts import synthesize_prompt
from .rewriter import rewrite_reference

logger = logging.getLogger("asset_localizer")

ProgressCallback = Callable[[RunProgress], None]


def create_run(document: str) -> PipelineRun:
    """Detect assets in ``document`` and wrap them in a fresh run."""
    if document is None or not document.strip():
        raise EmptyDocumentError("Cannot localize assets of an empty document")
    assets = detect_assets(document)
    return PipelineRun(original_document=document, assets=assets)


class GenerationOrchestrator:
    """Drives one run's assets through generation, strictly one request at a time.

    ``start``/``advance``/``resume`` walk the cursor forward and generate every
    pending asset they reach. ``skip`` abandons the asset under the cursor,
    cancelling its request if one is in flight. ``retry`` re-issues a failed
    asset's request with its original prompt, waiting for the request slot if
    another asset is being generated.
    """

    def __init__(
        self,
        run: PipelineRun,
        generator: AssetGenerator,
        business: Optional[BusinessContext] = None,
        keywords: Sequence[str] = (),
        config: Optional[GenerationConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.run = run
        self.generator = generator
        self.business = business
        self.keywords = list(keywords)
        self.config = config or GenerationConfig()
        self.on_progress = on_progress
        self._slot: Optional[asyncio.Lock] = None
        self._driving = False
        self._inflight: Optional[asyncio.Task] = None
        self._inflight_index: Optional[int] = None
        self._queued_retries: Set[int] = set()

    def progress(self) -> RunProgress:
        return self.run.progress()

    def _notify(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.run.progress())

    def _ensure_open(self) -> None:
        if self.run.closed:
            raise RunClosedError("Run has already been assembled")

    def _request_slot(self) -> asyncio.Lock:
        if self._slot is None:
            self._slot = asyncio.Lock()
        return self._slot

    def _build_request(self, asset: DetectedAsset) -> GenerationRequest:
        return GenerationRequest(
            prompt=asset.prompt or "",
            original_reference=asset.original_reference,
            section=asset.section,
            kind=asset.kind,
            business_context=self.business,
            requested_width=asset.dimensions.width or self.config.default_width,
            requested_height=asset.dimensions.height or self.config.default_height,
        )

    def _occurrence(self, asset: DetectedAsset) -> int:
        """Position of ``asset``'s element among those still carrying its reference."""
        earlier = 0
        for other in self.run.assets:
            if other is asset:
                break
            if (
                other.kind is asset.kind
                and other.original_reference == asset.original_reference
                and other.status is not AssetStatus.COMPLETED
            ):
                earlier += 1
        return earlier

    def _record_success(self, asset: DetectedAsset, reference: str) -> None:
        asset.generated_reference = reference
        asset.error_detail = None
        asset.status = AssetStatus.COMPLETED
        updated = rewrite_reference(
            self.run.document,
            asset.original_reference,
            reference,
            asset.kind,
            occurrence=self._occurrence(asset),
        )
        if updated == self.run.document:
            logger.debug("No element references %s any more", asset.original_reference)
        self.run.document = updated
        logger.info("Generated %s (%s): %s", asset.id, asset.section, reference)

    def _record_failure(self, asset: DetectedAsset, exc: BaseException) -> None:
        asset.error_detail = str(exc) or exc.__class__.__name__
        asset.status = AssetStatus.ERROR
        logger.warning("Generation failed for %s: %s", asset.id, asset.error_detail)

    async def _attempt(self, index: int, expected: AssetStatus) -> bool:
        """Generate the asset at ``index`` if it is still in ``expected`` status."""
        asset = self.run.assets[index]
        async with self._request_slot():
            if asset.status is not expected:
                return False
            previous = asset.status
            if asset.prompt is None:
                asset.prompt = synthesize_prompt(
                    asset, self.business, self.keywords, self.config.max_keywords
                )
            asset.status = AssetStatus.GENERATING
            asset.attempts += 1
            self._notify()

            task = asyncio.ensure_future(self.generator.generate(self._build_request(asset)))
            self._inflight = task
            self._inflight_index = index
            try:
                await asyncio.wait({task})
            except asyncio.CancelledError:
                task.cancel()
                if asset.status is AssetStatus.GENERATING:
                    asset.status = previous
                raise
            finally:
                self._inflight = None
                self._inflight_index = None

            if asset.status is not AssetStatus.GENERATING:
                late_error = None if task.cancelled() else task.exception()
                if late_error is not None:
                    logger.debug("Late failure for %s ignored: %s", asset.id, late_error)
                logger.info("Discarding late result for %s (%s)", asset.id, asset.status.value)
                self._notify()
                return False

            if task.cancelled():
                exc: Optional[BaseException] = GenerationRequestError(
                    "Generation request was cancelled"
                )
            else:
                exc = task.exception()
            if exc is None:
                self._record_success(asset, task.result())
            else:
                self._record_failure(asset, exc)
            self._notify()
        return asset.status is AssetStatus.COMPLETED

    async def _drive(self) -> None:
        self._driving = True
        try:
            while self.run.cursor < self.run.total:
                index = self.run.cursor
                succeeded = False
                if self.run.assets[index].status is AssetStatus.PENDING:
                    succeeded = await self._attempt(index, AssetStatus.PENDING)
                if self.run.cursor == index:
                    self.run.cursor += 1
                    self._notify()
                if succeeded and self.config.request_delay and self.run.cursor < self.run.total:
                    await asyncio.sleep(self.config.request_delay)
        finally:
            self._driving = False
        if self.run.all_processed:
            logger.info(
                "All %d asset(s) processed (%d completed, %d failed, %d skipped)",
                self.run.total,
                self.run.count(AssetStatus.COMPLETED),
                self.run.count(AssetStatus.ERROR),
                self.run.count(AssetStatus.SKIPPED),
            )

    async def start(self) -> None:
        """Begin generating from the first asset."""
        self._ensure_open()
        if not self.run.assets:
            raise InvalidTransitionError("Run has no assets to generate")
        if self.run.started or self.run.cursor != 0:
            raise InvalidTransitionError("Run has already been started")
        self.run.started = True
        logger.info("Generating %d asset(s)", self.run.total)
        await self._drive()

    async def advance(self) -> None:
        """Move the cursor past the current asset and continue generating."""
        self._ensure_open()
        if self._driving:
            raise InvalidTransitionError("Generation is already in progress")
        if self.run.cursor >= self.run.total:
            logger.debug("Cursor already past the last asset")
            return
        self.run.started = True
        self.run.cursor += 1
        self._notify()
        await self._drive()

    async def resume(self) -> None:
        """Continue from the current cursor, e.g. after the driver was cancelled."""
        self._ensure_open()
        if self._driving:
            raise InvalidTransitionError("Generation is already in progress")
        self.run.started = True
        await self._drive()

    async def skip(self) -> None:
        """Abandon the asset under the cursor and move on."""
        self._ensure_open()
        asset = self.run.current
        if asset is None or asset.status not in (AssetStatus.PENDING, AssetStatus.GENERATING):
            raise InvalidTransitionError("There is no pending or generating asset to skip")
        asset.status = AssetStatus.SKIPPED
        logger.info("Skipped %s", asset.id)
        if self._inflight is not None and self._inflight_index == self.run.cursor:
            self._inflight.cancel()
        self._notify()
        if self._driving:
            # The active driver sees the skip once the cancelled request settles.
            return
        await self.advance()

    async def retry(self, index: int) -> None:
        """Re-run generation for a failed asset, out of cursor order."""
        self._ensure_open()
        if not 0 <= index < self.run.total:
            raise InvalidTransitionError(f"No asset at index {index}")
        asset = self.run.assets[index]
        if asset.status is not AssetStatus.ERROR:
            raise InvalidTransitionError(
                f"Only failed assets can be retried ({asset.id} is {asset.status.value})"
            )
        if index in self._queued_retries:
            raise InvalidTransitionError(f"Retry for {asset.id} is already queued")
        self._queued_retries.add(index)
        try:
            logger.info("Retrying %s", asset.id)
            await self._attempt(index, AssetStatus.ERROR)
        finally:
            self._queued_retries.discard(index)


async def run_pipeline(
    document: str,
    generator: AssetGenerator,
    business: Optional[BusinessContext] = None,
    keywords: Sequence[str] = (),
    config: Optional[GenerationConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> CompletionResult:
    """Detect, generate and rewrite every asset of ``document`` in one pass."""
    run = create_run(document)
    orchestrator = GenerationOrchestrator(
        run,
        generator,
        business=business,
        keywords=keywords,
        config=config,
        on_progress=on_progress,
    )
    if run.assets:
        await orchestrator.start()
    else:
        logger.info("No replaceable assets detected")
    return assemble(run)
