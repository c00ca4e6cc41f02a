"""
Capture Pipeline - from page photos to a saved entry.

One CaptureSession per capture flow:

    extract(pages)            -> combined text, mean confidence, route
    submit_corrected_text()   -> resume after manual review
    analyze()                 -> overview + tangent candidates (concurrently)
    finish() / exit_early()   -> save entry and tangents together

Low confidence is a routing decision, not an error: below the threshold the
user reviews the text before the pipeline continues. `cancel()` stops
in-flight model calls, drops partial results, and makes every later step raise
CaptureCancelled, so a cancelled session never writes anything. `watch()` runs
one step on behalf of an HTTP client and cancels the session if that client
goes away.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence, Set, TypeVar

from unpack.core.config import settings
from unpack.core.logging_utils import preview
from unpack.core.tracing import get_tracer
from unpack.features.capture.photos import PhotoSet
from unpack.features.database.base import JournalStore
from unpack.features.extraction.ocr import (
    ExtractionResult,
    PageImage,
    VisionExtractor,
    combine_extractions,
)
from unpack.features.journaling.models import (
    MAX_TANGENTS_PER_ENTRY,
    Entry,
    Tangent,
    TangentCandidate,
)
from unpack.features.journaling.overview import OVERVIEW_FALLBACK, OverviewGenerator
from unpack.features.journaling.tangents import TangentDiscoverer, fallback_tangents
from unpack.shared.errors import CaptureCancelled, ExtractionFailure, InvalidInput

logger = logging.getLogger("Unpack.Capture")
tracer = get_tracer(__name__)

T = TypeVar("T")

DISCONNECT_POLL_SECONDS = 0.25


class CaptureRoute(str, Enum):
    MANUAL_REVIEW = "manual_review"
    OVERVIEW = "overview"


class NextStep(str, Enum):
    TANGENT = "tangent"
    HOME = "home"


def route_for_confidence(mean_confidence: float, threshold: Optional[float] = None) -> CaptureRoute:
    """Below the threshold the text goes to manual review; at or above it, on to the overview."""
    if threshold is None:
        threshold = settings.MANUAL_REVIEW_THRESHOLD
    if mean_confidence < threshold:
        return CaptureRoute.MANUAL_REVIEW
    return CaptureRoute.OVERVIEW


@dataclass
class CaptureExtraction:
    pages: List[ExtractionResult]
    text: str
    confidence: float
    route: CaptureRoute


@dataclass
class CaptureOutcome:
    entry: Entry
    tangents: List[Tangent]
    next_step: NextStep

    @property
    def next_tangent_id(self) -> Optional[str]:
        if self.next_step is NextStep.TANGENT and self.tangents:
            return self.tangents[0].id
        return None


@dataclass
class CaptureSession:
    owner_id: str
    store: JournalStore
    extractor: VisionExtractor
    overview_generator: OverviewGenerator
    discoverer: TangentDiscoverer
    photos: PhotoSet = field(default_factory=PhotoSet)
    threshold: Optional[float] = None
    timeout: Optional[float] = None

    text: str = ""
    confidence: Optional[float] = None
    route: Optional[CaptureRoute] = None
    overview: Optional[str] = None
    candidates: List[TangentCandidate] = field(default_factory=list)

    cancelled: bool = False
    _tasks: Set[asyncio.Future] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        if self.timeout is None:
            self.timeout = settings.REMOTE_CALL_TIMEOUT_SECONDS

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    async def extract(self, pages: Sequence[PageImage]) -> CaptureExtraction:
        """
        Read every page concurrently and decide where the flow goes next.

        Raises:
            InvalidInput: no pages
            ExtractionFailure: any page could not be read
            CaptureCancelled: the session was cancelled
        """
        self._ensure_active()
        if not pages:
            raise InvalidInput("Add at least one page photo")

        with tracer.start_as_current_span("capture.extract") as span:
            span.set_attribute("capture.page_count", len(pages))
            results = await self._gather(
                [self._extract_page(page, index) for index, page in enumerate(pages)]
            )

            text, confidence = combine_extractions(results)
            route = route_for_confidence(confidence, self.threshold)
            span.set_attribute("capture.confidence", confidence)
            span.set_attribute("capture.route", route.value)

        self.text, self.confidence, self.route = text, confidence, route
        self.overview, self.candidates = None, []
        logger.info(
            f"Extracted {len(pages)} pages for {self.owner_id}: "
            f"confidence={confidence:.2f} route={route.value}"
        )
        return CaptureExtraction(pages=list(results), text=text, confidence=confidence, route=route)

    async def _extract_page(self, page: PageImage, index: int) -> ExtractionResult:
        try:
            return await asyncio.wait_for(self.extractor.extract(page, page_index=index), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ExtractionFailure(
                "We had trouble reading your handwriting. Please try again.",
                page_index=index,
            ) from exc

    def submit_corrected_text(self, text: str) -> None:
        """Replace the extracted text with the user's edit and continue to the overview."""
        self._set_text(text)
        self.overview, self.candidates = None, []
        logger.info(f"Corrected text submitted ({len(self.text)} chars)")

    def restore(
        self,
        text: str,
        overview: Optional[str] = None,
        candidates: Optional[Sequence[TangentCandidate]] = None,
        confidence: Optional[float] = None,
        reviewed: bool = False,
    ) -> None:
        """
        Continue a flow whose earlier steps ran in another request.

        With the extraction `confidence` the manual-review gate still holds:
        text below the threshold is only accepted once `reviewed` is set.
        Without it the text is taken as already reviewed.
        """
        self._set_text(text)
        if confidence is not None and not reviewed:
            self.confidence = confidence
            self.route = route_for_confidence(confidence, self.threshold)
        self.overview = overview
        self.candidates = list(candidates or [])

    def _set_text(self, text: str) -> None:
        self._ensure_active()
        if not text or not text.strip():
            raise InvalidInput("The entry text cannot be empty")
        self.text = text.strip()
        self.route = CaptureRoute.OVERVIEW

    # ------------------------------------------------------------------
    # Overview and discovery
    # ------------------------------------------------------------------

    async def analyze(self) -> None:
        """
        Generate the overview and discover tangents concurrently.

        Neither step fails the flow: each falls back to a fixed result.
        """
        self._ensure_active()
        self._ensure_text()

        with tracer.start_as_current_span("capture.analyze") as span:
            overview, candidates = await self._gather(
                [self._summarize(), self._discover()]
            )
            span.set_attribute("capture.tangent_count", len(candidates))

        self.overview, self.candidates = overview, candidates
        logger.info(f"Analysis done: {len(candidates)} tangents, overview '{preview(overview, 50)}'")

    async def summarize(self) -> str:
        """Overview only (the overview screen of the flow)."""
        self._ensure_active()
        self._ensure_text()
        (self.overview,) = await self._gather([self._summarize()])
        return self.overview

    async def discover(self) -> List[TangentCandidate]:
        """Tangent candidates only (the discovery screen of the flow)."""
        self._ensure_active()
        self._ensure_text()
        (self.candidates,) = await self._gather([self._discover()])
        return self.candidates

    async def _summarize(self) -> str:
        try:
            return await asyncio.wait_for(self.overview_generator.summarize(self.text), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Overview timed out, using fallback")
            return OVERVIEW_FALLBACK

    async def _discover(self) -> List[TangentCandidate]:
        try:
            return await asyncio.wait_for(self.discoverer.discover(self.text), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Tangent discovery timed out, using fallback")
            return fallback_tangents(self.text)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def finish(self) -> CaptureOutcome:
        """Save the entry and its tangents, then continue into the first tangent."""
        return self._persist(NextStep.TANGENT)

    def exit_early(self) -> CaptureOutcome:
        """Save the entry and its tangents, then go home."""
        return self._persist(NextStep.HOME)

    def _persist(self, next_step: NextStep) -> CaptureOutcome:
        self._ensure_active()
        self._ensure_text()
        if self.overview is None:
            raise InvalidInput("Generate the overview before saving the entry")

        if len(self.candidates) > MAX_TANGENTS_PER_ENTRY:
            raise InvalidInput(
                f"An entry can have at most {MAX_TANGENTS_PER_ENTRY} tangents",
                tangent_count=len(self.candidates),
            )
        candidates = self.candidates or fallback_tangents(self.text)
        entry = Entry(
            owner_id=self.owner_id,
            photo_refs=self.photos.refs,
            extracted_text=self.text,
            overview_text=self.overview,
        )
        tangents = [Tangent.from_candidate(candidate, entry) for candidate in candidates]

        with tracer.start_as_current_span("capture.persist") as span:
            span.set_attribute("capture.next_step", next_step.value)
            entry, tangents = self.store.create_entry_with_tangents(entry, tangents)

        logger.info(f"Entry {entry.id} saved for {self.owner_id}, next: {next_step.value}")
        return CaptureOutcome(entry=entry, tangents=tangents, next_step=next_step)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Abort in-flight calls and discard everything gathered so far."""
        if self.cancelled:
            return
        self.cancelled = True
        for task in list(self._tasks):
            task.cancel()
        self.text, self.confidence, self.route = "", None, None
        self.overview, self.candidates = None, []
        logger.info(f"Capture session for {self.owner_id} cancelled")

    async def watch(
        self,
        work: Awaitable[T],
        is_disconnected: Callable[[], Awaitable[bool]],
        poll_seconds: float = DISCONNECT_POLL_SECONDS,
    ) -> T:
        """
        Run one step, cancelling the session if the client disconnects.

        Raises:
            CaptureCancelled: the client went away before the step finished
        """
        task = asyncio.ensure_future(work)
        try:
            while True:
                done, _ = await asyncio.wait({task}, timeout=poll_seconds)
                if done:
                    return task.result()
                if await is_disconnected():
                    logger.info(f"Client of {self.owner_id} disconnected, cancelling capture")
                    self.cancel()
                    return await task
        finally:
            if not task.done():
                task.cancel()

    async def _gather(self, calls: List[Awaitable]) -> list:
        tasks = [asyncio.ensure_future(call) for call in calls]
        self._tasks.update(tasks)
        try:
            results = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            await self._drain(tasks)
            if self.cancelled:
                raise CaptureCancelled("Capture was cancelled") from None
            raise
        except Exception:
            await self._drain(tasks)
            raise
        finally:
            self._tasks.difference_update(tasks)

        self._ensure_active()
        return results

    @staticmethod
    async def _drain(tasks: List[asyncio.Future]) -> None:
        """Cancel the tasks and wait for them to finish."""
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _ensure_active(self) -> None:
        if self.cancelled:
            raise CaptureCancelled("Capture was cancelled")

    def _ensure_text(self) -> None:
        if not self.text:
            raise InvalidInput("There is no entry text yet")
        if self.route is CaptureRoute.MANUAL_REVIEW:
            raise InvalidInput("Review the extracted text before continuing")
