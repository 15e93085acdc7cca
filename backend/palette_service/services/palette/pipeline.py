"""
Palette Pipeline Orchestrator

Sequences one extraction request: validate input, call the backend, then
normalize, deduplicate and rank the returned swatches. A run lives for a
single request and records the states it passed through.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from palette_service.utils.ids import generate_request_id
from palette_service.utils.logging import get_logger, request_context
from palette_service.utils.metrics import get_metrics

from .backends import PaletteBackend
from .dedup import dedup
from .errors import MalformedBackendResponse, MissingInput, PaletteError, UnexpectedFailure
from .models import BackendKind, PaletteRequestConfig, PaletteResult
from .normalizer import normalize
from .ranking import rank

logger = get_logger()


class PipelineState(str, Enum):
    IDLE = "idle"
    VALIDATING_CONFIG = "validating_config"
    AWAITING_BACKEND = "awaiting_backend"
    NORMALIZING = "normalizing"
    DEDUPLICATING = "deduplicating"
    RANKING = "ranking"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class PaletteRun:
    """Per-request record of what the pipeline did."""
    request_id: str
    backend_kind: BackendKind
    states: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    colors: PaletteResult = field(default_factory=list)
    failure: Optional[PaletteError] = None
    timings_ms: Dict[str, float] = field(default_factory=dict)

    @property
    def state(self) -> PipelineState:
        return self.states[-1]

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.COMPLETE

    def advance(self, state: PipelineState):
        self.states.append(state)
        logger.debug(f"Pipeline state -> {state.value}")


class PaletteOrchestrator:
    """Runs the palette pipeline against one backend."""

    def __init__(self, backend: PaletteBackend):
        self.backend = backend

    async def execute(self, image_bytes: Optional[bytes],
                      config: Optional[PaletteRequestConfig] = None) -> PaletteRun:
        """
        Run the pipeline and return the run record.

        Never raises for pipeline failures; they are recorded on
        ``run.failure`` with ``run.state == FAILED``.
        """
        run = PaletteRun(request_id=generate_request_id("pal"), backend_kind=self.backend.kind)
        metrics = get_metrics()
        metrics.record_request(run.backend_kind.value)
        start_time = time.time()

        with request_context(run.request_id, backend=run.backend_kind.value):
            logger.info("Starting palette extraction")

            try:
                await self._run_stages(run, image_bytes, config)
            except PaletteError as e:
                self._fail(run, e)
            except Exception as e:
                logger.bind(error_type=type(e).__name__).exception("Unexpected palette extraction failure")
                self._fail(run, UnexpectedFailure.wrap(e))

            run.timings_ms["total"] = (time.time() - start_time) * 1000
            metrics.record_timing("pipeline", run.timings_ms["total"])

            if run.succeeded:
                metrics.record_palette_size(len(run.colors))
                logger.bind(
                    colors=len(run.colors),
                    ms_backend=run.timings_ms.get("backend"),
                    ms_total=run.timings_ms["total"],
                    result="ok"
                ).info("Palette extraction completed successfully")

        return run

    async def _run_stages(self, run: PaletteRun, image_bytes: Optional[bytes],
                          config: Optional[PaletteRequestConfig]):
        run.advance(PipelineState.VALIDATING_CONFIG)
        if not image_bytes:
            raise MissingInput("No image file uploaded")
        # Re-clamped on construction regardless of what the caller sent
        if config is None:
            config = PaletteRequestConfig()
        else:
            config = PaletteRequestConfig(quality=config.quality, max_color_count=config.max_color_count)

        run.advance(PipelineState.AWAITING_BACKEND)
        backend_start = time.time()
        try:
            raw = await run_in_threadpool(self.backend.extract, image_bytes, config)
        finally:
            run.timings_ms["backend"] = (time.time() - backend_start) * 1000
            get_metrics().record_timing("backend", run.timings_ms["backend"])

        run.advance(PipelineState.NORMALIZING)
        try:
            swatches = normalize(raw, run.backend_kind, len(image_bytes))
        except (TypeError, ValueError, AttributeError) as e:
            raise MalformedBackendResponse(
                "Backend returned data that could not be normalized",
                details=str(e)
            ) from e

        run.advance(PipelineState.DEDUPLICATING)
        unique = dedup(swatches)

        run.advance(PipelineState.RANKING)
        run.colors = rank(unique)

        run.advance(PipelineState.COMPLETE)

    async def extract_palette(self, image_bytes: Optional[bytes],
                              config: Optional[PaletteRequestConfig] = None) -> PaletteResult:
        """Run the pipeline; raise the recorded ``PaletteError`` on failure."""
        run = await self.execute(image_bytes, config)
        if run.failure is not None:
            raise run.failure
        return run.colors

    def _fail(self, run: PaletteRun, error: PaletteError):
        failed_in = run.state
        run.failure = error
        run.advance(PipelineState.FAILED)
        get_metrics().record_failure(error.kind)

        fields = {
            "failed_in": failed_in.value,
            "error_kind": error.kind,
            "status": error.status_code,
            "result": "error"
        }
        stage = getattr(error, "stage", None)
        if stage:
            fields["stage"] = stage
        if error.details:
            fields["details"] = error.details
        logger.bind(**fields).error(f"Palette extraction failed: {error.message}")
