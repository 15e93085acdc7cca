"""
Tests for the palette pipeline orchestrator.

Covers the state sequence, failure classification and metrics using fake
backends; no network or image decoding involved.
"""

import pytest

from palette_service.services.palette import (
    BackendKind, MalformedBackendResponse, MissingInput, PaletteOrchestrator,
    PaletteRequestConfig, PipelineState, RawClusterSwatch, RawRemoteSwatch,
    UnexpectedFailure, UpstreamFailure,
)
from palette_service.services.palette.backends import PaletteBackend
from palette_service.utils.logging import get_logger
from palette_service.utils.metrics import get_metrics


class FakeBackend(PaletteBackend):
    """Backend double recording calls."""

    def __init__(self, kind, raw=None, error=None):
        self.kind = kind
        self.raw = raw or []
        self.error = error
        self.calls = []

    def extract(self, image_bytes, config):
        self.calls.append((image_bytes, config))
        if self.error is not None:
            raise self.error
        return self.raw


HAPPY_PATH = [
    PipelineState.IDLE,
    PipelineState.VALIDATING_CONFIG,
    PipelineState.AWAITING_BACKEND,
    PipelineState.NORMALIZING,
    PipelineState.DEDUPLICATING,
    PipelineState.RANKING,
    PipelineState.COMPLETE,
]


class TestPaletteOrchestrator:

    @pytest.mark.asyncio
    async def test_remote_scenario(self):
        backend = FakeBackend(BackendKind.REMOTE, raw=[
            RawRemoteSwatch("#FFFFFF", 80.5),
            RawRemoteSwatch("#000000", 19.5),
        ])

        run = await PaletteOrchestrator(backend).execute(b"x" * 1000)

        assert run.states == HAPPY_PATH
        assert run.succeeded
        assert run.failure is None
        assert [s.hex for s in run.colors] == ["#FFFFFF", "#000000"]
        assert run.colors[0].dominance == pytest.approx(805.0)
        assert run.colors[1].dominance == pytest.approx(195.0)
        assert run.request_id.startswith("pal-")

    @pytest.mark.asyncio
    async def test_cluster_duplicates_collapse(self):
        backend = FakeBackend(BackendKind.CLUSTER, raw=[
            RawClusterSwatch("#112233", (17, 34, 51), 500),
            RawClusterSwatch("#112233", (17, 34, 51), 500),
        ])

        colors = await PaletteOrchestrator(backend).extract_palette(b"img")

        assert len(colors) == 1
        assert colors[0].hex == "#112233"
        assert colors[0].dominance == 500.0
        assert colors[0].rgb == (17, 34, 51)

    @pytest.mark.asyncio
    async def test_config_reaches_backend_clamped(self):
        backend = FakeBackend(BackendKind.CLUSTER)

        await PaletteOrchestrator(backend).execute(b"img", PaletteRequestConfig(quality=50, max_color_count=0))

        _, config = backend.calls[0]
        assert config.quality == 10
        assert config.max_color_count == 16

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, b""])
    async def test_missing_input_skips_backend(self, payload):
        backend = FakeBackend(BackendKind.REMOTE)

        run = await PaletteOrchestrator(backend).execute(payload)

        assert run.state is PipelineState.FAILED
        assert run.states[-2] is PipelineState.VALIDATING_CONFIG
        assert isinstance(run.failure, MissingInput)
        assert run.failure.status_code == 400
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_upstream_failure_keeps_status(self):
        error = UpstreamFailure("Cloudinary upload failed", details="denied", status_code=401, stage="upload")
        backend = FakeBackend(BackendKind.REMOTE, error=error)

        run = await PaletteOrchestrator(backend).execute(b"img")

        assert run.state is PipelineState.FAILED
        assert run.states[-2] is PipelineState.AWAITING_BACKEND
        assert run.failure is error
        assert run.failure.status_code == 401
        assert run.colors == []

    @pytest.mark.asyncio
    async def test_extract_palette_raises_failure(self):
        backend = FakeBackend(BackendKind.REMOTE, error=UpstreamFailure("down", status_code=503))

        with pytest.raises(UpstreamFailure):
            await PaletteOrchestrator(backend).extract_palette(b"img")

    @pytest.mark.asyncio
    async def test_mismatched_records_are_malformed(self):
        backend = FakeBackend(BackendKind.REMOTE, raw=[RawClusterSwatch("#112233", (17, 34, 51), 1)])

        run = await PaletteOrchestrator(backend).execute(b"img")

        assert isinstance(run.failure, MalformedBackendResponse)
        assert run.states[-2] is PipelineState.NORMALIZING

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self):
        backend = FakeBackend(BackendKind.CLUSTER, error=RuntimeError("quantizer exploded"))

        run = await PaletteOrchestrator(backend).execute(b"img")

        assert isinstance(run.failure, UnexpectedFailure)
        assert run.failure.status_code == 500
        assert "quantizer exploded" in run.failure.message

    @pytest.mark.asyncio
    async def test_metrics_recorded(self):
        await PaletteOrchestrator(FakeBackend(BackendKind.CLUSTER)).execute(b"img")
        await PaletteOrchestrator(FakeBackend(BackendKind.REMOTE)).execute(None)

        counters = get_metrics().counters()
        assert counters["palette_requests_total"] == 2
        assert counters["palette_backend_total_cluster"] == 1
        assert counters["palette_backend_total_remote"] == 1
        assert counters["palette_failed_total_missing_input"] == 1
        assert "pipeline_duration_ms" in get_metrics().timing_stats()

    @pytest.mark.asyncio
    async def test_backend_timing_recorded_on_failure(self):
        backend = FakeBackend(BackendKind.REMOTE, error=UpstreamFailure("down", status_code=503))

        run = await PaletteOrchestrator(backend).execute(b"img")

        assert run.state is PipelineState.FAILED
        assert run.timings_ms["backend"] >= 0
        assert get_metrics().timing_stats()["backend_duration_ms"]["count"] == 1


class LoggingBackend(FakeBackend):
    """Backend double that logs from inside the threadpool."""

    def extract(self, image_bytes, config):
        get_logger().info("backend called")
        return super().extract(image_bytes, config)


class TestRunLogContext:

    @pytest.fixture
    def records(self):
        logger = get_logger()
        captured = []
        sink_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
        yield captured
        logger.remove(sink_id)

    @pytest.mark.asyncio
    async def test_records_carry_request_id_and_backend(self, records):
        backend = LoggingBackend(BackendKind.CLUSTER, raw=[RawClusterSwatch("#112233", (17, 34, 51), 4)])

        run = await PaletteOrchestrator(backend).execute(b"img")

        assert run.succeeded
        assert any(r["message"] == "backend called" for r in records)
        for record in records:
            assert record["extra"]["request_id"] == run.request_id
            assert record["extra"]["backend"] == "cluster"

    @pytest.mark.asyncio
    async def test_failure_records_carry_request_id(self, records):
        backend = LoggingBackend(BackendKind.REMOTE, error=UpstreamFailure("down", status_code=503))

        run = await PaletteOrchestrator(backend).execute(b"img")

        errors = [r for r in records if r["level"].name == "ERROR"]
        assert errors
        assert all(r["extra"]["request_id"] == run.request_id for r in errors)
