"""
Unit tests for the render orchestrator

Run against the fake renderer and in-memory storage from conftest.
"""

import asyncio
import base64
import logging
import warnings
from pathlib import Path

import pytest

from render_api.middleware.error_handler import ConcurrencyLimitError
from render_api.services import orchestrator as orchestrator_module
from render_api.services.orchestrator import RenderOrchestrator
from render_engine.exceptions import NavigationTimeoutError, ReadyFlagTimeoutError, RenderFailedError

from conftest import JPEG_BYTES, PDF_BYTES, PNG_BYTES


def _decode_data_url(data_url: str) -> tuple[str, bytes]:
    header, encoded = data_url.split(",", 1)
    content_type = header[len("data:"):-len(";base64")]
    return content_type, base64.b64decode(encoded)


class TestInlineRenders:
    """uploadToStorage: false returns the bytes as a data URL"""

    @pytest.mark.asyncio
    async def test_pdf_data_url_round_trip(self, orchestrator, registry):
        outcome = await orchestrator.render_pdf(
            {"url": "/render/a4/inv-1", "uploadToStorage": False, "filename": "invoice"}
        )

        assert outcome.status_code == 200
        body = outcome.body
        assert body["success"] is True
        assert body["jobId"] == outcome.job_id
        assert body["filename"] == "invoice.pdf"
        assert body["fileSize"] == len(PDF_BYTES)
        assert "url" not in body
        assert "expiresAt" not in body

        content_type, data = _decode_data_url(body["dataUrl"])
        assert content_type == "application/pdf"
        assert data == PDF_BYTES
        assert body["metadata"]["format"] == "pdf"
        assert body["metadata"]["renderTimeMs"] >= 0
        assert registry.count() == 0

    @pytest.mark.asyncio
    async def test_image_metadata_and_content_type(self, orchestrator):
        outcome = await orchestrator.render_image(
            {
                "url": "/render/social/post-1",
                "format": "jpeg",
                "quality": 70,
                "width": 1080,
                "height": 1920,
                "scale": 2,
                "uploadToStorage": False,
            }
        )

        assert outcome.status_code == 200
        metadata = outcome.body["metadata"]
        assert metadata == {
            "renderTimeMs": metadata["renderTimeMs"],
            "format": "jpeg",
            "width": 1080,
            "height": 1920,
        }
        content_type, data = _decode_data_url(outcome.body["dataUrl"])
        assert content_type == "image/jpeg"
        assert data == JPEG_BYTES
        assert outcome.body["filename"].endswith(".jpeg")

    @pytest.mark.asyncio
    async def test_webp_is_labelled_webp(self, orchestrator):
        outcome = await orchestrator.render_image(
            {"url": "/x", "format": "webp", "uploadToStorage": False}
        )

        content_type, data = _decode_data_url(outcome.body["dataUrl"])
        assert content_type == "image/webp"
        assert data == PNG_BYTES
        assert outcome.body["filename"].endswith(".webp")

    @pytest.mark.asyncio
    async def test_options_are_forwarded_to_renderer(self, orchestrator, fake_renderer):
        await orchestrator.render_pdf(
            {
                "url": "/render/letter/1",
                "authToken": "secret",
                "paperSize": "Letter",
                "orientation": "landscape",
                "printBackground": False,
                "margins": {"top": "1in"},
                "uploadToStorage": False,
            }
        )

        call = fake_renderer.calls[0]
        assert call["path"] == "/render/letter/1"
        assert call["auth_token"] == "secret"
        options = call["options"]
        assert options.paper_size == "Letter"
        assert options.landscape is True
        assert options.print_background is False
        assert options.margins == {"top": "1in", "bottom": "20mm", "left": "15mm", "right": "15mm"}

    @pytest.mark.asyncio
    async def test_generated_filename_when_none_given(self, orchestrator):
        outcome = await orchestrator.render_pdf({"url": "/x", "uploadToStorage": False})

        filename = outcome.body["filename"]
        assert filename.startswith("render-")
        assert filename.endswith("Z.pdf")
        assert ":" not in filename


class TestUploadRenders:
    """Default path uploads and returns a signed URL"""

    @pytest.mark.asyncio
    async def test_upload_returns_signed_url(self, orchestrator, fake_storage):
        outcome = await orchestrator.render_pdf(
            {"url": "/render/a4/inv-1", "filename": "inv", "storagePath": "org-1/docs/"}
        )

        assert outcome.status_code == 200
        body = outcome.body
        assert body["url"] == "https://storage.test/org-1/docs/inv.pdf?signature=abc"
        assert body["expiresAt"].endswith("Z")
        assert "dataUrl" not in body
        assert fake_storage.objects["org-1/docs/inv.pdf"] == (PDF_BYTES, "application/pdf")

    @pytest.mark.asyncio
    async def test_status_progression(self, orchestrator, fake_renderer, fake_storage):
        await orchestrator.render_pdf({"url": "/x"})

        assert fake_renderer.statuses_seen == ["rendering"]
        assert fake_storage.statuses_seen == ["uploading"]

    @pytest.mark.asyncio
    async def test_storage_failure(self, orchestrator, fake_storage, registry):
        fake_storage.fail_upload = True

        outcome = await orchestrator.render_pdf({"url": "/x"})

        assert outcome.status_code == 500
        assert outcome.body["error"] == "STORAGE_FAILED"
        assert outcome.body["jobId"] == outcome.job_id
        assert "bucket unavailable" in outcome.body["message"]
        assert registry.count() == 0

    @pytest.mark.asyncio
    async def test_storage_not_configured(self, registry, fake_renderer):
        orchestrator = RenderOrchestrator(
            registry=registry, renderer=fake_renderer, storage=None, max_jobs=2
        )

        outcome = await orchestrator.render_image({"url": "/x"})

        assert outcome.status_code == 500
        assert outcome.body["error"] == "STORAGE_FAILED"
        assert "uploadToStorage: false" in outcome.body["message"]


class TestFailures:
    """Errors are classified into the response taxonomy"""

    @pytest.mark.asyncio
    async def test_validation_failure_skips_renderer(self, orchestrator, fake_renderer, registry):
        outcome = await orchestrator.render_image({"url": "", "width": 5000, "quality": 0})

        assert outcome.status_code == 400
        body = outcome.body
        assert body["error"] == "VALIDATION_FAILED"
        assert body["jobId"] == outcome.job_id
        fields = {error["field"] for error in body["details"]["errors"]}
        assert {"url", "width", "quality"} <= fields
        assert fake_renderer.calls == []
        assert registry.count() == 0

    @pytest.mark.asyncio
    async def test_ready_flag_timeout(self, orchestrator, fake_renderer, registry):
        fake_renderer.error = ReadyFlagTimeoutError(10000)

        outcome = await orchestrator.render_pdf({"url": "/x", "uploadToStorage": False})

        assert outcome.status_code == 408
        assert outcome.body["error"] == "READY_FLAG_TIMEOUT"
        assert "__RENDER_READY__" in outcome.body["message"]
        assert registry.count() == 0

    @pytest.mark.asyncio
    async def test_navigation_timeout(self, orchestrator, fake_renderer):
        fake_renderer.error = NavigationTimeoutError("/x", 15000)

        outcome = await orchestrator.render_pdf({"url": "/x", "uploadToStorage": False})

        assert outcome.status_code == 408
        assert outcome.body["error"] == "NAVIGATION_TIMEOUT"

    @pytest.mark.asyncio
    async def test_render_failure(self, orchestrator, fake_renderer):
        fake_renderer.error = RenderFailedError("PDF render failed: target closed")

        outcome = await orchestrator.render_pdf({"url": "/x", "uploadToStorage": False})

        assert outcome.status_code == 500
        assert outcome.body["error"] == "RENDER_FAILED"
        assert "target closed" in outcome.body["message"]

    @pytest.mark.asyncio
    async def test_unexpected_error_redacted(self, registry, fake_renderer, fake_storage):
        fake_renderer.error = KeyError("internal detail")
        orchestrator = RenderOrchestrator(
            registry=registry,
            renderer=fake_renderer,
            storage=fake_storage,
            max_jobs=2,
            redact_errors=True,
        )

        outcome = await orchestrator.render_pdf({"url": "/x", "uploadToStorage": False})

        assert outcome.status_code == 500
        assert outcome.body["error"] == "INTERNAL_ERROR"
        assert outcome.body["message"] == "An unexpected error occurred"
        assert "internal detail" not in str(outcome.body)


class TestConcurrency:
    """Admission control across simultaneous requests"""

    @pytest.mark.asyncio
    async def test_third_request_rejected_while_two_in_flight(
        self, orchestrator, fake_renderer, registry
    ):
        fake_renderer.release = asyncio.Event()
        payload = {"url": "/slow", "uploadToStorage": False}

        first = asyncio.create_task(orchestrator.render_pdf(payload))
        second = asyncio.create_task(orchestrator.render_pdf(payload))
        while len(fake_renderer.calls) < 2:
            await asyncio.sleep(0)

        assert registry.count() == 2
        with pytest.raises(ConcurrencyLimitError) as exc_info:
            await orchestrator.render_pdf(payload)
        assert exc_info.value.details == {"activeJobs": 2, "maxConcurrent": 2}
        assert len(fake_renderer.calls) == 2

        fake_renderer.release.set()
        outcomes = await asyncio.gather(first, second)
        assert all(outcome.status_code == 200 for outcome in outcomes)
        assert registry.count() == 0

        fake_renderer.release = None
        outcome = await orchestrator.render_pdf(payload)
        assert outcome.status_code == 200

    @pytest.mark.asyncio
    async def test_failed_jobs_free_capacity(self, orchestrator, fake_renderer, registry):
        fake_renderer.error = RenderFailedError("boom")
        for _ in range(3):
            outcome = await orchestrator.render_pdf({"url": "/x", "uploadToStorage": False})
            assert outcome.status_code == 500

        assert registry.count() == 0
        assert orchestrator.gate.has_capacity()


@pytest.mark.asyncio
async def test_completion_log_reports_engine_time(orchestrator, caplog):
    with caplog.at_level(logging.INFO, logger="render_api.services.orchestrator"):
        outcome = await orchestrator.render_pdf({"url": "/x", "uploadToStorage": False})

    completed = [record for record in caplog.records if "render completed" in record.getMessage()]
    assert len(completed) == 1
    record = completed[0]
    # FakeRenderer reports 12ms for PDFs
    assert record.engine_time_ms == 12
    assert record.job_id == outcome.job_id
    assert record.render_time_ms == outcome.body["metadata"]["renderTimeMs"]


def test_module_source_compiles_without_warnings():
    source = Path(orchestrator_module.__file__).read_text()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(source, orchestrator_module.__file__, "exec")
