"""
Render orchestrator: request-scoped coordinator for one render job.

Job lifecycle:

    pending -> rendering -> uploading -> completed
    pending -> rendering -> completed                   (no upload requested)
    pending | rendering | uploading -> failed

The job is registered once admitted and removed from the registry when the
request finishes, whatever the outcome.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional, Union

from fastapi import Depends
from pydantic import ValidationError

from render_api.config import settings
from render_api.middleware.error_handler import (
    ValidationFailedError,
    classify_exception,
    format_error_response,
)
from render_api.models import (
    ImageRenderRequest,
    PdfRenderRequest,
    RenderMetadata,
    RenderSuccessResponse,
)
from render_engine.browser import browser_manager
from render_engine.job_logger import get_job_logger
from render_engine.renderer import PageRenderer, RenderResult

from .job_registry import AdmissionGate, JobKind, JobRegistry, JobStatus, RenderJob, get_job_registry
from .output_naming import build_output_filename, content_type_for, to_data_url
from .storage import StorageProvider, get_storage_provider, upload_render_output

logger = logging.getLogger(__name__)

RenderRequest = Union[PdfRenderRequest, ImageRenderRequest]

_REQUEST_MODELS = {
    JobKind.PDF: PdfRenderRequest,
    JobKind.IMAGE: ImageRenderRequest,
}


@dataclass
class RenderOutcome:
    """HTTP status and JSON body for a finished render request."""

    status_code: int
    body: dict
    job_id: str

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))


class RenderOrchestrator:
    """
    Runs one render request through admission, rendering and upload.

    Args:
        registry: Shared in-flight job registry
        renderer: Page renderer driving the browser
        storage: Storage provider, or None when uploads are disabled
        max_jobs: Admission ceiling
        signed_url_expiry_seconds: Lifetime of signed download URLs
        redact_errors: Hide internal error messages (production)
    """

    def __init__(
        self,
        registry: JobRegistry,
        renderer: PageRenderer,
        storage: Optional[StorageProvider],
        max_jobs: int,
        signed_url_expiry_seconds: int = 3600,
        redact_errors: bool = False,
    ):
        self.registry = registry
        self.renderer = renderer
        self.storage = storage
        self.gate = AdmissionGate(registry, max_jobs)
        self.signed_url_expiry_seconds = signed_url_expiry_seconds
        self.redact_errors = redact_errors

    async def render_pdf(self, payload: dict[str, Any]) -> RenderOutcome:
        return await self.run(JobKind.PDF, payload)

    async def render_image(self, payload: dict[str, Any]) -> RenderOutcome:
        return await self.run(JobKind.IMAGE, payload)

    async def run(self, kind: JobKind, payload: dict[str, Any]) -> RenderOutcome:
        """
        Execute the full pipeline for one request.

        Admission failures raise ConcurrencyLimitError before any job exists.
        Every later failure is classified and returned as an error outcome.
        """
        started = time.monotonic()

        # No await from here until register(): check-then-register is atomic
        self.gate.check()
        job = RenderJob.create(kind, target_url=_target_hint(payload))
        job_logger = get_job_logger(__name__, job.id)

        try:
            request = self._validate(kind, payload, job.id)
            job.target_url = request.url
            self.registry.register(job)

            self.registry.update_status(job.id, JobStatus.RENDERING)
            job_logger.info(f"Starting {kind.value} render", extra={"url": request.url})
            result = await self._render(kind, request, job.id)

            filename = build_output_filename(result.format, request.filename)
            content_type = content_type_for(result.format)

            response_fields: dict[str, Any] = {}
            if request.upload_to_storage:
                self.registry.update_status(job.id, JobStatus.UPLOADING)
                upload = await upload_render_output(
                    self.storage,
                    result.data,
                    filename,
                    content_type,
                    request.storage_path,
                    job.id,
                    expires_in=self.signed_url_expiry_seconds,
                )
                response_fields["url"] = upload.signed_url
                response_fields["expires_at"] = upload.expires_at
            else:
                response_fields["data_url"] = to_data_url(result.data, content_type)

            response = RenderSuccessResponse(
                job_id=job.id,
                filename=filename,
                file_size=result.size,
                metadata=_build_metadata(result, _elapsed_ms(started)),
                **response_fields,
            )

            self.registry.update_status(job.id, JobStatus.COMPLETED)
            job_logger.info(
                f"{kind.value.upper()} render completed",
                extra={
                    "render_time_ms": response.metadata.render_time_ms,
                    "engine_time_ms": result.render_time_ms,
                    "file_size": response.file_size,
                },
            )
            return RenderOutcome(status_code=200, body=response.to_body(), job_id=job.id)

        except Exception as exc:
            if not job.is_terminal:
                job.advance(JobStatus.FAILED)
            error = classify_exception(exc, job_id=job.id, redact=self.redact_errors)

            if isinstance(exc, ValidationFailedError):
                job_logger.warning("Validation failed", extra={"details": error.details})
            elif error.error_code == "INTERNAL_ERROR":
                job_logger.exception(f"Unexpected render failure: {exc}")
            else:
                job_logger.error(f"{error.error_code}: {exc}")

            return RenderOutcome(
                status_code=error.status_code,
                body=format_error_response(error),
                job_id=job.id,
            )

        finally:
            self.registry.remove(job.id)

    def _validate(self, kind: JobKind, payload: dict[str, Any], job_id: str) -> RenderRequest:
        try:
            return _REQUEST_MODELS[kind].model_validate(payload)
        except ValidationError as e:
            raise ValidationFailedError.from_pydantic(e.errors(), job_id=job_id) from e

    async def _render(self, kind: JobKind, request: RenderRequest, job_id: str) -> RenderResult:
        if kind is JobKind.PDF:
            return await self.renderer.render_pdf(
                request.url, request.to_pdf_options(), job_id, auth_token=request.auth_token
            )
        return await self.renderer.render_image(
            request.url, request.to_image_options(), job_id, auth_token=request.auth_token
        )


def _target_hint(payload: Any) -> str:
    url = payload.get("url") if isinstance(payload, dict) else None
    return url if isinstance(url, str) and url else "unknown"


def _build_metadata(result: RenderResult, render_time_ms: int) -> RenderMetadata:
    return RenderMetadata(
        render_time_ms=render_time_ms,
        format=result.format,
        page_count=result.page_count,
        width=result.width,
        height=result.height,
    )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def get_orchestrator(
    registry: JobRegistry = Depends(get_job_registry),
    storage: Optional[StorageProvider] = Depends(get_storage_provider),
) -> RenderOrchestrator:
    """FastAPI dependency wiring the orchestrator to the process-wide services."""
    renderer = PageRenderer(
        browser_manager,
        base_url=settings.RENDER_APP_URL,
        navigation_timeout_ms=settings.NAVIGATION_TIMEOUT_MS,
        ready_timeout_ms=settings.READY_FLAG_TIMEOUT_MS,
    )
    return RenderOrchestrator(
        registry=registry,
        renderer=renderer,
        storage=storage,
        max_jobs=settings.MAX_CONCURRENT_JOBS,
        signed_url_expiry_seconds=settings.SIGNED_URL_EXPIRY_SECONDS,
        redact_errors=settings.is_production,
    )
