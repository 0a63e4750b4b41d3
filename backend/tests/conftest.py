"""
Pytest configuration and fixtures
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone

# Settings are read at import time; pin the environment before importing the app
os.environ["API_KEY"] = "test-api-key"
os.environ["RENDER_APP_URL"] = "http://app.test"
os.environ["ENVIRONMENT"] = "test"
os.environ["MAX_CONCURRENT_JOBS"] = "2"
os.environ["STORAGE_ACCESS_KEY_ID"] = ""
os.environ["STORAGE_SECRET_ACCESS_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from render_api.main import app
from render_api.services.job_registry import JobRegistry, get_job_registry
from render_api.services.orchestrator import RenderOrchestrator, get_orchestrator
from render_api.services.storage import SignedUrl, StorageProvider
from render_engine.renderer import RenderResult

API_KEY = "test-api-key"

PDF_BYTES = b"%PDF-1.7\n% fake pdf content\n%%EOF"
PNG_BYTES = b"\x89PNG\r\n\x1a\n fake png content"
JPEG_BYTES = b"\xff\xd8\xff\xe0 fake jpeg content"


class FakeRenderer:
    """Stands in for PageRenderer; records calls and job status at call time."""

    def __init__(self, registry: JobRegistry | None = None):
        self.registry = registry
        self.calls = []
        self.statuses_seen = []
        self.error: Exception | None = None
        self.release: asyncio.Event | None = None

    async def _render(self, kind, path, options, job_id, auth_token):
        self.calls.append(
            {"kind": kind, "path": path, "options": options, "job_id": job_id, "auth_token": auth_token}
        )
        if self.registry is not None:
            job = self.registry.get(job_id)
            self.statuses_seen.append(job.status.value if job else None)
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error

    async def render_pdf(self, path, options, job_id, auth_token=None):
        await self._render("pdf", path, options, job_id, auth_token)
        return RenderResult(data=PDF_BYTES, format="pdf", render_time_ms=12)

    async def render_image(self, path, options, job_id, auth_token=None):
        await self._render("image", path, options, job_id, auth_token)
        data = JPEG_BYTES if options.format == "jpeg" else PNG_BYTES
        return RenderResult(
            data=data,
            format=options.format,
            render_time_ms=8,
            width=options.width,
            height=options.height,
        )


class FakeStorage(StorageProvider):
    """In-memory storage provider."""

    def __init__(self, registry: JobRegistry | None = None):
        self.registry = registry
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_upload = False
        self.statuses_seen = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        if self.registry is not None:
            self.statuses_seen.extend(job.status.value for job in self.registry.list())
        if self.fail_upload:
            raise RuntimeError("bucket unavailable")
        self.objects[path] = (data, content_type)
        return path

    async def create_signed_url(self, path: str, expires_in: int) -> SignedUrl:
        return SignedUrl(
            url=f"https://storage.test/{path}?signature=abc",
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )


@pytest.fixture
def registry():
    """Fresh job registry per test"""
    return JobRegistry()


@pytest.fixture
def fake_renderer(registry):
    return FakeRenderer(registry)


@pytest.fixture
def fake_storage(registry):
    return FakeStorage(registry)


@pytest.fixture
def orchestrator(registry, fake_renderer, fake_storage):
    return RenderOrchestrator(
        registry=registry,
        renderer=fake_renderer,
        storage=fake_storage,
        max_jobs=2,
    )


@pytest.fixture
def client(registry, orchestrator):
    """FastAPI test client wired to the fake renderer and storage"""
    app.dependency_overrides[get_job_registry] = lambda: registry
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"X-API-Key": API_KEY}
