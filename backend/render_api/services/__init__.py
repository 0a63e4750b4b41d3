"""Service layer for render orchestration and external integrations."""

from .job_registry import (
    AdmissionGate,
    JobKind,
    JobRegistry,
    JobStatus,
    RenderJob,
    get_job_registry,
    job_registry,
)
from .orchestrator import RenderOrchestrator, RenderOutcome, get_orchestrator
from .storage import (
    S3StorageProvider,
    SignedUrl,
    StorageProvider,
    UploadResult,
    get_storage_provider,
    init_storage,
    reset_storage_provider,
    upload_render_output,
)

__all__ = [
    "AdmissionGate",
    "JobKind",
    "JobRegistry",
    "JobStatus",
    "RenderJob",
    "job_registry",
    "get_job_registry",
    "RenderOrchestrator",
    "RenderOutcome",
    "get_orchestrator",
    "StorageProvider",
    "S3StorageProvider",
    "SignedUrl",
    "UploadResult",
    "get_storage_provider",
    "init_storage",
    "reset_storage_provider",
    "upload_render_output",
]
