"""
Health endpoints.

GET /health reports capacity and in-flight jobs; /health/ready and
/health/live are trivial probes for container orchestration.
"""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from render_api import __version__
from render_api.config import settings
from render_api.models import HealthResponse, JobDetail, JobsSummary
from render_api.services.job_registry import JobRegistry, get_job_registry
from render_api.services.output_naming import iso_utc

router = APIRouter()

_START_TIME = time.monotonic()


@router.get(
    "",
    response_model=HealthResponse,
    summary="Service Health",
    responses={503: {"model": HealthResponse, "description": "Degraded: at capacity"}},
)
async def health_check(registry: JobRegistry = Depends(get_job_registry)) -> JSONResponse:
    """
    Aggregate health.

    Returns 200 when healthy and 503 when the in-flight job count has reached
    MAX_CONCURRENT_JOBS. Per-job details are included outside production.
    """
    active = registry.count()
    max_concurrent = settings.MAX_CONCURRENT_JOBS

    jobs = JobsSummary(active=active, max_concurrent=max_concurrent)
    if not settings.is_production:
        jobs.details = [JobDetail(**job.to_detail()) for job in registry.list()]

    health = HealthResponse(
        status="degraded" if active >= max_concurrent else "healthy",
        timestamp=iso_utc(),
        uptime=int(time.monotonic() - _START_TIME),
        version=__version__,
        environment=settings.ENVIRONMENT,
        jobs=jobs,
    )

    return JSONResponse(
        status_code=200 if health.status == "healthy" else 503,
        content=health.model_dump(by_alias=True, exclude_none=True),
    )


@router.get("/ready", summary="Readiness Probe")
async def readiness_probe() -> dict:
    return {"ready": True}


@router.get("/live", summary="Liveness Probe")
async def liveness_probe() -> dict:
    return {"alive": True}
