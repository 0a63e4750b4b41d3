"""Pydantic models for health check responses."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class JobDetail(BaseModel):
    """Diagnostic view of one in-flight job (non-production only)."""

    id: str
    type: str
    status: str
    started_at: str = Field(..., alias="startedAt")

    model_config = {"populate_by_name": True}


class JobsSummary(BaseModel):
    active: int
    max_concurrent: int = Field(..., alias="maxConcurrent")
    details: Optional[List[JobDetail]] = None

    model_config = {"populate_by_name": True}


class HealthResponse(BaseModel):
    """
    Response body for GET /health.

    ``degraded`` means the service is at its admission ceiling.
    """

    status: Literal["healthy", "degraded"]
    timestamp: str
    uptime: int = Field(..., description="Seconds since process start")
    version: str
    environment: str
    jobs: JobsSummary

    model_config = {"populate_by_name": True}
