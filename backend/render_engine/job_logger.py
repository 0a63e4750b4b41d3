"""Per-job logger adapter shared by the engine and the API layer."""

import logging


class JobLoggerAdapter(logging.LoggerAdapter):
    """Prefix every record with the job id and attach it as ``extra``."""

    def process(self, msg, kwargs):
        job_id = self.extra["job_id"]
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("job_id", job_id)
        kwargs["extra"] = extra
        return f"[{job_id}] {msg}", kwargs


def get_job_logger(name: str, job_id: str) -> JobLoggerAdapter:
    """Return a logger for ``name`` bound to ``job_id``."""
    return JobLoggerAdapter(logging.getLogger(name), {"job_id": job_id})
