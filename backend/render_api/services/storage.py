"""
Object storage for rendered files.

Defines the StorageProvider interface the orchestrator depends on, and an
S3-compatible implementation (AWS S3, Supabase Storage's S3 gateway, MinIO)
built on boto3.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import boto3
from botocore.config import Config

from render_api.config import Settings, settings
from render_api.middleware.error_handler import StorageFailedError
from render_engine.job_logger import get_job_logger

from .output_naming import build_storage_key, iso_utc

logger = logging.getLogger(__name__)


@dataclass
class SignedUrl:
    url: str
    expires_at: datetime


@dataclass
class UploadResult:
    path: str
    signed_url: str
    expires_at: str


class StorageProvider(ABC):
    """
    Abstract storage backend.

    Implementations raise any exception on failure; callers convert them
    into StorageFailedError.
    """

    @abstractmethod
    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        """
        Store ``data`` at ``path``, overwriting any existing object.

        Returns:
            str: The stored object path
        """

    @abstractmethod
    async def create_signed_url(self, path: str, expires_in: int) -> SignedUrl:
        """
        Create a time-limited download URL for ``path``.

        Args:
            path: Object path returned by upload()
            expires_in: Lifetime in seconds
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Identifier for logs."""


class S3StorageProvider(StorageProvider):
    """StorageProvider backed by an S3-compatible bucket."""

    def __init__(
        self,
        bucket: str,
        access_key_id: str,
        secret_access_key: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        self.bucket = bucket
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
            client = session.client(
                "s3",
                endpoint_url=endpoint_url or None,
                config=Config(
                    region_name=region,
                    retries={"max_attempts": 3, "mode": "standard"},
                    signature_version="s3v4",
                ),
            )
        self._client = client

    @property
    def provider_name(self) -> str:
        return "s3"

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        # boto3 is blocking; keep the event loop free for other renders
        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self.bucket,
            Key=path,
            Body=data,
            ContentType=content_type,
        )
        return path

    async def create_signed_url(self, path: str, expires_in: int) -> SignedUrl:
        url = await asyncio.to_thread(
            self._client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return SignedUrl(url=url, expires_at=expires_at)


def create_storage_provider(config: Settings) -> Optional[StorageProvider]:
    """Build the configured provider, or None when credentials are absent."""
    if not config.storage_configured:
        logger.warning("Storage credentials not configured - storage uploads disabled")
        return None

    logger.info(
        f"Initializing S3 storage provider (bucket={config.STORAGE_BUCKET}, "
        f"endpoint={config.STORAGE_ENDPOINT_URL or 'aws'})"
    )
    return S3StorageProvider(
        bucket=config.STORAGE_BUCKET,
        access_key_id=config.STORAGE_ACCESS_KEY_ID,
        secret_access_key=config.STORAGE_SECRET_ACCESS_KEY,
        region=config.STORAGE_REGION,
        endpoint_url=config.STORAGE_ENDPOINT_URL,
    )


# Singleton provider instance
_storage_provider: Optional[StorageProvider] = None
_storage_initialized = False


def init_storage(config: Settings = settings) -> Optional[StorageProvider]:
    """Create the storage singleton once. Later calls return the same instance."""
    global _storage_provider, _storage_initialized
    if not _storage_initialized:
        _storage_provider = create_storage_provider(config)
        _storage_initialized = True
    return _storage_provider


def get_storage_provider() -> Optional[StorageProvider]:
    """FastAPI dependency returning the storage provider (None if disabled)."""
    return init_storage()


def reset_storage_provider() -> None:
    """Clear the storage singleton (for testing purposes)."""
    global _storage_provider, _storage_initialized
    _storage_provider = None
    _storage_initialized = False


async def upload_render_output(
    storage: Optional[StorageProvider],
    data: bytes,
    filename: str,
    content_type: str,
    storage_path: Optional[str],
    job_id: str,
    expires_in: int,
) -> UploadResult:
    """
    Upload a rendered file and sign a download URL for it.

    Raises:
        StorageFailedError: If storage is not configured, or upload or
            signing fails
    """
    job_logger = get_job_logger(__name__, job_id)

    if storage is None:
        raise StorageFailedError(
            "Storage not configured. Set STORAGE_ACCESS_KEY_ID and "
            "STORAGE_SECRET_ACCESS_KEY or use uploadToStorage: false",
            job_id=job_id,
        )

    full_path = build_storage_key(filename, storage_path)
    job_logger.info(f"Uploading to storage: {full_path}")

    try:
        stored_path = await storage.upload(data, full_path, content_type)
    except Exception as e:
        job_logger.error(f"Storage upload failed: {e}")
        raise StorageFailedError(f"Storage upload failed: {e}", job_id=job_id) from e

    try:
        signed = await storage.create_signed_url(stored_path, expires_in)
    except Exception as e:
        job_logger.error(f"Failed to create signed URL: {e}")
        raise StorageFailedError("Failed to create signed URL", job_id=job_id) from e

    expires_at = iso_utc(signed.expires_at)
    job_logger.info(f"File uploaded successfully, signed URL expires at {expires_at}")

    return UploadResult(path=stored_path, signed_url=signed.url, expires_at=expires_at)
