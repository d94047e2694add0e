"""S3 storage for narration audio."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from narrator.config.settings import S3Config, settings
from narrator.services.aws import create_boto3_client
from narrator.services.errors import StorageError


@dataclass(frozen=True)
class UploadResult:
    """Location of an uploaded audio blob."""

    key: str
    url: str
    size: int


class AudioStorage(ABC):
    """Blob store contract: upload bytes under a name, return where they live."""

    @abstractmethod
    async def upload(self, name: str, data: bytes, content_type: str) -> UploadResult:
        ...


def object_url(bucket: str, key: str, region: str) -> str:
    if region == "us-east-1":
        return f"https://{bucket}.s3.amazonaws.com/{key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


class S3AudioStorage(AudioStorage):
    """Upload narration audio with ``put_object`` under the configured prefix."""

    def __init__(self, *, config: S3Config | None = None, client: Any | None = None) -> None:
        self._config = config or settings.s3
        self._client = client or create_boto3_client("s3", region_name=self._config.region)

    def _object_key(self, name: str) -> str:
        prefix = self._config.key_prefix.strip("/")
        return f"{prefix}/{name}" if prefix else name

    async def upload(self, name: str, data: bytes, content_type: str) -> UploadResult:
        """Upload audio to S3 and return its key, public URL and size."""

        if not data:
            raise StorageError("Audio payload for upload was empty.")
        bucket = self._config.bucket_name
        if not bucket:
            raise StorageError("S3 bucket name is not configured.")

        object_key = self._object_key(name)
        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=bucket,
                Key=object_key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload narration audio: {exc}") from exc

        return UploadResult(
            key=object_key,
            url=object_url(bucket, object_key, self._config.region),
            size=len(data),
        )


__all__ = ["AudioStorage", "S3AudioStorage", "StorageError", "UploadResult", "object_url"]
