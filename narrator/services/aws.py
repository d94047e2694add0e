"""Shared AWS helpers for service clients."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from narrator.config.settings import settings


def create_boto3_client(
    service_name: str,
    *,
    region_name: str | None = None,
    aws_access_key_id: str | None = None,
    aws_secret_access_key: str | None = None,
    timeout_seconds: float | None = None,
) -> Any:
    """Instantiate a boto3 client using configured credentials if available."""

    region = region_name or settings.s3.region
    client_kwargs: dict[str, Any] = {"region_name": region}
    if aws_access_key_id and aws_secret_access_key:
        client_kwargs["aws_access_key_id"] = aws_access_key_id
        client_kwargs["aws_secret_access_key"] = aws_secret_access_key
    elif settings.s3.access_key and settings.s3.secret_key:
        client_kwargs["aws_access_key_id"] = settings.s3.access_key
        client_kwargs["aws_secret_access_key"] = settings.s3.secret_key
    if timeout_seconds is not None:
        # Retries belong to the failover manager, not botocore.
        client_kwargs["config"] = BotoConfig(
            connect_timeout=timeout_seconds,
            read_timeout=timeout_seconds,
            retries={"max_attempts": 1, "mode": "standard"},
        )
    return boto3.client(service_name, **client_kwargs)


def client_error_status(exc: ClientError) -> int | None:
    """Return the HTTP status code carried by a botocore ``ClientError``."""

    metadata = exc.response.get("ResponseMetadata", {}) if exc.response else {}
    status = metadata.get("HTTPStatusCode")
    return int(status) if status is not None else None


__all__ = ["create_boto3_client", "client_error_status"]
