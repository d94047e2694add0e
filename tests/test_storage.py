"""Tests for S3 audio storage."""

from __future__ import annotations

import asyncio

import pytest
from botocore.exceptions import ClientError

from narrator.config.settings import S3Config
from narrator.services.errors import ErrorKind, StorageError
from narrator.services.storage import S3AudioStorage, object_url


class StubS3Client:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.objects: list[dict] = []

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.objects.append(kwargs)
        return {"ETag": '"etag"'}


def _storage(client: StubS3Client, **config) -> S3AudioStorage:
    values = {"bucket_name": "narrations-bucket", "region": "eu-west-1", "key_prefix": "audio/"}
    values.update(config)
    return S3AudioStorage(config=S3Config(**values), client=client)


def test_upload_puts_object_under_prefix():
    client = StubS3Client()

    result = asyncio.run(_storage(client).upload("abc_polly_1.mp3", b"bytes", "audio/mpeg"))

    assert result.key == "audio/abc_polly_1.mp3"
    assert result.url == "https://narrations-bucket.s3.eu-west-1.amazonaws.com/audio/abc_polly_1.mp3"
    assert result.size == 5
    assert client.objects[0]["ContentType"] == "audio/mpeg"
    assert client.objects[0]["Bucket"] == "narrations-bucket"


def test_upload_rejects_empty_payload_and_missing_bucket():
    with pytest.raises(StorageError):
        asyncio.run(_storage(StubS3Client()).upload("a.mp3", b"", "audio/mpeg"))
    with pytest.raises(StorageError):
        asyncio.run(_storage(StubS3Client(), bucket_name="").upload("a.mp3", b"x", "audio/mpeg"))


def test_upload_wraps_client_errors():
    error = ClientError({"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "PutObject")

    with pytest.raises(StorageError) as excinfo:
        asyncio.run(_storage(StubS3Client(error)).upload("a.mp3", b"x", "audio/mpeg"))

    assert excinfo.value.kind is ErrorKind.STORAGE_ERROR
    assert excinfo.value.__cause__ is error


def test_object_url_for_us_east_1():
    assert object_url("bucket", "k.mp3", "us-east-1") == "https://bucket.s3.amazonaws.com/k.mp3"
