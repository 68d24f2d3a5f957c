"""Shared test fixtures for journal."""

import io
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("BUCKET_NAME", "test-bucket")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from journal.core.security import create_access_token
from journal.core.storage import get_s3_client
from journal.db.repositories.entry_repository import EntryRepository
from journal.main import app


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 calls EntryRepository makes."""

    def __init__(self, page_size: int = 1000):
        self.objects: dict[str, dict] = {}
        self.page_size = page_size
        self.calls: list[tuple[str, str]] = []
        self.fail_with: str | None = None
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _record(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if self.fail_with:
            raise ClientError(
                {
                    "Error": {"Code": self.fail_with, "Message": "boom"},
                    "ResponseMetadata": {"HTTPStatusCode": 500},
                },
                operation,
            )

    @staticmethod
    def _not_found(operation: str, code: str) -> ClientError:
        return ClientError(
            {
                "Error": {"Code": code, "Message": "Not Found"},
                "ResponseMetadata": {"HTTPStatusCode": 404},
            },
            operation,
        )

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def put_object(self, Bucket, Key, Body, ContentType=None, Metadata=None):
        self._record("put_object", Key)
        self.objects[Key] = {
            "Body": Body if isinstance(Body, bytes) else Body.encode("utf-8"),
            "ContentType": ContentType,
            "Metadata": {k.lower(): v for k, v in (Metadata or {}).items()},
            "LastModified": self._tick(),
        }
        return {"ETag": '"etag"'}

    def get_object(self, Bucket, Key):
        self._record("get_object", Key)
        if Key not in self.objects:
            raise self._not_found("GetObject", "NoSuchKey")
        obj = self.objects[Key]
        return {
            "Body": io.BytesIO(obj["Body"]),
            "ContentType": obj["ContentType"],
            "Metadata": dict(obj["Metadata"]),
            "LastModified": obj["LastModified"],
        }

    def head_object(self, Bucket, Key):
        self._record("head_object", Key)
        if Key not in self.objects:
            raise self._not_found("HeadObject", "404")
        obj = self.objects[Key]
        return {
            "ContentType": obj["ContentType"],
            "Metadata": dict(obj["Metadata"]),
            "LastModified": obj["LastModified"],
        }

    def list_objects_v2(self, Bucket, Prefix="", Delimiter=None, ContinuationToken=None):
        self._record("list_objects_v2", Prefix)
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        if Delimiter:
            # keys below a nested "folder" go to CommonPrefixes, not Contents
            keys = [k for k in keys if Delimiter not in k[len(Prefix):]]
        start = int(ContinuationToken or 0)
        page = keys[start:start + self.page_size]
        response = {
            "KeyCount": len(page),
            "IsTruncated": start + self.page_size < len(keys),
        }
        if page:
            response["Contents"] = [
                {"Key": k, "LastModified": self.objects[k]["LastModified"]} for k in page
            ]
        if response["IsTruncated"]:
            response["NextContinuationToken"] = str(start + self.page_size)
        return response

    def delete_object(self, Bucket, Key):
        self._record("delete_object", Key)
        self.objects.pop(Key, None)
        return {}


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def repository(s3):
    return EntryRepository(s3, "test-bucket", list_concurrency=4)


@pytest.fixture
def make_token():
    def _make(sub="user-1", **claims):
        data = dict(claims)
        if sub is not None:
            data["sub"] = sub
        return create_access_token(data)

    return _make


@pytest.fixture
def auth_headers(make_token):
    return {"Authorization": f"Bearer {make_token('user-1')}"}


@pytest.fixture
def client(s3):
    app.dependency_overrides[get_s3_client] = lambda: s3
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
