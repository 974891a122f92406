"""Pytest configuration and fixtures."""

import hashlib
import threading

import boto3
import pytest
from moto import mock_aws

from s3vn.etag import compute_etag
from s3vn.log import setup_logging
from s3vn.store import ObjectStore, S3ObjectStore

BUCKET = "s3vn-test-bucket"
REPO = "test-repo"


class FakeStore(ObjectStore):
    """In-memory ObjectStore returning quoted ETags like S3.

    ``bad_etags`` maps object contents to the ETag reported for them instead
    of the real one. ``calls`` records ``(operation, key)`` in order.
    """

    def __init__(self, bucket: str = BUCKET) -> None:
        self.bucket = bucket
        self.objects: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.bad_etags: dict[bytes, str] = {}
        self._part_size: int | None = None
        self._lock = threading.Lock()

    def _etag_for(self, key: str, data: bytes, part_size: int | None = None) -> str:
        if data in self.bad_etags:
            return f'"{self.bad_etags[data]}"'
        if part_size is None:
            return f'"{hashlib.md5(data).hexdigest()}"'
        return f'"{compute_etag(data, part_size)}"'

    def put_object(self, key, body):
        data = body.read()
        with self._lock:
            self.calls.append(("put", key))
            self.objects[key] = data
        return self._etag_for(key, data)

    def multipart_upload(self, key, body, part_size=100 * 1024 * 1024, callback=None):
        data = body.read()
        if callback is not None:
            callback(len(data))
        with self._lock:
            self.calls.append(("multipart", key))
            self.objects[key] = data
            self._part_size = part_size

    def head_object(self, key):
        with self._lock:
            self.calls.append(("head", key))
            data = self.objects[key]
        return self._etag_for(key, data, self._part_size)


@pytest.fixture(autouse=True)
def reset_logging():
    """Rebind the s3vn console handler after tests that swap stderr."""
    yield
    setup_logging()


@pytest.fixture
def fake_store():
    """Provide an in-memory object store."""
    return FakeStore()


@pytest.fixture
def tmp_tree(tmp_path):
    """Provide a small directory tree to snapshot."""
    root = tmp_path / "tree"
    (root / "docs" / "nested").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "docs" / "b.txt").write_bytes(b"bravo bravo")
    (root / "docs" / "nested" / "c.bin").write_bytes(bytes(range(256)) * 4)
    (root / "empty").write_bytes(b"")
    return root


@pytest.fixture
def mock_s3():
    """Provide a mocked S3 environment with the test bucket created."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def s3_store(mock_s3):
    """Provide an S3ObjectStore on the mocked bucket."""
    return S3ObjectStore(mock_s3, BUCKET)
