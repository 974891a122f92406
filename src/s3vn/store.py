"""Object store access.

The upload pipeline talks to storage through :class:`ObjectStore`. The S3
implementation below is the one used in production; tests substitute
in-memory stores.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, BinaryIO, Callable

import boto3
from boto3.s3.transfer import TransferConfig

from .etag import DEFAULT_PART_SIZE

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client


TransferCallback = Callable[[int], None]


class ObjectStore(ABC):
    """Abstract interface for content-addressed object storage."""

    bucket: str

    @abstractmethod
    def put_object(self, key: str, body: BinaryIO) -> str:
        """Store ``body`` under ``key`` in one request and return the ETag."""
        raise NotImplementedError

    @abstractmethod
    def multipart_upload(
        self,
        key: str,
        body: BinaryIO,
        part_size: int = DEFAULT_PART_SIZE,
        callback: TransferCallback | None = None,
    ) -> None:
        """Store ``body`` under ``key`` in parts of ``part_size`` bytes.

        ``callback`` receives the number of bytes sent as the transfer
        progresses. An exception raised from it aborts the transfer.
        """
        raise NotImplementedError

    @abstractmethod
    def head_object(self, key: str) -> str:
        """Return the ETag of the object stored under ``key``."""
        raise NotImplementedError

    def describe(self, key: str) -> str:
        return f"{self.bucket}/{key}"


def create_s3_client(
    region: str | None = None,
    profile: str | None = None,
    endpoint_url: str | None = None,
) -> "S3Client":
    """Create a boto3 S3 client from the standard AWS credential chain."""
    session = boto3.session.Session(profile_name=profile, region_name=region)
    return session.client("s3", endpoint_url=endpoint_url)


class S3ObjectStore(ObjectStore):
    """ObjectStore backed by an S3 bucket."""

    def __init__(self, client: "S3Client", bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def put_object(self, key: str, body: BinaryIO) -> str:
        response = self.client.put_object(Bucket=self.bucket, Key=key, Body=body)
        return response["ETag"]

    def multipart_upload(
        self,
        key: str,
        body: BinaryIO,
        part_size: int = DEFAULT_PART_SIZE,
        callback: TransferCallback | None = None,
    ) -> None:
        # Parts must line up with the local ETag calculation, so threshold
        # and chunk size are both the part size.
        config = TransferConfig(
            multipart_threshold=part_size,
            multipart_chunksize=part_size,
        )
        self.client.upload_fileobj(body, self.bucket, key, Config=config, Callback=callback)

    def head_object(self, key: str) -> str:
        response = self.client.head_object(Bucket=self.bucket, Key=key)
        return response["ETag"]
