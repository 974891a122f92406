"""Verification of uploaded objects against locally predicted ETags."""

from .log import get_logger


class ChecksumMismatch(Exception):
    """Raised when the ETag S3 reports differs from the one computed locally."""

    def __init__(self, key: str, expected: str, actual: str, path: str | None = None):
        self.key = key
        self.expected = expected
        self.actual = actual
        self.path = path
        where = f" (path: {path})" if path else ""
        super().__init__(
            f"Checksum mismatch for object {key}{where}: expected {expected}, got {actual}"
        )


def normalize_etag(etag: str) -> str:
    """Strip the double quotes S3 puts around ETags."""
    return etag.strip().strip('"')


def verify_etag(key: str, local_etag: str, remote_etag: str, path: str | None = None) -> None:
    """Check an ETag returned by S3 against the locally computed one.

    Both values may be quoted or not. Multipart ETags (``<hex>-<parts>``)
    are compared like any other, since the local value predicts them.

    Raises:
        ChecksumMismatch: If the values differ
    """
    expected = normalize_etag(local_etag)
    actual = normalize_etag(remote_etag)

    if actual != expected:
        raise ChecksumMismatch(key, expected, actual, path=path)

    get_logger().debug(f"Checksum verified: {key} ({actual})")
