"""Storage key derivation from the per-file digests."""

import base64
import re

STRONG_DIGEST_SIZE = 64  # SHA-512
ETAG_HASH_SIZE = 16  # MD5
KEY_MATERIAL_SIZE = STRONG_DIGEST_SIZE + 8 + ETAG_HASH_SIZE

_ETAG_HEX = re.compile(r"[0-9a-fA-F]{%d}" % (ETAG_HASH_SIZE * 2))


class ChecksumDecodeError(ValueError):
    """Raised when an ETag does not start with 32 hex characters."""

    def __init__(self, etag: str, reason: str):
        self.etag = etag
        self.reason = reason
        super().__init__(f"Cannot decode checksum {etag!r}: {reason}")


def etag_to_bytes(etag: str) -> bytes:
    """Decode the MD5 portion of an ETag, ignoring any ``-N`` part suffix."""
    width = ETAG_HASH_SIZE * 2
    if len(etag) < width:
        raise ChecksumDecodeError(etag, f"shorter than {width} characters")
    if not _ETAG_HEX.fullmatch(etag[:width]):
        raise ChecksumDecodeError(etag, f"first {width} characters are not hexadecimal")
    return bytes.fromhex(etag[:width])


def base64_url_safe(data: bytes) -> str:
    """URL-safe base64 without ``=`` padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def derive_key(strong: bytes, fast: int, etag: str) -> str:
    """Build the object key for a fingerprinted file.

    The key is ``base64url(strong || le64(fast) || md5(etag))``: 88 bytes,
    118 characters once encoded. Keys written by earlier versions used the
    same layout, so it must not change.

    Raises:
        ChecksumDecodeError: If ``etag`` cannot be decoded
        ValueError: If ``strong`` is not a SHA-512 digest or ``fast`` is out of range
    """
    if len(strong) != STRONG_DIGEST_SIZE:
        raise ValueError(f"strong digest must be {STRONG_DIGEST_SIZE} bytes, got {len(strong)}")
    if not 0 <= fast < 1 << 64:
        raise ValueError(f"fast digest must fit in 64 unsigned bits, got {fast}")

    material = strong + fast.to_bytes(8, "little") + etag_to_bytes(etag)
    return base64_url_safe(material)
