"""Single-pass content fingerprinting.

Every byte of a file is read once and fanned out to three hash states:
SHA-512 and XXH64 over ``prefix || content``, and the S3 multipart ETag over
the raw content. The prefix binds the repository name and the declared file
size into the content hashes, so identical files in two repositories get
different keys.
"""

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol

import xxhash

from .etag import DEFAULT_PART_SIZE, MultipartEtag

READ_CHUNK_SIZE = 8 * 1024 * 1024  # 8 MiB

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class HashReadError(Exception):
    """Raised when a file cannot be read while it is being fingerprinted."""

    def __init__(self, path: str | Path, error: OSError):
        self.path = str(path)
        self.error = error
        super().__init__(f"Failed to read {self.path}: {error}")


class _Updatable(Protocol):
    def update(self, data: bytes, /) -> object: ...


class MultiHasher:
    """Feed one stream of writes to several hash objects."""

    def __init__(self, *sinks: _Updatable) -> None:
        self.sinks = sinks

    def update(self, data: bytes) -> None:
        for sink in self.sinks:
            sink.update(data)


@dataclass(frozen=True)
class HashBundle:
    """The three digests computed for one file."""

    strong: bytes  # SHA-512 of prefix || content
    fast: int  # XXH64 of prefix || content
    etag: str  # S3 ETag of content alone


def to_base36(value: int) -> str:
    """Lower-case base 36 rendering of a non-negative integer."""
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def make_prefix(namespace: str | bytes, size: int) -> bytes:
    """Build ``namespace + b" " + base36(size) + b"\\x00"``."""
    if isinstance(namespace, str):
        namespace = namespace.encode("utf-8")
    return namespace + b" " + to_base36(size).encode("ascii") + b"\x00"


def hash_stream(
    prefix: bytes,
    reader: BinaryIO,
    part_size: int = DEFAULT_PART_SIZE,
    chunk_size: int = READ_CHUNK_SIZE,
) -> HashBundle:
    """Hash everything ``reader`` yields in one pass.

    Errors from ``reader`` propagate unchanged; the hash states never fail.
    """
    sha = hashlib.sha512()
    xx = xxhash.xxh64()
    etag = MultipartEtag(part_size)

    keyed = MultiHasher(sha, xx)
    everything = MultiHasher(keyed, etag)

    keyed.update(prefix)
    while chunk := reader.read(chunk_size):
        everything.update(chunk)

    return HashBundle(strong=sha.digest(), fast=xx.intdigest(), etag=etag.hexdigest())


def fingerprint_file(
    path: str | Path,
    namespace: str,
    size: int,
    part_size: int = DEFAULT_PART_SIZE,
) -> HashBundle:
    """Fingerprint the file at ``path`` using its declared ``size`` in the prefix.

    Raises:
        HashReadError: If the file cannot be opened or read
    """
    try:
        with open(path, "rb") as f:
            return hash_stream(make_prefix(namespace, size), f, part_size=part_size)
    except OSError as e:
        raise HashReadError(path, e) from e
