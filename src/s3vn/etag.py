"""Local prediction of S3 ETags for multipart uploads.

S3 reports the plain MD5 of an object stored as a single part. For an
object assembled from N > 1 parts it reports the MD5 of the concatenated
raw part digests followed by ``-N``. :class:`MultipartEtag` reproduces that
value while the data streams through, so an upload can be verified against
the ETag S3 returns without downloading the object again.
"""

import hashlib

DEFAULT_PART_SIZE = 100 * 1024 * 1024  # 100 MiB


class MultipartEtag:
    """Streaming S3 ETag calculator with a fixed part size.

    The interface follows :mod:`hashlib`: feed data with :meth:`update` and
    read the result with :meth:`hexdigest`. Reading the result finalizes the
    object; later calls to :meth:`hexdigest` return the same value, while
    :meth:`update` raises until :meth:`reset` is called.
    """

    name = "s3-etag"

    def __init__(self, part_size: int = DEFAULT_PART_SIZE) -> None:
        if part_size <= 0:
            raise ValueError(f"part_size must be positive, got {part_size}")
        self.part_size = part_size
        self.reset()

    def reset(self) -> None:
        """Discard all state so the object can hash another stream."""
        self._part = hashlib.md5()
        self._part_len = 0
        self._parts = 0
        self._outer = hashlib.md5()
        self._last_part: bytes | None = None
        self._result: str | None = None

    @property
    def parts(self) -> int:
        """Number of parts closed so far."""
        return self._parts

    def _close_part(self) -> bytes:
        digest = self._part.digest()
        self._parts += 1
        self._last_part = digest
        self._part = hashlib.md5()
        self._part_len = 0
        return digest

    def update(self, data: bytes | bytearray | memoryview) -> None:
        if self._result is not None:
            raise ValueError("MultipartEtag already finalized; call reset() first")

        view = memoryview(data).cast("B")
        while len(view):
            room = self.part_size - self._part_len
            chunk = view[:room]
            self._part.update(chunk)
            self._part_len += len(chunk)
            view = view[room:]
            if self._part_len == self.part_size:
                self._outer.update(self._close_part())

    def hexdigest(self) -> str:
        """Finalize and return the ETag, without surrounding quotes."""
        if self._result is None:
            self._result = self._finalize()
        return self._result

    def _finalize(self) -> str:
        if self._parts == 0 and self._part_len == 0:
            # Empty stream
            return self._part.hexdigest()

        if self._part_len == 0:
            if self._parts == 1:
                assert self._last_part is not None
                return self._last_part.hex()
        else:
            trailing = self._close_part()
            if self._parts == 1:
                return trailing.hex()
            self._outer.update(trailing)

        return f"{self._outer.hexdigest()}-{self._parts}"


def compute_etag(data: bytes, part_size: int = DEFAULT_PART_SIZE) -> str:
    """Return the ETag S3 would report for ``data`` uploaded with ``part_size``."""
    etag = MultipartEtag(part_size)
    etag.update(data)
    return etag.hexdigest()
