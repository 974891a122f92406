"""Tests for local S3 multipart ETag prediction."""

import hashlib
import os

import pytest

from s3vn.etag import DEFAULT_PART_SIZE, MultipartEtag, compute_etag


def reference_etag(data: bytes, part_size: int) -> str:
    """Split ``data`` into parts by hand and apply S3's single/multi-part rule."""
    parts = [data[i : i + part_size] for i in range(0, len(data), part_size)]
    if len(parts) <= 1:
        return hashlib.md5(data).hexdigest()
    outer = hashlib.md5(b"".join(hashlib.md5(p).digest() for p in parts))
    return f"{outer.hexdigest()}-{len(parts)}"


class TestEdgeCases:
    """Test the single-part/multi-part boundaries."""

    def test_empty_stream(self):
        """Empty input should give the MD5 of nothing, unsuffixed."""
        assert compute_etag(b"", 1024) == hashlib.md5(b"").hexdigest()

    def test_exactly_one_part(self):
        """L == P should give the plain MD5, with no -1 suffix."""
        data = os.urandom(1024)
        assert compute_etag(data, 1024) == hashlib.md5(data).hexdigest()

    def test_one_part_plus_one_byte(self):
        """L == P + 1 should give a two-part ETag."""
        data = os.urandom(1025)
        expected = hashlib.md5(
            hashlib.md5(data[:1024]).digest() + hashlib.md5(data[1024:]).digest()
        ).hexdigest()
        assert compute_etag(data, 1024) == f"{expected}-2"

    def test_exactly_two_parts(self):
        """L == 2P should give a two-part ETag with no trailing partial part."""
        data = os.urandom(2048)
        expected = hashlib.md5(
            hashlib.md5(data[:1024]).digest() + hashlib.md5(data[1024:]).digest()
        ).hexdigest()
        assert compute_etag(data, 1024) == f"{expected}-2"

    def test_smaller_than_part(self):
        """Objects smaller than a part are a single part."""
        assert compute_etag(b"hello world", 1024) == hashlib.md5(b"hello world").hexdigest()


class TestAgainstReference:
    """Compare streaming results with the by-hand split."""

    @pytest.mark.parametrize("length", [1, 1023, 1024, 1025, 3 * 1024, 3 * 1024 + 7, 10_000])
    def test_lengths(self, length):
        data = os.urandom(length)
        assert compute_etag(data, 1024) == reference_etag(data, 1024)

    @pytest.mark.parametrize("write_size", [1, 7, 1000, 1024, 4096])
    def test_write_boundaries_do_not_matter(self, write_size):
        """Results should not depend on how the stream is chunked."""
        data = os.urandom(5000)
        etag = MultipartEtag(1024)
        for i in range(0, len(data), write_size):
            etag.update(data[i : i + write_size])
        assert etag.hexdigest() == reference_etag(data, 1024)

    def test_one_mib_file(self):
        """A 1 MiB object is one part at 1 MiB and two parts at 1 MiB - 1."""
        data = os.urandom(1024 * 1024)

        single = compute_etag(data, 1024 * 1024)
        assert "-" not in single
        assert single == hashlib.md5(data).hexdigest()

        double = compute_etag(data, 1024 * 1024 - 1)
        assert double.endswith("-2")
        assert double == reference_etag(data, 1024 * 1024 - 1)


class TestLifecycle:
    """Test finalization and reuse."""

    def test_hexdigest_is_stable(self):
        """Calling hexdigest twice should return the same value."""
        etag = MultipartEtag(4)
        etag.update(b"0123456789")
        first = etag.hexdigest()
        assert etag.hexdigest() == first
        assert first.endswith("-3")

    def test_update_after_finalize_raises(self):
        """Writing after finalization is rejected."""
        etag = MultipartEtag(4)
        etag.update(b"abc")
        etag.hexdigest()
        with pytest.raises(ValueError):
            etag.update(b"more")

    def test_reset_allows_reuse(self):
        """reset() should start a fresh calculation."""
        etag = MultipartEtag(4)
        etag.update(b"first stream of data")
        etag.hexdigest()

        etag.reset()
        etag.update(b"abcd")
        assert etag.hexdigest() == hashlib.md5(b"abcd").hexdigest()
        assert etag.parts == 1

    def test_accepts_memoryview_and_bytearray(self):
        data = bytearray(b"x" * 10)
        etag = MultipartEtag(4)
        etag.update(memoryview(data)[:5])
        etag.update(data[5:])
        assert etag.hexdigest() == reference_etag(bytes(data), 4)

    def test_invalid_part_size(self):
        with pytest.raises(ValueError):
            MultipartEtag(0)

    def test_default_part_size(self):
        assert MultipartEtag().part_size == DEFAULT_PART_SIZE == 100 * 1024 * 1024
