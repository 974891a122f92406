"""Tests for output formatting."""

import json
import stat

from s3vn.hashing import HashBundle
from s3vn.models import FileRecord
from s3vn.output import (
    format_duration,
    format_error,
    format_init,
    format_plan,
    format_size,
    format_success,
    uploaded_entry,
)


def make_record(path="photos/cat.jpg", size=100):
    return FileRecord(path=path, mode=stat.S_IFREG | 0o644, size=size, mtime=0, uid=0, gid=0)


class TestFormatSuccess:
    """Test success output formatting."""

    def test_json_format(self):
        """Should output valid JSON."""
        result = format_success(
            files=[{"path": "test.json", "size": 100, "key": "k", "etag": "e"}],
            elapsed_seconds=1.5,
            json_output=True,
            scanned=3,
            skipped=1,
            bucket="backups",
        )

        data = json.loads(result)
        assert data["status"] == "success"
        assert data["bucket"] == "backups"
        assert data["total_bytes"] == 100
        assert len(data["files"]) == 1
        assert data["summary"] == {"scanned": 3, "uploaded": 1, "skipped": 1}

    def test_human_format(self):
        """Should output human-readable text."""
        result = format_success(
            files=[{"path": "test.json", "size": 100}],
            elapsed_seconds=1.5,
            json_output=False,
            scanned=2,
        )

        assert "Commit complete" in result
        assert "1 uploaded" in result
        assert "100.0 B" in result
        assert "1.5s" in result


class TestFormatPlan:
    """Test dry-run output."""

    def test_human_format(self):
        result = format_plan([make_record(size=2048)])
        assert result == "Would upload: photos/cat.jpg (2.0 KB)"

    def test_nothing_to_upload(self):
        assert format_plan([]) == "Nothing to upload."

    def test_json_format(self):
        data = json.loads(format_plan([make_record(), make_record("b", 5)], json_output=True))
        assert data["status"] == "dry_run"
        assert data["total_bytes"] == 105
        assert [f["path"] for f in data["files"]] == ["photos/cat.jpg", "b"]


class TestFormatError:
    """Test error output formatting."""

    def test_json_format(self):
        """Should output valid JSON error."""
        result = format_error(
            code="INTEGRITY_FAILURE",
            message="Checksum mismatch",
            json_output=True,
        )

        data = json.loads(result)
        assert data["status"] == "error"
        assert data["code"] == "INTEGRITY_FAILURE"
        assert data["message"] == "Checksum mismatch"

    def test_human_format(self):
        """Should output human-readable error."""
        result = format_error(code="CONFIG_ERROR", message="Bucket required", json_output=False)
        assert result == "Error: Bucket required"


class TestHelpers:
    def test_uploaded_entry(self):
        record = make_record()
        record.fingerprint(HashBundle(strong=b"\x00" * 64, fast=0, etag="ab" * 16), "the-key")

        assert uploaded_entry(record) == {
            "path": "photos/cat.jpg",
            "size": 100,
            "key": "the-key",
            "etag": "ab" * 16,
        }

    def test_format_size(self):
        assert format_size(0) == "0.0 B"
        assert format_size(1536) == "1.5 KB"
        assert format_size(1024**3) == "1.0 GB"

    def test_format_duration(self):
        assert format_duration(5) == "5.0s"
        assert format_duration(125) == "2m 5s"
        assert format_duration(3720) == "1h 2m"


class TestFormatInit:
    def test_human_format(self):
        result = format_init("/data/.s3vn.toml", "photos", "backups")
        assert result == "Initialized repository photos (bucket backups) in /data/.s3vn.toml"

    def test_json_format(self):
        data = json.loads(format_init("/data/.s3vn.toml", "photos", "backups", json_output=True))
        assert data == {
            "status": "success",
            "config_file": "/data/.s3vn.toml",
            "repo_name": "photos",
            "bucket": "backups",
        }
