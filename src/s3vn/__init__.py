"""s3vn: content-addressed directory snapshots stored in S3."""

__version__ = "0.1.0"
