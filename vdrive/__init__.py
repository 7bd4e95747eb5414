"""vdrive: per-tenant folder/file view over S3-compatible object storage."""

__version__ = "1.0.0"
