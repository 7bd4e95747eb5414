"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend combinations and URL expiry limits are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# SigV4 presigned URLs cannot outlive seven days.
MAX_PRESIGN_EXPIRY_SECONDS = 7 * 24 * 3600
MAX_UPLOAD_URL_EXPIRY_SECONDS = 15 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Everything has a default so the service boots against the in-memory
    store; validate_backends_and_limits rejects inconsistent combinations.
    """

    # App
    app_name: str = "vdrive"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Tenant
    tenant_header_name: str = "X-Tenant-ID"

    # Object store: "s3" (boto3) or "memory" (process-local, dev/tests)
    storage_backend: str = "memory"
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    memory_store_base_url: str = "http://localhost:9000"

    # Transfers
    max_upload_size: int = 5 * 1024 * 1024 * 1024  # 5 GiB, single PUT limit
    upload_url_expiry_seconds: int = 900
    download_url_expiry_seconds: int = 3600
    dedupe_upload_names: bool = True

    # Listing
    list_page_size: int = 1000
    max_list_pages: int = 100

    # Search
    search_default_max_results: int = 100
    search_max_results_limit: int = 1000
    search_min_query_length: int = 2

    # Retry policy for the object store (5xx / network only)
    store_max_attempts: int = 3
    store_retry_min_wait: float = 0.2
    store_retry_max_wait: float = 2.0

    # Cache: "memory" (single process) or "redis" (shared)
    cache_backend: str = "memory"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    cache_ttl_default: float = 300
    cache_ttl_listing: float = 120
    cache_ttl_search: float = 60
    cache_ttl_stat: float = 30
    cache_ttl_stats: float = 300

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backends_and_limits(self) -> "Settings":
        """Validate backend names, S3 requirements and presign expiries."""
        if self.storage_backend == "s3":
            if not self.s3_bucket:
                raise ValueError(
                    "s3_bucket is required when storage_backend is 's3'. "
                    "Set S3_BUCKET environment variable or update .env file."
                )
        elif self.storage_backend != "memory":
            raise ValueError(
                f"Invalid storage_backend '{self.storage_backend}'. "
                "Must be one of: 'memory', 's3'"
            )
        if self.cache_backend not in ("memory", "redis"):
            raise ValueError(
                f"Invalid cache_backend '{self.cache_backend}'. "
                "Must be one of: 'memory', 'redis'"
            )
        if not 0 < self.upload_url_expiry_seconds <= MAX_UPLOAD_URL_EXPIRY_SECONDS:
            raise ValueError(
                "upload_url_expiry_seconds must be between 1 and "
                f"{MAX_UPLOAD_URL_EXPIRY_SECONDS}"
            )
        if not 0 < self.download_url_expiry_seconds <= MAX_PRESIGN_EXPIRY_SECONDS:
            raise ValueError(
                "download_url_expiry_seconds must be between 1 and "
                f"{MAX_PRESIGN_EXPIRY_SECONDS}"
            )
        if self.max_upload_size <= 0:
            raise ValueError("max_upload_size must be positive")
        if self.list_page_size <= 0 or self.max_list_pages <= 0:
            raise ValueError("list_page_size and max_list_pages must be positive")
        if not 0 < self.search_default_max_results <= self.search_max_results_limit:
            raise ValueError(
                "search_default_max_results must be between 1 and "
                "search_max_results_limit"
            )
        if self.store_max_attempts < 1:
            raise ValueError("store_max_attempts must be at least 1")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
