"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from vpi_recordings.domain.models import Tenant


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    secure: bool = False


class TenantStoreConfig(BaseModel, frozen=True):
    """Per-tenant object store settings."""

    enabled: bool
    bucket_name: str = "vpi"


class TranscoderConfig(BaseModel, frozen=True):
    """External codec process settings."""

    ffmpeg_path: str = "ffmpeg"
    timeout_seconds: float = 120.0


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    minio: MinioConfig
    tenants: dict[Tenant, TenantStoreConfig]
    transcoder: TranscoderConfig


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            secure=_env_flag("MINIO_SECURE"),
        ),
        tenants={
            tenant: TenantStoreConfig(
                enabled=_env_flag(f"VPI_{tenant.value}_ENABLED"),
                bucket_name=os.getenv(f"VPI_{tenant.value}_BUCKET", "vpi"),
            )
            for tenant in Tenant
        },
        transcoder=TranscoderConfig(
            ffmpeg_path=os.getenv("FFMPEG_PATH", "ffmpeg"),
            timeout_seconds=float(os.getenv("TRANSCODE_TIMEOUT_SECONDS", "120")),
        ),
    )
