"""Tests for environment-driven configuration."""

from vpi_recordings.config import load_config
from vpi_recordings.domain import Tenant


def test_defaults_disable_every_tenant(monkeypatch) -> None:
    for tenant in Tenant:
        monkeypatch.delenv(f"VPI_{tenant.value}_ENABLED", raising=False)
    monkeypatch.delenv("TRANSCODE_TIMEOUT_SECONDS", raising=False)

    config = load_config()

    assert all(not t.enabled for t in config.tenants.values())
    assert config.transcoder.timeout_seconds == 120.0
    assert config.transcoder.ffmpeg_path == "ffmpeg"


def test_tenant_flags_and_buckets_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("VPI_CMP_ENABLED", "true")
    monkeypatch.setenv("VPI_CMP_BUCKET", "cmp-recordings")
    monkeypatch.setenv("VPI_RGE_ENABLED", "0")
    monkeypatch.setenv("FFMPEG_PATH", "/usr/local/bin/ffmpeg")

    config = load_config()

    assert config.tenants[Tenant.CMP].enabled is True
    assert config.tenants[Tenant.CMP].bucket_name == "cmp-recordings"
    assert config.tenants[Tenant.RGE].enabled is False
    assert config.transcoder.ffmpeg_path == "/usr/local/bin/ffmpeg"
