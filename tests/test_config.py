from signature_service.config import Settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SIGNATURE_SOFFICE_PATH", raising=False)

    settings = Settings()

    assert settings.soffice_path is None
    assert settings.conversion_timeout_seconds == 30.0
    assert settings.record_ttl_seconds is None


def test_prefixed_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SIGNATURE_SOFFICE_PATH", "/opt/libreoffice/soffice")
    monkeypatch.setenv("SIGNATURE_RECORD_TTL_SECONDS", "600")
    monkeypatch.setenv("SIGNATURE_CORS_ORIGINS", '["https://sign.example.com"]')

    settings = Settings()

    assert settings.soffice_path == "/opt/libreoffice/soffice"
    assert settings.record_ttl_seconds == 600
    assert settings.cors_origins == ["https://sign.example.com"]
