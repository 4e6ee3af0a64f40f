"""
Config Module Tests

Tests for:
- Defaults (PORT 3000, 200 MB upload limit)
- Environment overrides
- validate_settings invariants
- CORS origin parsing
"""

import pytest

from pdfcrop.core.config import (
    ConfigValidationError,
    DEFAULT_STATIC_DIR,
    Settings,
    VALID_ENVIRONMENTS,
    validate_settings,
)

pytestmark = pytest.mark.smoke


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    """Isolate from the developer's environment and any .env in cwd."""
    for name in ("PORT", "HOST", "ENV", "UPLOAD_DIR", "MAX_UPLOAD_BYTES",
                 "UPLOAD_CHUNK_BYTES", "CORS_ALLOWED_ORIGINS", "LOG_LEVEL", "STATIC_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestDefaults:

    def test_default_port(self):
        assert Settings().port == 3000

    def test_default_upload_limit(self):
        assert Settings().max_upload_bytes == 200 * 1024 * 1024

    def test_default_static_dir_is_package_static(self):
        assert Settings().static_dir == DEFAULT_STATIC_DIR
        assert DEFAULT_STATIC_DIR.endswith("static")

    def test_default_config_passes_validation(self):
        validate_settings(Settings())

    def test_valid_environments(self):
        assert VALID_ENVIRONMENTS == {"dev", "staging", "prod"}


class TestEnvironmentOverrides:

    def test_port_from_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "8123")
        assert Settings().port == 8123

    def test_upload_dir_from_env(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_DIR", "/var/tmp/crops")
        assert Settings().upload_dir == "/var/tmp/crops"

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("PORT=4100\nMAX_UPLOAD_BYTES=1024\n")
        s = Settings()
        assert s.port == 4100
        assert s.max_upload_bytes == 1024


class TestValidateSettings:

    @pytest.mark.parametrize("port", [0, -1, 70000])
    def test_bad_port(self, port):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_settings(Settings(port=port))
        assert "PORT" in str(exc_info.value)

    def test_non_positive_upload_limit(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_settings(Settings(max_upload_bytes=0))
        assert "MAX_UPLOAD_BYTES" in str(exc_info.value)

    def test_chunk_larger_than_limit(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_settings(Settings(max_upload_bytes=1024, upload_chunk_bytes=4096))
        assert "UPLOAD_CHUNK_BYTES" in str(exc_info.value)

    def test_unknown_env(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_settings(Settings(env="qa"))
        assert "ENV" in str(exc_info.value)

    def test_all_errors_reported(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_settings(Settings(port=0, max_upload_bytes=0, env="qa"))
        assert "3 error(s)" in str(exc_info.value)


class TestCorsOrigins:

    def test_empty_means_wildcard(self):
        assert Settings().cors_origins == ["*"]

    def test_comma_separated(self):
        s = Settings(cors_allowed_origins=" https://a.example , https://b.example,, ")
        assert s.cors_origins == ["https://a.example", "https://b.example"]

    def test_is_production(self):
        assert Settings(env="prod").is_production
        assert not Settings().is_production
