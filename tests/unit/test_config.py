"""Unit tests for configuration loading and validation."""

import json
import logging
from pathlib import Path

import pytest

from sii_folios.config import load_config
from sii_folios.config.manager import apply_request_overrides
from sii_folios.config.schema import Config, PortalConfig, TransportConfig
from sii_folios.utils.exceptions import ConfigurationError

ENV_VARS = (
    "SII_SERVIDOR",
    "SII_BASE_URL",
    "SII_LOGIN_URL",
    "SII_FOLIOS_PATH",
    "SII_DEBUG_PATH",
    "SII_VERIFY_TLS",
    "SII_TIMEOUT_CONNECT",
    "SII_TIMEOUT_READ",
    "SII_LOG_PATH",
    "SII_LOG_LEVEL",
    "SII_ENABLE_LOGGING",
    "SII_ENABLE_HTML_DEBUG",
    "SII_REDACT_PII",
    "FOLIOS_PATH",
    "DEBUG_PATH",
    "LOG_PATH",
    "ENABLE_LOGGING",
    "ENABLE_HTML_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove configuration variables so tests see only their own overrides."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "portal": {"servidor": "palena"},
                "storage": {"folios_path": str(tmp_path / "folios")},
                "transport": {"timeout_read": 90, "step_timeouts": {"of_genera_archivo": 120}},
                "logging": {"level": "debug", "html_debug": False},
            }
        )
    )
    return path


class TestSchema:
    """Test configuration schema defaults and validation."""

    def test_defaults(self):
        """Test default configuration values."""
        # Act
        config = Config()

        # Assert
        assert config.portal.servidor == "maullin"
        assert config.portal.portal_base_url == "https://maullin.sii.cl"
        assert config.portal.login_url.startswith("https://herculesr.sii.cl/cgi_AUT2000/")
        assert config.storage.folios_path == Path("storage/folios")
        assert config.logging.log_file == Path("storage/logs/log.txt")
        assert config.transport.verify_tls is True

    def test_servidor_normalized(self):
        """Test environment name is case-insensitive."""
        assert PortalConfig(servidor=" PALENA ").portal_base_url == "https://palena.sii.cl"

    def test_unknown_servidor_rejected(self):
        """Test only maullin and palena are accepted."""
        with pytest.raises(ValueError, match="Invalid servidor"):
            PortalConfig(servidor="localhost")

    def test_base_url_override(self):
        """Test explicit base URL wins and loses its trailing slash."""
        # Act
        portal = PortalConfig(base_url="http://127.0.0.1:8089/")

        # Assert
        assert portal.portal_base_url == "http://127.0.0.1:8089"

    def test_invalid_url_rejected(self):
        """Test URLs must be HTTP(S)."""
        with pytest.raises(ValueError, match="Invalid URL"):
            PortalConfig(login_url="ftp://example.com")

    def test_timeout_for_step(self):
        """Test per-step read timeout override."""
        # Arrange
        transport = TransportConfig(
            timeout_connect=5, timeout_read=30, step_timeouts={"of_genera_archivo": 120}
        )

        # Assert
        assert transport.timeout_for("of_genera_archivo") == (5, 120)
        assert transport.timeout_for("login") == (5, 30)

    def test_unknown_step_timeout_rejected(self):
        """Test step_timeouts keys must be step codes."""
        with pytest.raises(ValueError, match="Invalid step"):
            TransportConfig(step_timeouts={"download": 10})


class TestLoadConfig:
    """Test load_config."""

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test defaults when the file does not exist."""
        # Act
        config = load_config(tmp_path / "missing.json")

        # Assert
        assert config.portal.servidor == "maullin"

    def test_load_from_file(self, config_file, tmp_path):
        """Test values from the JSON file."""
        # Act
        config = load_config(config_file)

        # Assert
        assert config.portal.servidor == "palena"
        assert config.storage.folios_path == tmp_path / "folios"
        assert config.transport.timeout_for("of_genera_archivo") == (10, 120)
        assert config.transport.timeout_for("login") == (10, 90)
        assert config.logging.level == "DEBUG"
        assert config.logging.html_debug is False

    def test_env_overrides_file(self, config_file, monkeypatch):
        """Test SII_* variables override the file."""
        # Arrange
        monkeypatch.setenv("SII_SERVIDOR", "maullin")
        monkeypatch.setenv("SII_BASE_URL", "http://127.0.0.1:8089")
        monkeypatch.setenv("SII_VERIFY_TLS", "false")
        monkeypatch.setenv("SII_TIMEOUT_READ", "15")

        # Act
        config = load_config(config_file)

        # Assert
        assert config.portal.servidor == "maullin"
        assert config.portal.portal_base_url == "http://127.0.0.1:8089"
        assert config.transport.verify_tls is False
        assert config.transport.timeout_read == 15

    def test_unprefixed_storage_and_logging_variables(self, tmp_path, monkeypatch):
        """Test FOLIOS_PATH, LOG_PATH, DEBUG_PATH and toggles without prefix."""
        # Arrange
        monkeypatch.setenv("FOLIOS_PATH", str(tmp_path / "caf"))
        monkeypatch.setenv("DEBUG_PATH", str(tmp_path / "html"))
        monkeypatch.setenv("LOG_PATH", str(tmp_path / "logs"))
        monkeypatch.setenv("ENABLE_LOGGING", "false")
        monkeypatch.setenv("ENABLE_HTML_DEBUG", "false")

        # Act
        config = load_config(tmp_path / "missing.json")

        # Assert
        assert config.storage.folios_path == tmp_path / "caf"
        assert config.storage.debug_path == tmp_path / "html"
        assert config.logging.log_path == tmp_path / "logs"
        assert config.logging.enabled is False
        assert config.logging.html_debug is False

    def test_prefixed_variable_wins(self, tmp_path, monkeypatch):
        """Test SII_FOLIOS_PATH takes precedence over FOLIOS_PATH."""
        # Arrange
        monkeypatch.setenv("FOLIOS_PATH", str(tmp_path / "legacy"))
        monkeypatch.setenv("SII_FOLIOS_PATH", str(tmp_path / "current"))

        # Act
        config = load_config(tmp_path / "missing.json")

        # Assert
        assert config.storage.folios_path == tmp_path / "current"

    def test_invalid_env_number(self, tmp_path, monkeypatch):
        """Test non-numeric timeout variable."""
        # Arrange
        monkeypatch.setenv("SII_TIMEOUT_CONNECT", "soon")

        # Act & Assert
        with pytest.raises(ConfigurationError, match="SII_TIMEOUT_CONNECT"):
            load_config(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        """Test syntax errors are reported with position."""
        # Arrange
        path = tmp_path / "bad.json"
        path.write_text("{ not json")

        # Act & Assert
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        """Test validation errors become ConfigurationError."""
        # Arrange
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"portal": {"servidor": "nowhere"}}))

        # Act & Assert
        with pytest.raises(ConfigurationError, match="validation failed"):
            load_config(path)


class TestRequestOverrides:
    """Test per-request overrides."""

    def test_overrides_return_copy(self):
        """Test overrides never mutate the base configuration."""
        # Arrange
        base = Config()

        # Act
        overridden = apply_request_overrides(
            base, servidor="palena", enable_logging=False, enable_html_debug=False
        )

        # Assert
        assert overridden.portal.servidor == "palena"
        assert overridden.logging.enabled is False
        assert overridden.logging.html_debug is False
        assert base.portal.servidor == "maullin"
        assert base.logging.enabled is True

    def test_none_keeps_base_values(self):
        """Test unset overrides keep the configured values."""
        # Arrange
        base = Config(portal=PortalConfig(servidor="palena"))

        # Act
        overridden = apply_request_overrides(base)

        # Assert
        assert overridden.portal.servidor == "palena"
        assert overridden.logging.html_debug is True

    def test_invalid_override(self):
        """Test invalid servidor override."""
        with pytest.raises(ConfigurationError):
            apply_request_overrides(Config(), servidor="nowhere")

    def test_servidor_with_base_url_warns(self, caplog):
        """Test a servidor override is reported when base_url pins the portal."""
        # Arrange
        caplog.set_level(logging.WARNING)
        base = Config(portal=PortalConfig(base_url="http://127.0.0.1:8089"))

        # Act
        overridden = apply_request_overrides(base, servidor="palena")

        # Assert
        assert overridden.portal.servidor == "palena"
        assert overridden.portal.portal_base_url == "http://127.0.0.1:8089"
        assert any("portal.base_url" in message for message in caplog.messages)

    def test_same_servidor_with_base_url_is_silent(self, caplog):
        """Test no warning when the override matches the configured servidor."""
        # Arrange
        caplog.set_level(logging.WARNING)
        base = Config(portal=PortalConfig(base_url="http://127.0.0.1:8089"))

        # Act
        apply_request_overrides(base, servidor="MAULLIN")

        # Assert
        assert caplog.messages == []
