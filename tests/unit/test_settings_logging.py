"""Unit tests for settings and logging setup."""

import pytest

from prime_cee.core.exceptions import ConfigurationError, ExpressionError, PrimeCeeError, UnknownVariableError
from prime_cee.core.logging import configure_logging, get_logger
from prime_cee.core.settings import EngineSettings, get_settings


class TestEngineSettings:
    """Tests for EngineSettings."""

    def test_defaults(self, settings):
        assert settings.default_bonification == 2.0
        assert settings.default_coefficient == 1.0
        assert settings.mwh_divisor == 1000.0
        assert settings.surface_threshold_m2 == 400.0
        assert settings.lighting_reference_led_watt == 250.0
        assert settings.lighting_default_bonus_dom == 1.0
        assert settings.excluded_product_prefixes == ["ECO"]

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PRIMECEE_DEFAULT_BONIFICATION", "3")
        monkeypatch.setenv("PRIMECEE_LOG_LEVEL", "DEBUG")
        settings = EngineSettings(_env_file=None)
        assert settings.default_bonification == 3.0
        assert settings.log_level == "DEBUG"

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("PRIMECEE_MWH_DIVISOR", "0")
        with pytest.raises(ConfigurationError):
            get_settings()


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(ExpressionError, PrimeCeeError)
        assert issubclass(ConfigurationError, PrimeCeeError)

    def test_unknown_variable_message(self):
        error = UnknownVariableError("FOO * 2", "FOO")
        assert error.name == "FOO"
        assert "unknown variable 'FOO'" in str(error)


class TestLogging:
    """Tests for the structlog setup."""

    def test_get_logger(self):
        log = get_logger("prime_cee.test")
        assert log is not None
        log.debug("test_event", value=1)

    def test_configure_is_idempotent(self):
        first = configure_logging()
        second = configure_logging()
        assert first is not None
        assert second is not None
