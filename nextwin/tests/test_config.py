# nextwin/tests/test_config.py
"""Tests for configuration management and startup validation."""
import os
from unittest.mock import patch

import pytest

from nextwin.config import (
    DEFAULT_MODEL,
    DEFAULT_MODEL_TIMEOUT_SECONDS,
    ConfigurationError,
    load_config,
    log_config_snapshot,
    validate_config_snapshot_safety,
)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_default_values(self):
        """Config loads with sensible defaults when no env vars set."""
        with patch.dict(os.environ, {}, clear=True):
            config = load_config()

        assert config.service_name == "nextwin-picks"
        assert config.environment == "development"
        assert config.model_name == DEFAULT_MODEL
        assert config.model_timeout_seconds == DEFAULT_MODEL_TIMEOUT_SECONDS
        assert config.locale == "fr-FR"
        assert config.timezone == "Europe/Paris"
        assert config.search_enabled is True
        assert config.model_api_key_present is False
        assert any("GEMINI_API_KEY" in w for w in config.warnings)

    def test_gemini_key(self):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "AIza-test"}, clear=True):
            config = load_config()

        assert config.model_api_key == "AIza-test"
        assert config.model_api_key_present is True
        assert config.warnings == []

    def test_legacy_api_key(self):
        with patch.dict(os.environ, {"API_KEY": "AIza-legacy"}, clear=True):
            config = load_config()

        assert config.model_api_key == "AIza-legacy"

    def test_build_placeholder_ignored(self):
        """An un-substituted build placeholder is not a key."""
        with patch.dict(os.environ, {"API_KEY": "process.env.API_KEY"}, clear=True):
            config = load_config()

        assert config.model_api_key_present is False

    def test_key_not_in_repr(self):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "AIza-secret"}, clear=True):
            config = load_config()

        assert "AIza-secret" not in repr(config)

    def test_production_requires_key(self):
        with patch.dict(os.environ, {"RAILWAY_ENVIRONMENT": "production"}, clear=True):
            with pytest.raises(ConfigurationError):
                load_config()

    def test_production_without_fail_fast(self):
        with patch.dict(os.environ, {"RAILWAY_ENVIRONMENT": "production"}, clear=True):
            config = load_config(fail_fast=False)

        assert config.environment == "production"

    def test_display_overrides(self):
        with patch.dict(
            os.environ,
            {"NEXTWIN_LOCALE": "en-US", "NEXTWIN_TIMEZONE": "America/New_York"},
            clear=True,
        ):
            config = load_config()

        assert config.locale == "en-US"
        assert config.timezone == "America/New_York"

    def test_search_flag(self):
        with patch.dict(os.environ, {"NEXTWIN_SEARCH_ENABLED": "false"}, clear=True):
            config = load_config()

        assert config.search_enabled is False


class TestValidation:
    """Invalid values fall back to defaults with a warning."""

    def test_invalid_timeout(self):
        with patch.dict(os.environ, {"NEXTWIN_MODEL_TIMEOUT_SECONDS": "soon"}, clear=True):
            config = load_config()

        assert config.model_timeout_seconds == DEFAULT_MODEL_TIMEOUT_SECONDS
        assert any("not a valid number" in w for w in config.warnings)

    def test_timeout_below_minimum(self):
        with patch.dict(os.environ, {"NEXTWIN_MODEL_TIMEOUT_SECONDS": "0.2"}, clear=True):
            config = load_config()

        assert config.model_timeout_seconds == DEFAULT_MODEL_TIMEOUT_SECONDS
        assert any("below minimum" in w for w in config.warnings)

    def test_valid_timeout(self):
        with patch.dict(os.environ, {"NEXTWIN_MODEL_TIMEOUT_SECONDS": "7.5"}, clear=True):
            config = load_config()

        assert config.model_timeout_seconds == 7.5

    def test_unknown_timezone(self):
        with patch.dict(os.environ, {"NEXTWIN_TIMEZONE": "Mars/Olympus"}, clear=True):
            config = load_config()

        assert config.timezone == "Europe/Paris"
        assert any("not a known timezone" in w for w in config.warnings)


class TestConfigSnapshotSafety:
    """Tests for config snapshot security."""

    def test_snapshot_has_no_key(self):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "AIza-secret"}, clear=True):
            snapshot = log_config_snapshot(load_config())

        assert "AIza-secret" not in snapshot
        assert "model_api_key_present=True" in snapshot
        assert validate_config_snapshot_safety(snapshot) is True

    def test_unsafe_snapshot_detected(self):
        assert validate_config_snapshot_safety("api_key=AIza-secret") is False
        assert validate_config_snapshot_safety("token=abc") is False
