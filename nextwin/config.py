# nextwin/config.py
"""
Centralized configuration management with startup validation.

Every setting is OPTIONAL: without a model API key the service still
answers, the daily picks simply come from the fallback table.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "nextwin-picks"
SERVICE_VERSION = "0.1.0"

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_MODEL_TIMEOUT_SECONDS = 20.0
MIN_MODEL_TIMEOUT_SECONDS = 1.0
DEFAULT_LOCALE = "fr-FR"
DEFAULT_TIMEZONE = "Europe/Paris"

# Sensitive substrings that should never appear in logs
SENSITIVE_SUBSTRINGS = ("key", "token", "secret", "password", "credential", "auth")

# Placeholder values left behind by front-end build tooling
_PLACEHOLDER_KEYS = ("process.env.API_KEY", "undefined", "null")


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class AppConfig:
    """Application configuration loaded from environment."""

    # Service info
    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    environment: str = "development"

    # Model service
    model_api_key: Optional[str] = field(default=None, repr=False)
    model_name: str = DEFAULT_MODEL
    model_timeout_seconds: float = DEFAULT_MODEL_TIMEOUT_SECONDS
    search_enabled: bool = True

    # Display
    locale: str = DEFAULT_LOCALE
    timezone: str = DEFAULT_TIMEZONE

    # Warnings collected during config load
    warnings: list = field(default_factory=list)

    @property
    def model_api_key_present(self) -> bool:
        return bool(self.model_api_key)


# =============================================================================
# Configuration Loading
# =============================================================================


def _parse_float_env(
    name: str, default: float, min_value: Optional[float] = None
) -> tuple[float, Optional[str]]:
    """
    Parse a numeric environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = float(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid number; using default {default}"
        return default, warning

    if min_value is not None and value < min_value:
        warning = f"{name}={value} is below minimum {min_value}; using default {default}"
        return default, warning

    return value, None


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    raw = os.environ.get(name, "").lower()
    if raw in ("true", "1", "yes", "on"):
        return True
    if raw in ("false", "0", "no", "off"):
        return False
    return default


def _read_api_key() -> Optional[str]:
    """Read the model credential, ignoring unset build placeholders."""
    raw = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY") or ""
    raw = raw.strip()
    if not raw or raw in _PLACEHOLDER_KEYS:
        return None
    return raw


def _parse_timezone_env(name: str, default: str) -> tuple[str, Optional[str]]:
    """Parse an IANA timezone name, falling back to default when unknown."""
    raw = os.environ.get(name)
    if not raw:
        return default, None
    try:
        ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError):
        return default, f"{name}='{raw}' is not a known timezone; using default {default}"
    return raw, None


def load_config(fail_fast: bool = True) -> AppConfig:
    """
    Load and validate application configuration from environment.

    Args:
        fail_fast: If True, raise ConfigurationError on critical issues.
                   If False, collect warnings and continue.

    Returns:
        AppConfig instance with validated configuration.

    Raises:
        ConfigurationError: If the production environment runs without
                            a model credential and fail_fast is True.
    """
    warnings = []

    environment = os.environ.get("RAILWAY_ENVIRONMENT", "development")

    api_key = _read_api_key()
    model_name = os.environ.get("NEXTWIN_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL

    timeout, timeout_warning = _parse_float_env(
        "NEXTWIN_MODEL_TIMEOUT_SECONDS",
        DEFAULT_MODEL_TIMEOUT_SECONDS,
        min_value=MIN_MODEL_TIMEOUT_SECONDS,
    )
    if timeout_warning:
        warnings.append(timeout_warning)

    timezone_name, tz_warning = _parse_timezone_env("NEXTWIN_TIMEZONE", DEFAULT_TIMEZONE)
    if tz_warning:
        warnings.append(tz_warning)

    locale = os.environ.get("NEXTWIN_LOCALE", DEFAULT_LOCALE) or DEFAULT_LOCALE
    search_enabled = _parse_bool_env("NEXTWIN_SEARCH_ENABLED", True)

    if api_key is None:
        warnings.append(
            "GEMINI_API_KEY is not set; daily picks will use the fallback table "
            "and analysis will return 503"
        )
        if fail_fast and environment == "production":
            raise ConfigurationError("GEMINI_API_KEY is required in production")

    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return AppConfig(
        environment=environment,
        model_api_key=api_key,
        model_name=model_name,
        model_timeout_seconds=timeout,
        search_enabled=search_enabled,
        locale=locale,
        timezone=timezone_name,
        warnings=warnings,
    )


def log_config_snapshot(config: AppConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    Never logs the actual credential - only a boolean presence flag.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"environment={config.environment} "
        f"model={config.model_name} "
        f"model_timeout_seconds={config.model_timeout_seconds} "
        f"locale={config.locale} "
        f"timezone={config.timezone} "
        f"search_enabled={config.search_enabled} "
        f"model_api_key_present={config.model_api_key_present}"
    )
    logger.info(snapshot)
    return snapshot


def validate_config_snapshot_safety(snapshot: str) -> bool:
    """
    Validate that a config snapshot doesn't contain sensitive values.

    Returns True if safe, False if potentially unsafe.
    """
    snapshot_lower = snapshot.lower()

    # "key_present=true" is fine, "key=AIza..." is not
    for sensitive in SENSITIVE_SUBSTRINGS:
        pattern = rf"{sensitive}=(?!true|false)"
        if re.search(pattern, snapshot_lower):
            return False

    return True
