# app/config.py
"""
Centralized configuration management with startup validation.

Defines REQUIRED vs OPTIONAL environment variables and provides
safe configuration loading with validation and logging.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "course-evaluator"
SERVICE_VERSION = "0.1.0"

# Default values
DEFAULT_MAX_REQUEST_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
MIN_REQUEST_SIZE_BYTES = 1024  # 1KB minimum
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5MB per image
MIN_UPLOAD_BYTES = 1024
DEFAULT_UPLOAD_TICKET_TTL_SECONDS = 300
MIN_UPLOAD_TICKET_TTL_SECONDS = 10
DEFAULT_ANALYSIS_PROVIDER = "placeholder"

# Sensitive substrings that should never appear in logs
SENSITIVE_SUBSTRINGS = ("key", "token", "secret", "password", "credential", "auth")


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

    # Security settings
    max_request_size_bytes: int = DEFAULT_MAX_REQUEST_SIZE_BYTES

    # Upload settings
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    upload_ticket_ttl_seconds: int = DEFAULT_UPLOAD_TICKET_TTL_SECONDS

    # Analysis collaborator
    analysis_provider: str = DEFAULT_ANALYSIS_PROVIDER

    # Signing secret presence (value is never stored here)
    secret_key_present: bool = False

    # Warnings collected during config load
    warnings: list = field(default_factory=list)


# =============================================================================
# Configuration Loading
# =============================================================================


def _parse_int_env(
    name: str, default: int, min_value: Optional[int] = None
) -> tuple[int, Optional[str]]:
    """
    Parse an integer environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = int(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid integer; using default {default}"
        return default, warning

    if min_value is not None and value < min_value:
        warning = f"{name}={value} is below minimum {min_value}; using default {default}"
        return default, warning

    return value, None


def load_config(fail_fast: bool = True) -> AppConfig:
    """
    Load and validate application configuration from environment.

    Args:
        fail_fast: If True, raise ConfigurationError on critical issues.
                   If False, collect warnings and continue.

    Returns:
        AppConfig instance with validated configuration.

    Raises:
        ConfigurationError: If required configuration is missing/invalid
                           and fail_fast is True.
    """
    warnings = []

    # Environment
    environment = os.environ.get("RAILWAY_ENVIRONMENT", "development")

    # Security settings with validation
    max_request_size, size_warning = _parse_int_env(
        "MAX_REQUEST_SIZE_BYTES",
        DEFAULT_MAX_REQUEST_SIZE_BYTES,
        min_value=MIN_REQUEST_SIZE_BYTES,
    )
    if size_warning:
        warnings.append(size_warning)

    max_upload, upload_warning = _parse_int_env(
        "MAX_UPLOAD_BYTES",
        DEFAULT_MAX_UPLOAD_BYTES,
        min_value=MIN_UPLOAD_BYTES,
    )
    if upload_warning:
        warnings.append(upload_warning)

    ticket_ttl, ttl_warning = _parse_int_env(
        "UPLOAD_TICKET_TTL_SECONDS",
        DEFAULT_UPLOAD_TICKET_TTL_SECONDS,
        min_value=MIN_UPLOAD_TICKET_TTL_SECONDS,
    )
    if ttl_warning:
        warnings.append(ttl_warning)

    if max_upload > max_request_size:
        warnings.append(
            f"MAX_UPLOAD_BYTES={max_upload} exceeds MAX_REQUEST_SIZE_BYTES={max_request_size}; "
            "uploads above the request limit will be rejected with 413"
        )

    analysis_provider = os.environ.get("ANALYSIS_PROVIDER", DEFAULT_ANALYSIS_PROVIDER).strip().lower()
    if not analysis_provider:
        analysis_provider = DEFAULT_ANALYSIS_PROVIDER

    # Secret presence (OPTIONAL in development, REQUIRED in production)
    secret_key = os.environ.get("COURSE_EVAL_SECRET_KEY")
    secret_key_present = bool(secret_key and len(secret_key) > 0)

    if not secret_key_present:
        if environment == "production" and fail_fast:
            raise ConfigurationError(
                "COURSE_EVAL_SECRET_KEY must be set in production"
            )
        warnings.append(
            "COURSE_EVAL_SECRET_KEY is not set; using the development signing secret"
        )

    # Log warnings
    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return AppConfig(
        environment=environment,
        max_request_size_bytes=max_request_size,
        max_upload_bytes=max_upload,
        upload_ticket_ttl_seconds=ticket_ttl,
        analysis_provider=analysis_provider,
        secret_key_present=secret_key_present,
        warnings=warnings,
    )


def log_config_snapshot(config: AppConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    Never logs actual secret values - only boolean presence flags.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"environment={config.environment} "
        f"max_request_size_bytes={config.max_request_size_bytes} "
        f"max_upload_bytes={config.max_upload_bytes} "
        f"upload_ticket_ttl_seconds={config.upload_ticket_ttl_seconds} "
        f"analysis_provider={config.analysis_provider} "
        f"secret_key_present={config.secret_key_present}"
    )
    logger.info(snapshot)
    return snapshot


def validate_config_snapshot_safety(snapshot: str) -> bool:
    """
    Validate that a config snapshot doesn't contain sensitive values.

    Returns True if safe, False if potentially unsafe.
    """
    snapshot_lower = snapshot.lower()

    # Check for patterns like "key=sk-..." or "token=abc123"
    # We allow "key_present=" but not "key=" followed by a non-boolean value
    for sensitive in SENSITIVE_SUBSTRINGS:
        pattern = rf"{sensitive}=(?!true|false|\d+)"
        if re.search(pattern, snapshot_lower):
            return False

    return True


# Module-level config singleton
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
