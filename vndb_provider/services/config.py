"""Configuration service for managing provider settings."""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import structlog

from ..models import ProviderConfig
from .errors import ConfigurationError

log = structlog.stdlib.get_logger()

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for loading, validating and saving provider configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path = config_path or Path.home() / ".config" / "vndb-provider" / "config.json"
        log.debug("Configuration service initialized", config_path=str(self.config_path))

    def load_config(self) -> ProviderConfig:
        """Load configuration from file or return default configuration."""
        if not self.config_path.exists():
            log.info("Configuration file not found, using defaults")
            return ProviderConfig()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data: dict[str, Any] = json.load(f)

            config = self._dict_to_config(data)
            validation_result = self.validate_config(config)

            if not validation_result.is_valid:
                log.warning("Invalid configuration loaded, using defaults", errors=validation_result.errors)
                return ProviderConfig()

            log.info("Configuration loaded successfully")
            return config

        except (json.JSONDecodeError, ConfigurationError, OSError, TypeError, ValueError) as e:
            log.error("Failed to load configuration, using defaults", error=str(e))
            return ProviderConfig()

    def save_config(self, config: ProviderConfig) -> None:
        """Save configuration to file."""
        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(validation_result.errors)}")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self._config_to_dict(config), f, indent=2, ensure_ascii=False)

            log.info("Configuration saved successfully")

        except OSError as e:
            log.error("Failed to save configuration", error=str(e))
            raise

    def validate_config(self, config: ProviderConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        if not config.api_url.startswith(("https://", "http://")):
            errors.append("api_url must be an http(s) URL")

        if not config.user_agent.strip():
            errors.append("user_agent cannot be empty")

        if not isinstance(config.search_results, int) or not 1 <= config.search_results <= 100:
            errors.append("search_results must be an integer between 1 and 100")

        if not isinstance(config.max_requests_per_window, int) or config.max_requests_per_window < 1:
            errors.append("max_requests_per_window must be a positive integer")

        if config.rate_limit_window <= 0:
            errors.append("rate_limit_window must be positive")

        for name in ("min_request_interval", "window_buffer", "default_retry_after", "html_retry_delay"):
            if getattr(config, name) < 0:
                errors.append(f"{name} must be a non-negative number")

        if config.max_attempts is not None and (
            not isinstance(config.max_attempts, int) or config.max_attempts < 1
        ):
            errors.append("max_attempts must be a positive integer or None")

        if config.timeout <= 0:
            errors.append("timeout must be positive")

        if config.image_directory is not None and not isinstance(config.image_directory, Path):
            errors.append("image_directory must be a Path object or None")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}")

        return ValidationResult(len(errors) == 0, errors)

    def _config_to_dict(self, config: ProviderConfig) -> dict[str, Any]:
        """Convert ProviderConfig to dictionary for JSON serialization."""
        data = asdict(config)
        data["image_directory"] = str(config.image_directory) if config.image_directory else None
        return data

    def _dict_to_config(self, data: dict[str, Any]) -> ProviderConfig:
        """Convert dictionary to ProviderConfig, keeping defaults for missing keys."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a JSON object")

        defaults = ProviderConfig()
        values: dict[str, Any] = {}

        for key in ("api_url", "user_agent", "log_level"):
            raw = data.get(key, getattr(defaults, key))
            values[key] = str(raw) if isinstance(raw, str) else getattr(defaults, key)

        for key in ("search_results", "max_requests_per_window"):
            raw = data.get(key, getattr(defaults, key))
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ConfigurationError(f"{key} must be a number", setting=key, current_value=raw)
            values[key] = int(raw)

        for key in (
            "rate_limit_window",
            "min_request_interval",
            "window_buffer",
            "default_retry_after",
            "html_retry_delay",
            "timeout",
        ):
            raw = data.get(key, getattr(defaults, key))
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ConfigurationError(f"{key} must be a number", setting=key, current_value=raw)
            values[key] = float(raw)

        max_attempts_raw = data.get("max_attempts")
        values["max_attempts"] = (
            max_attempts_raw
            if isinstance(max_attempts_raw, int) and not isinstance(max_attempts_raw, bool)
            else None
        )

        image_directory_raw = data.get("image_directory")
        values["image_directory"] = Path(image_directory_raw) if image_directory_raw else None

        return ProviderConfig(**values)
