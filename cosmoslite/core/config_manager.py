"""
Configuration management for Cosmoslite.

Handles loading, validation, and access to client configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import httpx
import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from cosmoslite.auth.masterkey import USER_AGENT

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.WARNING
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'cosmoslite.client.executor': 'DEBUG'}"
    )


class HttpConfig(BaseModel):
    """Transport options applied to every HTTP call."""
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Request timeout in seconds"
    )
    connect_timeout: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Connect timeout in seconds (defaults to timeout)"
    )
    verify: bool = True
    proxy: Optional[str] = None
    user_agent: str = USER_AGENT
    options: Dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments passed through to httpx.Client"
    )

    def client_options(self) -> Dict[str, Any]:
        """Render keyword arguments for ``httpx.Client``."""
        options: Dict[str, Any] = {
            "timeout": httpx.Timeout(self.timeout, connect=self.connect_timeout or self.timeout),
            "verify": self.verify,
        }
        if self.proxy:
            options["proxy"] = self.proxy
        options.update(self.options)
        return options


class CosmosConfig(BaseModel):
    """Main Cosmoslite configuration schema."""

    endpoint: str = Field(
        default="https://localhost:8081",
        description="Account endpoint, e.g. https://myaccount.documents.azure.com:443"
    )

    master_key: str = Field(default="", description="Base64-encoded primary or secondary key")

    http: HttpConfig = Field(default_factory=HttpConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate endpoint format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint must start with http:// or https://")
        return v.rstrip("/")

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages Cosmoslite configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (COSMOSLITE_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[CosmosConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> CosmosConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated CosmosConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading Cosmoslite configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.info(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            self._config = CosmosConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # Account
        if endpoint := os.getenv("COSMOSLITE_ENDPOINT"):
            config["endpoint"] = endpoint
        if master_key := os.getenv("COSMOSLITE_KEY"):
            config["master_key"] = master_key

        # Transport
        if timeout := os.getenv("COSMOSLITE_TIMEOUT"):
            config.setdefault("http", {})["timeout"] = float(timeout)
        if verify := os.getenv("COSMOSLITE_VERIFY_SSL"):
            config.setdefault("http", {})["verify"] = verify.lower() in ['true', '1', 'yes']
        if proxy := os.getenv("COSMOSLITE_PROXY"):
            config.setdefault("http", {})["proxy"] = proxy

        # Logging
        if log_level := os.getenv("COSMOSLITE_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_format := os.getenv("COSMOSLITE_LOG_FORMAT"):
            config.setdefault("logging", {})["format"] = log_format

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration (with the master key redacted)."""
        if not self._config:
            return

        config_dict = self._config.model_dump()

        if config_dict.get("master_key"):
            config_dict["master_key"] = "***REDACTED***"

        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2, default=str)}")

    def get_config(self) -> CosmosConfig:
        """
        Get the loaded configuration.

        Returns:
            CosmosConfig instance

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config
