"""
Configuration management for the queue indexer.

Uses pydantic-settings to load configuration from environment variables
and YAML files with proper validation.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueueIndexerSettings(BaseSettings):
    """
    Settings loaded from environment variables (``QUEUE_INDEXER_*``) and
    configuration files.
    """

    model_config = SettingsConfigDict(
        env_prefix="QUEUE_INDEXER_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Indexing behaviour
    enable_live_async_indexing: bool = Field(True, description="Queue index updates instead of writing them directly")
    index_all_workspaces: bool = Field(False, description="Index every workspace, not only live")
    index_name_postfix: str = Field("", description="Postfix of the index the jobs write to")

    # Job queue backend
    queue_backend: Literal["sqs", "local"] = Field("local")
    local_queue_dir: Path = Field(Path(".queue"), description="Directory for the file based job queue")

    # AWS Configuration
    aws_region: str = Field("us-east-1")
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    localstack_endpoint: Optional[str] = Field(None, description="LocalStack endpoint for local development")
    sqs_queue_urls: Dict[str, str] = Field(default_factory=dict, description="Queue name to SQS queue URL")

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    json_logs: bool = Field(True, description="Whether to output JSON format logs")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("sqs_queue_urls", mode="before")
    @classmethod
    def validate_sqs_queue_urls(cls, v: Union[str, dict, None]) -> Dict[str, str]:
        """Parse queue URLs from JSON string or return dict"""
        if v is None or v == "":
            return {}
        if isinstance(v, dict):
            return v
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, dict):
                    return parsed
                else:
                    raise ValueError("JSON must be an object/dictionary")
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON string for sqs_queue_urls: {e}")
        raise ValueError(f"sqs_queue_urls must be a dict or JSON string, got {type(v)}")

    @model_validator(mode="after")
    def validate_queue_backend(self) -> "QueueIndexerSettings":
        """The SQS backend needs a URL for the live queue"""
        if self.queue_backend == "sqs" and "live" not in self.sqs_queue_urls:
            raise ValueError("sqs_queue_urls must contain a URL for the 'live' queue when queue_backend is 'sqs'")
        return self


def _expand_env_variables(obj: Any) -> Any:
    """Recursively expand environment variables in configuration values."""
    if isinstance(obj, str):
        # Match ${VAR_NAME} or ${VAR_NAME:default_value} patterns
        def replace_env_var(match):
            var_with_default = match.group(1)
            if ":" in var_with_default:
                var_name, default_value = var_with_default.split(":", 1)
                return os.getenv(var_name, default_value)
            else:
                return os.getenv(var_with_default, match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env_var, obj)
    elif isinstance(obj, dict):
        return {key: _expand_env_variables(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_variables(item) for item in obj]
    else:
        return obj


def load_config_from_yaml(file_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML file with environment variable expansion.

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        yaml.YAMLError: If YAML file is malformed
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
        return _expand_env_variables(config)


def load_settings(config_file: Optional[Path] = None, **overrides: Any) -> QueueIndexerSettings:
    """
    Load settings from environment variables and an optional YAML file.

    Args:
        config_file: Path to configuration file. If None, QUEUE_INDEXER_CONFIG_FILE is used when set
        **overrides: Additional configuration overrides

    Returns:
        Configured QueueIndexerSettings instance
    """
    config_data: Dict[str, Any] = {}

    if config_file is None and os.getenv("QUEUE_INDEXER_CONFIG_FILE"):
        config_file = Path(os.environ["QUEUE_INDEXER_CONFIG_FILE"])

    if config_file:
        config_data = load_config_from_yaml(config_file)

    config_data.update(overrides)

    return QueueIndexerSettings(**config_data)


# Global settings instance (lazy-loaded)
_settings: Optional[QueueIndexerSettings] = None


def get_cached_settings() -> QueueIndexerSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings_cache() -> None:
    """Reset the cached settings instance (useful for testing)"""
    global _settings
    _settings = None
