"""
Configuration Management System for Stockroom

This module provides a centralized configuration system that supports a 3-tier
precedence hierarchy: environment → user → system defaults.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class ValidationLevel(Enum):
    """Configuration validation strictness levels"""
    STRICT = "strict"      # Fail fast on validation errors
    LENIENT = "lenient"    # Log warnings, use defaults


class StorageConfig(BaseModel):
    """Durable slot storage"""
    model_config = ConfigDict(extra='forbid')

    backend: str = Field(default="duckdb", pattern="^(duckdb|memory)$", description="Slot storage backend")
    db_path: str = Field(default="data/db/stockroom.duckdb", description="DuckDB file holding the slot")
    slot_key: str = Field(default="wh5-inventory-data", min_length=1, description="Key of the state slot")


class SessionConfig(BaseModel):
    """Authentication session timing"""
    model_config = ConfigDict(extra='forbid')

    duration_hours: float = Field(default=8.0, gt=0.0, le=168.0, description="Session lifetime after login/refresh")
    poll_interval_seconds: float = Field(default=60.0, gt=0.0, le=3600.0, description="Session monitor cadence")


class AssistantConfig(BaseModel):
    """Remote model used by the inventory assistant"""
    model_config = ConfigDict(extra='forbid')

    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Generative language API base URL",
    )
    model: str = Field(default="gemini-pro", description="Model name")
    timeout: float = Field(default=60.0, ge=1.0, le=300.0, description="Request timeout (seconds)")


class LoggingConfig(BaseModel):
    """Logging output"""
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="DEBUG", description="File log level")
    log_dir: str = Field(default="data/logs", description="Directory for rotating log files")


class SystemConfig(BaseModel):
    """Complete system configuration"""
    model_config = ConfigDict(extra='forbid')

    storage: StorageConfig = Field(default_factory=StorageConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Metadata
    schema_version: int = Field(default=1, description="Configuration schema version")


# env var -> (section, key, type)
ENV_MAP: Dict[str, tuple[str, str, type]] = {
    'STOCKROOM_STORAGE_BACKEND': ('storage', 'backend', str),
    'STOCKROOM_DB_PATH': ('storage', 'db_path', str),
    'STOCKROOM_SLOT_KEY': ('storage', 'slot_key', str),
    'STOCKROOM_SESSION_HOURS': ('session', 'duration_hours', float),
    'STOCKROOM_SESSION_POLL_SECONDS': ('session', 'poll_interval_seconds', float),
    'GEMINI_BASE_URL': ('assistant', 'base_url', str),
    'GEMINI_MODEL': ('assistant', 'model', str),
    'LOG_LEVEL': ('logging', 'level', str),
    'STOCKROOM_LOG_DIR': ('logging', 'log_dir', str),
}


class ConfigManager:
    """Centralized configuration manager with 3-tier precedence hierarchy"""

    def __init__(self, project_root: Optional[Path] = None, load_env_file: bool = True):
        self.project_root = project_root or Path.cwd()
        self.config_dir = self.project_root / "config"
        self._system_config: Optional[SystemConfig] = None
        self._user_config: Optional[Dict[str, Any]] = None

        if load_env_file:
            load_dotenv(dotenv_path=self.project_root / ".env")

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file"""
        if not file_path.exists():
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Failed to load {file_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring {file_path}: top level is not a mapping")
            return {}
        return data

    def _save_yaml_file(self, file_path: Path, data: Dict[str, Any]) -> bool:
        """Save configuration to YAML file"""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
            return True
        except OSError as e:
            logger.error(f"Failed to save {file_path}: {e}")
            return False

    def _load_system_defaults(self) -> SystemConfig:
        """Load system default configuration"""
        if self._system_config is None:
            defaults_dict = self._load_yaml_file(self.config_dir / "defaults.yaml")

            try:
                self._system_config = SystemConfig(**defaults_dict)
            except ValidationError as e:
                logger.warning(f"System defaults validation failed: {e}")
                # Use Pydantic defaults
                self._system_config = SystemConfig()

        return self._system_config

    def _load_user_config(self) -> Dict[str, Any]:
        """Load user-level configuration"""
        if self._user_config is None:
            self._user_config = self._load_yaml_file(self.config_dir / "user.yaml")

        return self._user_config

    def _merge_configs(self) -> Dict[str, Any]:
        """Merge configurations with precedence: env → user → system"""
        merged = self._load_system_defaults().model_dump()
        self._deep_merge(merged, self._load_user_config())
        self._deep_merge(merged, self._get_env_overrides())
        return merged

    def _deep_merge(self, base: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Extract configuration overrides from environment variables"""
        overrides: Dict[str, Any] = {}
        for env_key, (section, config_key, value_type) in ENV_MAP.items():
            value = os.getenv(env_key)
            if value is None:
                continue
            try:
                converted = value_type(value)
            except ValueError:
                logger.warning(f"Ignoring {env_key}={value!r}: not a valid {value_type.__name__}")
                continue
            overrides.setdefault(section, {})[config_key] = converted

        return overrides

    def get_config(self, validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
        """Get merged configuration with validation"""
        merged_config = self._merge_configs()

        try:
            return SystemConfig(**merged_config)
        except ValidationError as e:
            if validation_level == ValidationLevel.STRICT:
                raise ValueError(f"Configuration validation failed: {e}") from e
            logger.warning(f"Configuration validation failed, using defaults: {e}")
            return SystemConfig()

    def save_user_config(self, config_updates: Dict[str, Any]) -> bool:
        """Save user-level configuration updates"""
        user_path = self.config_dir / "user.yaml"

        existing_config = self._load_yaml_file(user_path)
        self._deep_merge(existing_config, config_updates)

        success = self._save_yaml_file(user_path, existing_config)
        if success:
            # Clear cached user config to force reload
            self._user_config = None

        return success

    def reload_config(self) -> None:
        """Clear cached configurations and reload from files"""
        self._system_config = None
        self._user_config = None


# Global instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(project_root: Optional[Path] = None) -> ConfigManager:
    """Get global configuration manager instance"""
    global _config_manager
    if _config_manager is None or project_root is not None:
        _config_manager = ConfigManager(project_root)
    return _config_manager


def get_config(validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
    """Get current system configuration"""
    return get_config_manager().get_config(validation_level)
