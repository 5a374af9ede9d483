"""
Teleinfo Gateway Configuration
==============================

This module handles configuration loading for the gateway.

Configuration Sources (in order of precedence):
    1. Command-line flags (highest priority)
    2. Environment variables
    3. config.yaml file
    4. Default values (lowest priority)

Environment Variable Mapping:
    TELEINFO_SERIAL_PORT   -> teleinfo.serial_port
    TELEINFO_MODE          -> teleinfo.mode
    TELEINFO_HOST          -> server.host
    TELEINFO_PORT          -> server.port
    TELEINFO_EXPOSED_ADDR  -> server.exposed_addr
    TELEINFO_LOG_LEVEL     -> logging.level

Example:
    from teleinfo_gateway.config import load_config
    
    settings = load_config("config.yaml")
    print(settings.teleinfo.serial_port)

Settings are loaded once at process entry and passed explicitly to the
components that need them.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from teleinfo_gateway.errors import ConfigError


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServerConfig(BaseModel):
    """Thing server configuration."""
    
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=80, ge=1, le=65535, description="Bind port")
    exposed_addr: str = Field(
        default="",
        description="Public base URL advertised in the Thing description",
    )


class TeleinfoConfig(BaseModel):
    """Meter serial input configuration."""
    
    serial_port: str = Field(..., description="Serial device path, e.g. /dev/ttyUSB0")
    mode: Literal["historic", "standard"] = Field(
        default="historic",
        description="Teleinfo protocol variant",
    )
    read_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Serial read timeout",
    )
    
    @field_validator("serial_port")
    @classmethod
    def _serial_port_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("serial_port is required")
        return value


class PipelineConfig(BaseModel):
    """Frame pipeline configuration."""
    
    queue_size: int = Field(
        default=10,
        ge=1,
        description="Maximum frames buffered between ingestor and projector",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the gateway.
    
    Immutable once loaded.
    """
    
    model_config = {"frozen": True}
    
    server: ServerConfig = Field(default_factory=ServerConfig)
    teleinfo: TeleinfoConfig
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Settings:
    """
    Load configuration from YAML file, environment and overrides.
    
    Args:
        config_path: Path to config.yaml. If None, searches the working directory.
        overrides: Section -> {key: value} applied last (e.g. from CLI flags).
            None values are ignored.
        
    Returns:
        Settings: Loaded configuration
        
    Raises:
        ConfigError: If the file is unreadable or validation fails
    """
    if config_path is None:
        for path in (Path("config.yaml"), Path("config.yml")):
            if path.exists():
                config_path = str(path)
                break
    
    config_data: Dict[str, Any] = {}
    if config_path:
        if not Path(config_path).exists():
            raise ConfigError(f"Config file not found: {config_path}")
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
    else:
        logger.info("No config file found, using defaults and environment variables")
    
    # Sections with every key commented out load as None
    for section in Settings.model_fields:
        if section in config_data:
            _section(config_data, section)
    
    _apply_env_overrides(config_data)
    
    for section, values in (overrides or {}).items():
        for key, value in values.items():
            if value is not None:
                _section(config_data, section)[key] = value
    
    try:
        return Settings.model_validate(config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _section(config_data: dict, name: str) -> Dict[str, Any]:
    """
    Return a config section as a mutable mapping, creating it if absent.
    
    Raises:
        ConfigError: If the section is present but not a mapping
    """
    section = config_data.get(name)
    if section is None:
        section = config_data[name] = {}
    elif not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""
    
    # Teleinfo settings
    if env_serial := os.environ.get("TELEINFO_SERIAL_PORT"):
        _section(config_data, "teleinfo")["serial_port"] = env_serial
    if env_mode := os.environ.get("TELEINFO_MODE"):
        _section(config_data, "teleinfo")["mode"] = env_mode
    
    # Server settings
    if env_host := os.environ.get("TELEINFO_HOST"):
        _section(config_data, "server")["host"] = env_host
    if env_port := os.environ.get("TELEINFO_PORT"):
        _section(config_data, "server")["port"] = env_port
    if env_addr := os.environ.get("TELEINFO_EXPOSED_ADDR"):
        _section(config_data, "server")["exposed_addr"] = env_addr
    
    # Logging settings
    if env_log := os.environ.get("TELEINFO_LOG_LEVEL"):
        _section(config_data, "logging")["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    
    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
