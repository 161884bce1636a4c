"""
sigmodel - Configuration Management

This module provides configuration management including:
- YAML configuration loading and validation
- Environment variable handling
- Configuration defaults and overrides
"""

from sigmodel.config.environment import load_environment, reset_environment
from sigmodel.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATHS,
    ENV_VAR_OVERRIDES,
    ConfigLoader,
    ConfigurationError,
    get_config,
    load_config,
    load_config_from_env,
    reset_config,
)
from sigmodel.config.models import (
    CompilerConfig,
    ExtractionConfig,
    LoggingConfig,
    LogLevel,
    OutputConfig,
    SigmodelConfig,
)

__all__ = [
    # Environment
    "load_environment",
    "reset_environment",
    # Loader
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATHS",
    "ENV_VAR_OVERRIDES",
    "ConfigLoader",
    "ConfigurationError",
    "get_config",
    "load_config",
    "load_config_from_env",
    "reset_config",
    # Models
    "LogLevel",
    "ExtractionConfig",
    "CompilerConfig",
    "OutputConfig",
    "LoggingConfig",
    "SigmodelConfig",
]
