"""
Configuration Loader.

Reads ``sigmodel.yaml``, expands ``${VAR}`` references, layers the
``SIGMODEL_*`` environment overrides on top and validates the result as a
``SigmodelConfig``. Values taken from the environment stay strings;
Pydantic converts them to the field types.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from sigmodel.config.environment import load_environment
from sigmodel.config.models import SigmodelConfig
from sigmodel.errors import SigmodelError

logger = logging.getLogger(__name__)

# Searched in order when no path is given
DEFAULT_CONFIG_PATHS = [
    "sigmodel.yaml",
    "sigmodel.yml",
    ".sigmodel.yaml",
    ".sigmodel.yml",
]

CONFIG_ENV_VAR = "SIGMODEL_CONFIG"

# Environment variable -> "section.field" (or a top-level field)
ENV_VAR_OVERRIDES = {
    "SIGMODEL_MAX_INSTANTIATION_DEPTH": "extraction.max_instantiation_depth",
    "SIGMODEL_FOLD_BOOLEAN_UNIONS": "extraction.fold_boolean_unions",
    "SIGMODEL_FUNCTION_PREFIX": "compiler.function_prefix",
    "SIGMODEL_ROOT_PATH": "compiler.root_path",
    "SIGMODEL_OUTPUT_DIR": "output.base_dir",
    "SIGMODEL_LOG_LEVEL": "logging.level",
    "SIGMODEL_LOG_FILE": "logging.file",
    "SIGMODEL_DEBUG": "debug",
}

# ${NAME} or ${NAME:-default}
_ENV_REFERENCE = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


class ConfigurationError(SigmodelError):
    """Raised when configuration is invalid.

    Attributes:
        errors: Pydantic validation errors, if any
        path: Config file the errors came from
    """

    def __init__(
        self,
        message: str,
        errors: list[dict] | None = None,
        path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.path = path

    def __str__(self) -> str:
        lines = [Exception.__str__(self) + (f" (file: {self.path})" if self.path else "")]
        for err in self.errors:
            location = ".".join(str(part) for part in err.get("loc", ()))
            lines.append(f"  - {location}: {err.get('msg', 'invalid value')}")
        return "\n".join(lines)


def _expand_references(data: Any) -> Any:
    """Replace ``${VAR}`` references in every string of a YAML document.

    Unset variables without a default are left verbatim so validation
    reports them in context.
    """
    if isinstance(data, dict):
        return {key: _expand_references(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_references(item) for item in data]
    if not isinstance(data, str):
        return data

    def replace(match: re.Match[str]) -> str:
        value = os.environ.get(match.group(1), match.group(2))
        return match.group(0) if value is None else value

    return _ENV_REFERENCE.sub(replace, data)


class ConfigLoader:
    """Loads a ``SigmodelConfig``.

    Usage:
        config = ConfigLoader("sigmodel.yaml").load()

        # SIGMODEL_CONFIG, then DEFAULT_CONFIG_PATHS, then defaults
        config = ConfigLoader().load_from_env()
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        env_file: str = ".env",
    ) -> None:
        """Initialize the config loader.

        Args:
            config_path: YAML config file. Without one only defaults and
                environment overrides apply.
            env_file: Path to .env file for environment loading
        """
        self._config_path = Path(config_path) if config_path else None
        self._env_file = env_file
        self._config: SigmodelConfig | None = None
        self._loaded_from_path: Path | None = None

    @property
    def loaded_from_path(self) -> Path | None:
        """The file the configuration was read from, if any."""
        return self._loaded_from_path

    def get(self) -> SigmodelConfig:
        """Get the loaded configuration.

        Raises:
            RuntimeError: If configuration has not been loaded yet.
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() or load_from_env() first.")
        return self._config

    def load(self, path: str | Path | None = None) -> SigmodelConfig:
        """Load and validate configuration.

        Args:
            path: Config file, replacing the one given at construction

        Raises:
            ConfigurationError: If config is invalid
            FileNotFoundError: If config file not found
        """
        if path is not None:
            self._config_path = Path(path)

        load_environment(self._env_file)

        raw = self._read_yaml(self._config_path) if self._config_path else {}
        self._loaded_from_path = self._config_path

        # Empty YAML sections parse as None; omit them so defaults apply
        sections = {key: value for key, value in _expand_references(raw).items() if value is not None}
        for env_var, target in ENV_VAR_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value is None:
                continue
            logger.debug(f"Applying {env_var} override to {target}")
            section, _, field = target.rpartition(".")
            if section:
                if not isinstance(sections.get(section), dict):
                    sections[section] = {}
                sections[section][field] = value
            else:
                sections[field] = value

        try:
            self._config = SigmodelConfig(**sections)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.error_count()} errors",
                errors=e.errors(),
                path=self._loaded_from_path,
            )

        logger.debug(f"Loaded configuration from {self._loaded_from_path or 'defaults'}")
        return self._config

    def load_from_env(self) -> SigmodelConfig:
        """Load from ``SIGMODEL_CONFIG``, a default location or defaults.

        Raises:
            ConfigurationError: If config is invalid
            FileNotFoundError: If SIGMODEL_CONFIG names a missing file
        """
        load_environment(self._env_file)

        env_config_path = os.environ.get(CONFIG_ENV_VAR)
        if env_config_path:
            if not Path(env_config_path).exists():
                raise FileNotFoundError(
                    f"Config file specified by {CONFIG_ENV_VAR} not found: {env_config_path}"
                )
            return self.load(env_config_path)

        found = next((Path(p) for p in DEFAULT_CONFIG_PATHS if Path(p).exists()), None)
        self._config_path = found
        return self.load()

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", path=path)
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping", path=path)
        return data


_global_config: SigmodelConfig | None = None


def load_config(
    config_path: str | Path | None = None,
    env_file: str = ".env",
) -> SigmodelConfig:
    """Load configuration from a file and make it the global one."""
    global _global_config
    _global_config = ConfigLoader(config_path, env_file).load()
    return _global_config


def load_config_from_env(env_file: str = ".env") -> SigmodelConfig:
    """Discover, load and globally install the configuration.

    Raises:
        ConfigurationError: If config validation fails
        FileNotFoundError: If SIGMODEL_CONFIG names a missing file
    """
    global _global_config
    _global_config = ConfigLoader(env_file=env_file).load_from_env()
    return _global_config


def get_config() -> SigmodelConfig:
    """Get the global configuration.

    Raises:
        RuntimeError: If configuration not loaded
    """
    if _global_config is None:
        raise RuntimeError(
            "Configuration not loaded. Call load_config() or load_config_from_env() first."
        )
    return _global_config


def reset_config() -> None:
    """Forget the global configuration."""
    global _global_config
    _global_config = None
