"""
Configuration management for code generation.

Handles loading and merging configuration from JSON files and explicit
overrides. A configuration value is built per run and passed explicitly to
every stage; there is no process-wide default instance.
"""

import json
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields, asdict

from ...logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_RUNTIME_IMPORT = "github.com/matthewmcneely/modusgraph"


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


@dataclass
class GeneratorConfig:
    """Settings for one generation run."""

    # Input / output locations
    pkg_dir: str = "."
    output_dir: Optional[str] = None  # defaults to pkg_dir
    cli_dir: Optional[str] = None     # defaults to {output_dir}/cmd/{package}

    # Command surface
    generate_cli: bool = True
    cli_name: Optional[str] = None
    with_validator: bool = False

    # Generated client settings
    runtime_import: str = DEFAULT_RUNTIME_IMPORT
    page_size: int = 50

    # Rendering
    workers: int = 1

    # Custom settings
    custom: Dict[str, Any] = field(default_factory=dict)

    def resolved_pkg_dir(self) -> Path:
        return Path(self.pkg_dir).resolve()

    def resolved_output_dir(self) -> Path:
        return Path(self.output_dir).resolve() if self.output_dir else self.resolved_pkg_dir()

    def resolved_cli_dir(self, package_name: str) -> Path:
        if self.cli_dir:
            return Path(self.cli_dir).resolve()
        return self.resolved_output_dir() / "cmd" / package_name


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager with built-in defaults."""
        self._defaults: Dict[str, Any] = asdict(GeneratorConfig())

    def get_config(self, custom_config: Optional[Dict[str, Any]] = None,
                   config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
        """
        Build a complete configuration.

        Precedence, lowest first: defaults, config file, explicit overrides.
        Overrides whose value is None are ignored so unset CLI flags do not
        clobber file settings.

        Args:
            custom_config: Explicit overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration
        """
        base_config = dict(self._defaults)
        base_config["custom"] = {}

        if config_file:
            file_config = self._load_config_file(config_file)
            base_config.update(file_config)

        if custom_config:
            base_config.update({k: v for k, v in custom_config.items() if v is not None})

        config = self._dict_to_config(base_config)
        problems = self.validate_config(config)
        if problems:
            raise ConfigError("; ".join(problems))
        return config

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == '.json':
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {str(e)}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {str(e)}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        logger.debug("Loaded configuration file %s", path)
        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig, routing unknown keys to custom."""
        known_fields = {f.name for f in fields(GeneratorConfig)}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        if custom_args:
            existing_custom = dict(config_args.get('custom') or {})
            existing_custom.update(custom_args)
            config_args['custom'] = existing_custom

        return GeneratorConfig(**config_args)

    def validate_config(self, config: GeneratorConfig) -> list[str]:
        """
        Validate configuration values.

        Returns:
            List of problems (empty if valid)
        """
        problems = []

        if not isinstance(config.workers, int) or config.workers < 1:
            problems.append(f"Invalid workers: {config.workers!r} (must be a positive integer)")

        if not isinstance(config.page_size, int) or config.page_size < 1:
            problems.append(f"Invalid page_size: {config.page_size!r} (must be a positive integer)")

        if config.cli_name is not None and not str(config.cli_name).strip():
            problems.append("cli_name must not be blank")

        if not config.runtime_import:
            problems.append("runtime_import must not be empty")

        return problems


def load_config(custom_config: Optional[Dict[str, Any]] = None,
                config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Explicit overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration
    """
    return ConfigManager().get_config(custom_config, config_file)
