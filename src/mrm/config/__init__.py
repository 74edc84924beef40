"""Configuration loading for mrm.

The configuration file lists the commands to supervise:

    version: exp
    include: ["web*"]
    commands:
      - name: web
        command: npm
        args: [run, dev]
        ready: ["Listening on"]
        watch: ./src

Key Components:
    - Configuration: Validated top-level configuration
    - CommandConfiguration: A single supervised command
    - WatchConfiguration: Paths that trigger a restart
    - load_config: Discover, read and validate a config file
"""

from mrm.exceptions import ConfigError, ConfigLoadError, ConfigValidationError

from ._discovery import DEFAULT_CONFIG_NAMES, find_config_file
from ._load import load_config, validate_configuration
from ._loader import read_config_file, read_toml_file, read_yaml_file
from ._models import (
    SUPPORTED_VERSION,
    CommandConfiguration,
    CommandOptions,
    Configuration,
    WatchConfiguration,
    WatchOptions,
)

__all__ = [
    "DEFAULT_CONFIG_NAMES",
    "SUPPORTED_VERSION",
    "CommandConfiguration",
    "CommandOptions",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "Configuration",
    "WatchConfiguration",
    "WatchOptions",
    "find_config_file",
    "load_config",
    "read_config_file",
    "read_toml_file",
    "read_yaml_file",
    "validate_configuration",
]
