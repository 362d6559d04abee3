"""Test Lab step configuration module."""

from .loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigInvalidError,
    ConfigMissingError,
    ConfigParseError,
    ConfigValidationError,
    KeyFileWriteError,
    generate_example_matrix_yaml,
    load_config,
    load_matrix,
    save_matrix,
)
from .schema import DeviceMatrix, ServiceAccountKey, StepConfig, TestType

__all__ = [
    # Config classes
    "StepConfig",
    "ServiceAccountKey",
    "DeviceMatrix",
    # Enums
    "TestType",
    # Loader functions
    "load_config",
    "load_matrix",
    "save_matrix",
    "generate_example_matrix_yaml",
    # Exceptions
    "ConfigError",
    "ConfigMissingError",
    "ConfigInvalidError",
    "KeyFileWriteError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
