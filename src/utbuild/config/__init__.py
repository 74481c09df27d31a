"""Toolchain configuration loading for utbuild."""

from .toolchain_config import (
    DEFAULT_CONFIG_FILE,
    TEST_DEFINE,
    BinaryFileConfig,
    CompilerConfig,
    ConfigError,
    FlagGroup,
    GeneratorConfig,
    LibraryGroup,
    LinkerConfig,
    ObjectFileConfig,
    SimulatorConfig,
    ToolchainConfig,
    load_configuration,
    resolve_config_path,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "TEST_DEFINE",
    "BinaryFileConfig",
    "CompilerConfig",
    "ConfigError",
    "FlagGroup",
    "GeneratorConfig",
    "LibraryGroup",
    "LinkerConfig",
    "ObjectFileConfig",
    "SimulatorConfig",
    "ToolchainConfig",
    "load_configuration",
    "resolve_config_path",
]
