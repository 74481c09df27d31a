"""
Type-safe toolchain configuration models.

The YAML toolchain file is parsed into frozen dataclasses, one per section,
so that missing required fields are reported when the file is loaded rather
than when the first compile command is assembled.

Example (abridged):

    compiler:
      path: gcc
      build_path: build/
      unit_tests_path: test/
      options: [-c, -Wall]
      includes:
        prefix: -I
        items: [src/, test/mocks/, vendor/unity/src/]
      defines:
        prefix: -D
        items: [UNIT_TEST_MODE]
      object_files:
        prefix: -o
        extension: .o
        destination: build/
      libs:
        fixedpoint:
          files: [lib/fixedpoint/fix.c]
          extra_options: [-Wno-shadow]
    linker:
      path: gcc
      object_files:
        path: build/
      bin_files:
        prefix: -o
        extension: .exe
        destination: build/
"""

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import yaml

DEFAULT_CONFIG_FILE = "target_gcc_32.yml"
CONFIG_ENV_VAR = "UTBUILD_CONFIG"
TEST_DEFINE = "TEST"
MINIMAL_WARNING_OPTION = "-w"

DEFAULT_MOCK_COMMAND = "ruby vendor/cmock/lib/cmock.rb -o{config} {header}"
DEFAULT_RUNNER_COMMAND = "ruby vendor/unity/auto/generate_test_runner.rb {config} {test} {runner}"

# An include item is either a directory string or a tuple of fragments that
# are joined and quoted as one argument.
IncludeItem = Union[str, Tuple[str, ...]]


class ConfigError(Exception):
    """Raised when the toolchain configuration is missing or invalid."""

    pass


def _section(data: Dict[str, Any], key: str, context: str) -> Dict[str, Any]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise ConfigError(f"Missing required section '{context}{key}'")
    return value


def _required(data: Dict[str, Any], key: str, context: str) -> Any:
    value = data.get(key)
    if value is None:
        raise ConfigError(f"Missing required field '{context}{key}'")
    return value


def _string_list(value: Any, context: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise ConfigError(f"Expected a list for '{context}', got {type(value).__name__}")
    return tuple(str(item) for item in value)


def _freeze(value: Any) -> Any:
    """Lists from YAML become tuples so a loaded configuration cannot be changed in place."""
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _flag(value: Any, context: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"Expected true or false for '{context}', got {value!r}")
    return value


@dataclass(frozen=True)
class FlagGroup:
    """A list of flag values sharing one command line prefix (e.g. -I, -D)."""

    prefix: str = ""
    items: Tuple[IncludeItem, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], context: str) -> "FlagGroup":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping for '{context}'")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ConfigError(f"Expected a list for '{context}.items'")
        return cls(prefix=str(data.get("prefix") or ""), items=_freeze(items))


@dataclass(frozen=True)
class ObjectFileConfig:
    """Naming of compiler output files."""

    prefix: str
    destination: str
    extension: str


@dataclass(frozen=True)
class BinaryFileConfig:
    """Naming of linked executables."""

    prefix: str
    destination: str
    extension: str


@dataclass(frozen=True)
class LibraryGroup:
    """Source files compiled into a test when it carries @BUILD_LIB <name>."""

    name: str
    files: Tuple[str, ...] = ()
    extra_options: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CompilerConfig:
    """The 'compiler' section."""

    path: Any
    build_path: str
    object_files: ObjectFileConfig
    options: Tuple[str, ...] = ()
    defines: FlagGroup = field(default_factory=FlagGroup)
    includes: FlagGroup = field(default_factory=FlagGroup)
    unit_tests_path: Optional[str] = None
    source_path: Optional[str] = None
    runner_path: Optional[str] = None
    libs: Mapping[str, LibraryGroup] = field(default_factory=lambda: MappingProxyType({}))
    support_headers: Tuple[str, ...] = ("cmock.h",)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompilerConfig":
        ctx = "compiler."
        object_files = _section(data, "object_files", ctx)

        libs: Dict[str, LibraryGroup] = {}
        for name, lib in (data.get("libs") or {}).items():
            if not isinstance(lib, dict):
                raise ConfigError(f"Expected a mapping for '{ctx}libs.{name}'")
            libs[name] = LibraryGroup(
                name=name,
                files=_string_list(lib.get("files"), f"{ctx}libs.{name}.files"),
                extra_options=_string_list(lib.get("extra_options"), f"{ctx}libs.{name}.extra_options"),
            )

        support_headers = data.get("support_headers")
        return cls(
            path=_freeze(_required(data, "path", ctx)),
            build_path=str(_required(data, "build_path", ctx)),
            object_files=ObjectFileConfig(
                prefix=str(object_files.get("prefix") or ""),
                destination=str(object_files.get("destination") or ""),
                extension=str(_required(object_files, "extension", f"{ctx}object_files.")),
            ),
            options=_string_list(data.get("options"), f"{ctx}options"),
            defines=FlagGroup.from_dict(data.get("defines"), f"{ctx}defines"),
            includes=FlagGroup.from_dict(data.get("includes"), f"{ctx}includes"),
            unit_tests_path=data.get("unit_tests_path"),
            source_path=data.get("source_path"),
            runner_path=data.get("runner_path"),
            libs=MappingProxyType(libs),
            support_headers=("cmock.h",) if support_headers is None else _string_list(support_headers, f"{ctx}support_headers"),
        )


@dataclass(frozen=True)
class LinkerConfig:
    """The 'linker' section."""

    path: Any
    bin_files: BinaryFileConfig
    object_files_path: str = ""
    options: Tuple[str, ...] = ()
    includes: FlagGroup = field(default_factory=FlagGroup)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkerConfig":
        ctx = "linker."
        bin_files = _section(data, "bin_files", ctx)
        object_files = data.get("object_files") or {}
        return cls(
            path=_freeze(_required(data, "path", ctx)),
            bin_files=BinaryFileConfig(
                prefix=str(bin_files.get("prefix") or ""),
                destination=str(bin_files.get("destination") or ""),
                extension=str(bin_files.get("extension") or ""),
            ),
            object_files_path=str(object_files.get("path") or ""),
            options=_string_list(data.get("options"), f"{ctx}options"),
            includes=FlagGroup.from_dict(data.get("includes"), f"{ctx}includes"),
        )


@dataclass(frozen=True)
class SimulatorConfig:
    """The optional 'simulator' section wrapping test executables."""

    path: Any = None
    pre_support: Tuple[str, ...] = ()
    post_support: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulatorConfig":
        return cls(
            path=_freeze(data.get("path")),
            pre_support=_string_list(data.get("pre_support"), "simulator.pre_support"),
            post_support=_string_list(data.get("post_support"), "simulator.post_support"),
        )


@dataclass(frozen=True)
class GeneratorConfig:
    """Shell templates for the external mock and runner generators."""

    mock_command: str = DEFAULT_MOCK_COMMAND
    runner_command: str = DEFAULT_RUNNER_COMMAND

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratorConfig":
        mock = data.get("mock_generator") or {}
        runner = data.get("runner_generator") or {}
        return cls(
            mock_command=str(mock.get("command") or DEFAULT_MOCK_COMMAND),
            runner_command=str(runner.get("command") or DEFAULT_RUNNER_COMMAND),
        )


@dataclass(frozen=True)
class ToolchainConfig:
    """
    Complete toolchain configuration for one batch of tests.

    Instances are never mutated. Use for_test_run() to derive the
    configuration a test batch compiles with.
    """

    config_file: Path
    compiler: CompilerConfig
    linker: LinkerConfig
    simulator: Optional[SimulatorConfig] = None
    generators: GeneratorConfig = field(default_factory=GeneratorConfig)
    colour: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config_file: Path) -> "ToolchainConfig":
        """
        Parse a toolchain configuration from its YAML mapping.

        Raises:
            ConfigError: If required sections or fields are missing
        """
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file}: top level must be a mapping")

        simulator_data = data.get("simulator")
        return cls(
            config_file=config_file,
            compiler=CompilerConfig.from_dict(_section(data, "compiler", "")),
            linker=LinkerConfig.from_dict(_section(data, "linker", "")),
            simulator=SimulatorConfig.from_dict(simulator_data) if isinstance(simulator_data, dict) else None,
            generators=GeneratorConfig.from_dict(data),
            colour=_flag(data.get("colour"), "colour"),
        )

    def for_test_run(self, defines: Sequence[str] = (), minimal: bool = False) -> "ToolchainConfig":
        """
        Derive the configuration used to compile a batch of unit tests.

        Appends the TEST define followed by the command line defines and, in
        the minimal output style, the option that silences compiler warnings.
        """
        items = tuple(self.compiler.defines.items) + (TEST_DEFINE,) + tuple(defines)
        options = tuple(self.compiler.options)
        if minimal:
            options += (MINIMAL_WARNING_OPTION,)
        compiler = dataclasses.replace(
            self.compiler,
            defines=dataclasses.replace(self.compiler.defines, items=items),
            options=options,
        )
        return dataclasses.replace(self, compiler=compiler)

    def local_include_dirs(self) -> List[str]:
        """Include directories that may hold companion sources (fragment tuples excluded)."""
        return [item for item in self.compiler.includes.items if not isinstance(item, (list, tuple))]


def resolve_config_path(config_file: Optional[Union[str, Path]] = None) -> Path:
    """Pick the config file (argument, then $UTBUILD_CONFIG, then default) and add .yml if missing."""
    name = str(config_file or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)
    if not name.endswith(".yml"):
        name += ".yml"
    return Path(name)


def load_configuration(config_file: Optional[Union[str, Path]] = None) -> ToolchainConfig:
    """
    Load and validate the YAML toolchain configuration.

    Args:
        config_file: Path to the configuration; '.yml' is appended when missing

    Returns:
        Validated ToolchainConfig

    Raises:
        ConfigError: If the file is missing, unparsable or incomplete
    """
    path = resolve_config_path(config_file)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e
    return ToolchainConfig.from_dict(data, path)
