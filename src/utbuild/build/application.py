"""Builds the application itself from its main source file.

Uses the same header-driven dependency discovery as the unit tests, without
the TEST define, mocks or runners.
"""

from typing import List, Optional

from ..config import ConfigError, ToolchainConfig
from ..output import log
from .annotation_scanner import SourceScanner
from .command_runner import CommandRunner
from .compiler import Compiler
from .dependency_resolver import C_EXTENSION, DependencyResolver
from .linker import Linker
from .test_orchestrator import test_base_name


def build_application(main: str, config: ToolchainConfig, runner: Optional[CommandRunner] = None) -> str:
    """
    Compile and link ``<source_path><main>.c`` and every companion source of its headers.

    Returns:
        Path of the linked executable

    Raises:
        ConfigError: If compiler.source_path is not configured
        CompilerError: If a compile fails
        LinkerError: If the link fails
    """
    log("Building application...")

    source_path = config.compiler.source_path
    if source_path is None:
        raise ConfigError("Missing required field 'compiler.source_path'")

    runner = runner or CommandRunner()
    compiler = Compiler(config, runner)
    resolver = DependencyResolver(config.local_include_dirs())

    main_path = f"{source_path}{main}{C_EXTENSION}"
    obj_list: List[str] = []
    for header in SourceScanner().scan(main_path).headers:
        source = resolver.source_for(header)
        if source is not None:
            obj_list.append(compiler.compile(source))

    obj_list.append(compiler.compile(main_path))
    return Linker(config, runner).link(test_base_name(main_path), obj_list)
