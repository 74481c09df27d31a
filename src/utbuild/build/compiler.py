"""Compiler driver.

Assembles one compile command per source file from the compiler section of
the toolchain configuration:

    <path> <defines> <options> <includes> <source> <obj prefix><obj destination><obj name>
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import ToolchainConfig
from .command_builder import normalize_includes, quote_arg, squash
from .command_runner import CommandError, CommandRunner
from .dependency_resolver import C_EXTENSION

logger = logging.getLogger(__name__)


class CompilerError(Exception):
    """Raised when compiling a source file fails."""

    pass


@dataclass(frozen=True)
class CompilerFields:
    """Pre-rendered fragments of a compile command."""

    command: str
    defines: str
    options: str
    includes: str


def object_name_for(source: str, extension: str) -> str:
    """build/../src/crtp.c -> crtp.o (for extension '.o')"""
    base = os.path.basename(source)
    if base.endswith(C_EXTENSION):
        base = base[: -len(C_EXTENSION)]
    return base + extension


class Compiler:
    """Compiles single C sources into object files."""

    def __init__(self, config: ToolchainConfig, runner: CommandRunner):
        self.config = config
        self.runner = runner

    def build_fields(
        self,
        defines: Sequence[str] = (),
        extra_options: Optional[Sequence[str]] = None,
    ) -> CompilerFields:
        compiler = self.config.compiler

        define_items = list(compiler.defines.items)
        define_items.extend(d for d in defines if d not in define_items)

        includes = squash(compiler.includes.prefix, compiler.includes.items)
        return CompilerFields(
            command=quote_arg(compiler.path),
            defines=squash(compiler.defines.prefix, define_items),
            options=squash("", list(compiler.options) + list(extra_options or [])),
            includes=normalize_includes(includes),
        )

    def build_command(
        self,
        source: str,
        defines: Sequence[str] = (),
        extra_options: Optional[Sequence[str]] = None,
    ) -> str:
        fields = self.build_fields(defines, extra_options)
        object_files = self.config.compiler.object_files
        obj_file = object_name_for(source, object_files.extension)
        return (
            f"{fields.command}{fields.defines}{fields.options}{fields.includes} {source} "
            f"{object_files.prefix}{object_files.destination}{obj_file}"
        )

    def compile(
        self,
        source: str,
        defines: Sequence[str] = (),
        extra_options: Optional[Sequence[str]] = None,
    ) -> str:
        """Compile one source file.

        Args:
            source: Path of the .c file
            defines: Defines added to the configured ones for this call
            extra_options: Options appended to the configured ones for this call

        Returns:
            Object file name (relative to the linker's object path)

        Raises:
            CompilerError: If the compiler exits with a non-zero status
        """
        command = self.build_command(source, defines, extra_options)
        try:
            self.runner.execute(command)
        except CommandError as e:
            raise CompilerError(f"Compilation failed for {source}\n{e}") from e
        obj_file = object_name_for(source, self.config.compiler.object_files.extension)
        logger.debug(f"Compiled {source} -> {obj_file}")
        return obj_file
