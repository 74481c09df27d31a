"""Linker driver.

    <path> <includes> <obj path><obj> ... <bin prefix> <bin destination><exe><bin ext> <options>
"""

from typing import Sequence

from ..config import ToolchainConfig
from .command_builder import normalize_includes, quote_arg, squash
from .command_runner import CommandError, CommandRunner


class LinkerError(Exception):
    """Raised when linking a test executable fails."""

    pass


class Linker:
    """Links accumulated object files into an executable."""

    def __init__(self, config: ToolchainConfig, runner: CommandRunner):
        self.config = config
        self.runner = runner

    def executable_path(self, exe_name: str) -> str:
        bin_files = self.config.linker.bin_files
        return f"{bin_files.destination}{exe_name}{bin_files.extension}"

    def build_command(self, exe_name: str, obj_list: Sequence[str]) -> str:
        linker = self.config.linker
        includes = normalize_includes(squash(linker.includes.prefix, linker.includes.items))
        objects = "".join(f"{linker.object_files_path}{obj} " for obj in obj_list)
        return (
            f"{quote_arg(linker.path)}{includes} "
            f"{objects}"
            f"{linker.bin_files.prefix} {self.executable_path(exe_name)}"
            f" {squash('', linker.options)}"
        )

    def link(self, exe_name: str, obj_list: Sequence[str]) -> str:
        """Link object files in the given order.

        Returns:
            Path of the linked executable

        Raises:
            LinkerError: If the linker exits with a non-zero status
        """
        command = self.build_command(exe_name, obj_list)
        try:
            self.runner.execute(command)
        except CommandError as e:
            raise LinkerError(f"Linking failed for {exe_name}\n{e}") from e
        return self.executable_path(exe_name)
