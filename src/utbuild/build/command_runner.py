"""Synchronous execution of toolchain command strings.

Every compile, link, generator and test invocation goes through
CommandRunner so that command echo, output capture and failure handling are
the same everywhere.
"""

import logging
from dataclasses import dataclass

from ..output import log_detail
from ..subprocess_utils import safe_run

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, output: str):
        self.command = command
        self.returncode = returncode
        self.output = output
        message = f"Command failed. (Returned {returncode})\nCommand: {command}"
        if output:
            message += f"\nOutput:\n{output}"
        super().__init__(message)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and combined stdout/stderr of one command."""

    command: str
    returncode: int
    output: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs shell commands one at a time, blocking until each exits."""

    def __init__(self, log_commands: bool = True):
        """
        Args:
            log_commands: Echo each command line before running it
        """
        self.log_commands = log_commands

    def run(self, command: str, log_output: bool = True) -> CommandResult:
        """Run a command and return its result without checking the exit status."""
        if self.log_commands:
            log_detail(command)
        logger.debug(f"Executing: {command}")

        completed = safe_run(command)
        output = (completed.stdout or "").rstrip("\r\n")
        if log_output and output:
            log_detail(output)

        logger.debug(f"Exit status {completed.returncode}: {command}")
        return CommandResult(command=command, returncode=completed.returncode, output=output)

    def execute(self, command: str, log_output: bool = True) -> str:
        """Run a command and return its output.

        Raises:
            CommandError: If the command exits with a non-zero status
        """
        result = self.run(command, log_output=log_output)
        if not result.success:
            raise CommandError(command, result.returncode, result.output)
        return result.output
