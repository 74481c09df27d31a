"""Wrappers around the external mock and test runner generators.

Both generators are separate tools (CMock and Unity's runner generator by
default) driven through shell templates from the configuration. Only the
named placeholders are filled in; any other braces (${CMOCK_HOME}, {a,b})
reach the shell untouched:

    mock_generator:
      command: ruby vendor/cmock/lib/cmock.rb -o{config} {header}
    runner_generator:
      command: ruby vendor/unity/auto/generate_test_runner.rb {config} {test} {runner}
"""

import logging
from pathlib import Path

from ..config import ToolchainConfig
from .command_runner import CommandRunner

logger = logging.getLogger(__name__)


def fill_template(template: str, **values: object) -> str:
    """Replace each '{name}' placeholder with its value."""
    for name, value in values.items():
        template = template.replace("{" + name + "}", str(value))
    return template


class MockGenerator:
    """Generates mock_<name>.c/.h from a real header."""

    def __init__(self, config: ToolchainConfig, runner: CommandRunner):
        self.config = config
        self.runner = runner

    def generate(self, header_file: str) -> None:
        command = fill_template(
            self.config.generators.mock_command,
            config=self.config.config_file,
            header=header_file,
        )
        logger.debug(f"Generating mock for {header_file}")
        self.runner.execute(command)


class RunnerGenerator:
    """Generates the main() runner for a test file."""

    def __init__(self, config: ToolchainConfig, runner: CommandRunner):
        self.config = config
        self.runner = runner

    def generate(self, test_file: str, runner_file: str) -> None:
        Path(runner_file).parent.mkdir(parents=True, exist_ok=True)
        command = fill_template(
            self.config.generators.runner_command,
            config=self.config.config_file,
            test=test_file,
            runner=runner_file,
        )
        logger.debug(f"Generating runner {runner_file} for {test_file}")
        self.runner.execute(command)
