"""
Entry points for running a batch of unit tests.

Arguments use the KEY=VALUE convention of Rake task invocations, so
existing invocations keep working:

    utbuild test DEFINES="-DPLATFORM_CF2 -DDEBUG" FILES="test/test_crtp.c" UNIT_TEST_STYLE=min
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .build.command_runner import CommandRunner
from .build.test_orchestrator import TestResult, UnitTestOrchestrator
from .config import load_configuration
from .discovery import exclude_test_files, get_unit_test_files
from .output import log_error, log_success

logger = logging.getLogger(__name__)

DEFINES_KEY = "DEFINES="
FILES_KEY = "FILES="
STYLE_KEY = "UNIT_TEST_STYLE="
MINIMAL_STYLE = "min"


@dataclass
class RunArguments:
    """Defines, explicit files and output style of one batch."""

    defines: List[str] = field(default_factory=list)
    test_files: List[str] = field(default_factory=list)
    output_style: List[str] = field(default_factory=list)

    @property
    def minimal(self) -> bool:
        return is_minimal_style(self.output_style)


def _find_value(args: Sequence[str], key: str) -> Optional[str]:
    for arg in args:
        if arg.startswith(key):
            return arg[len(key):]
    return None


def extract_defines(flags: str) -> List[str]:
    """'-DFOO -DBAR=1 -O2' -> ['FOO', 'BAR=1']"""
    return [part[2:] for part in flags.split() if part.startswith("-D")]


def define_names(defines: Sequence[str]) -> List[str]:
    """Strip values: ['BAR=1'] -> ['BAR']"""
    return [define.split("=", 1)[0] for define in defines]


def find_defines_in_args(args: Sequence[str]) -> List[str]:
    value = _find_value(args, DEFINES_KEY)
    return [] if value is None else extract_defines(value)


def find_test_files_in_args(args: Sequence[str]) -> List[str]:
    value = _find_value(args, FILES_KEY)
    return [] if value is None else value.split()


def find_output_style_in_args(args: Sequence[str]) -> List[str]:
    value = _find_value(args, STYLE_KEY)
    return [] if value is None else value.split()


def is_minimal_style(output_style: Sequence[str]) -> bool:
    return MINIMAL_STYLE in output_style


def parse_run_arguments(args: Sequence[str]) -> RunArguments:
    return RunArguments(
        defines=find_defines_in_args(args),
        test_files=find_test_files_in_args(args),
        output_style=find_output_style_in_args(args),
    )


def run_tests(
    test_files: Sequence[str],
    defines: Sequence[str],
    output_style: Sequence[str],
    config_file: Optional[Union[str, Path]] = None,
) -> List[TestResult]:
    """
    Build and run the given test files.

    The configuration is loaded fresh for every batch and extended with the
    TEST define, the command line defines and, in minimal style, the
    warning suppression option.

    Raises:
        ConfigError: If the configuration is invalid
        CommandError: If any command of any test fails (the batch stops)
    """
    minimal = is_minimal_style(output_style)
    config = load_configuration(config_file).for_test_run(defines, minimal=minimal)
    logger.info(f"Output style {list(output_style)}, minimal={minimal}")

    orchestrator = UnitTestOrchestrator(config, CommandRunner(log_commands=not minimal))
    results = orchestrator.run_tests(test_files)

    failed = sum(1 for r in results if not r.passed)
    message = f"Ran {len(results)} test file(s): {len(results) - failed} passed, {failed} failed"
    if failed:
        log_error(message)
    else:
        log_success(message)
    return results


def parse_and_run_tests(
    args: Sequence[str],
    config_file: Optional[Union[str, Path]] = None,
) -> List[TestResult]:
    """
    Run the batch described by KEY=VALUE arguments.

    Without FILES=, every test file under the unit test path is run except
    those excluded by an unmet @IGNORE_IF_NOT condition.
    """
    run_args = parse_run_arguments(args)
    test_files = run_args.test_files
    if not test_files:
        config = load_configuration(config_file)
        test_files = exclude_test_files(get_unit_test_files(config), define_names(run_args.defines))
    return run_tests(test_files, run_args.defines, run_args.output_style, config_file)
