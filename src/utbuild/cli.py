"""
Command-line interface for utbuild.

This module provides the `utbuild` CLI tool for building and running
embedded C unit tests on the host or under a simulator.
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import List, Optional

from utbuild import __version__
from utbuild.batch import parse_and_run_tests
from utbuild.build.application import build_application
from utbuild.build.command_runner import CommandError
from utbuild.build.compiler import CompilerError
from utbuild.build.dependency_resolver import DependencyError
from utbuild.build.linker import LinkerError
from utbuild.commands import clean_build_path
from utbuild.config import ConfigError, load_configuration
from utbuild.output import set_verbose
from utbuild.summary import TestFailuresError, report_summary


@dataclass
class TestArgs:
    """Arguments for the test command."""

    __test__ = False

    config: Optional[str] = None
    assignments: List[str] = field(default_factory=list)
    summary: bool = True
    verbose: bool = False


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    main: str
    config: Optional[str] = None
    verbose: bool = False


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    config: Optional[str] = None
    verbose: bool = False


@dataclass
class SummaryArgs:
    """Arguments for the summary command."""

    config: Optional[str] = None
    verbose: bool = False


def _fail(title: str, detail: str) -> None:
    print()
    print(f"\033[1;31m✗ {title}\033[0m")
    print()
    print(detail)


def _handle_error(e: Exception, verbose: bool) -> int:
    """Print a failure banner for a known error and return the exit code."""
    if isinstance(e, ConfigError):
        _fail("Configuration error", str(e))
    elif isinstance(e, (CompilerError, LinkerError, CommandError)):
        _fail("Command failed!", str(e))
    elif isinstance(e, DependencyError):
        _fail("Missing dependency", str(e))
    elif isinstance(e, TestFailuresError):
        _fail("Unit tests failed!", str(e))
    else:
        _fail("Unexpected error", f"{type(e).__name__}: {e}")

    if verbose:
        import traceback

        print()
        print("Traceback:")
        print(traceback.format_exc())
    return 1


def _run(func, verbose: bool) -> None:
    try:
        func()
    except KeyboardInterrupt:
        print()
        print("\033[1;33m✗ Interrupted\033[0m")
        sys.exit(130)  # Standard exit code for SIGINT
    except Exception as e:
        sys.exit(_handle_error(e, verbose))


def run_tests_command(args: TestArgs) -> None:
    """Build and run unit tests, then summarize the results.

    Examples:
        utbuild test                                   # All tests under unit_tests_path
        utbuild test FILES="test/test_crtp.c"          # Specific tests
        utbuild test DEFINES="-DPLATFORM_CF2"          # Extra defines (also enable @IGNORE_IF_NOT)
        utbuild test UNIT_TEST_STYLE=min               # No command echo, no warnings
    """

    def _test() -> None:
        start_time = time.time()
        results = parse_and_run_tests(args.assignments, config_file=args.config)
        if args.summary:
            report_summary(load_configuration(args.config))
        print()
        print(f"\033[1;32m✓ {len(results)} test file(s) run\033[0m")
        print(f"Test time: {time.time() - start_time:.2f}s")

    _run(_test, args.verbose)


def build_command(args: BuildArgs) -> None:
    """Build the application from <source_path><main>.c.

    Examples:
        utbuild build main
    """

    def _build() -> None:
        executable = build_application(args.main, load_configuration(args.config))
        print()
        print("\033[1;32m✓ Build successful!\033[0m")
        print(f"Executable: {executable}")

    _run(_build, args.verbose)


def clean_command(args: CleanArgs) -> None:
    """Remove generated files from the build path."""
    _run(lambda: clean_build_path(load_configuration(args.config)), args.verbose)


def summary_command(args: SummaryArgs) -> None:
    """Summarize existing result files without building anything."""
    _run(lambda: report_summary(load_configuration(args.config)), args.verbose)


def _assignments_from_options(parsed_args: argparse.Namespace) -> List[str]:
    assignments = list(parsed_args.assignments)
    if parsed_args.defines:
        assignments.append(f"DEFINES={parsed_args.defines}")
    if parsed_args.files:
        assignments.append("FILES=" + " ".join(parsed_args.files))
    if parsed_args.style:
        assignments.append(f"UNIT_TEST_STYLE={parsed_args.style}")
    return assignments


def create_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c",
        "--config",
        default=None,
        help="Toolchain configuration (default: $UTBUILD_CONFIG or target_gcc_32.yml)",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parser = argparse.ArgumentParser(
        prog="utbuild",
        description="utbuild - Unit test build system for embedded C",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"utbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    test_parser = subparsers.add_parser(
        "test",
        parents=[common],
        help="Build and run unit tests",
    )
    test_parser.add_argument(
        "assignments",
        nargs="*",
        help="DEFINES=..., FILES=..., UNIT_TEST_STYLE=... assignments",
    )
    test_parser.add_argument(
        "--defines",
        default=None,
        help='Compiler defines as one string (e.g. --defines="-DPLATFORM_CF2 -DDEBUG")',
    )
    test_parser.add_argument(
        "-f",
        "--files",
        nargs="+",
        default=None,
        help="Test files to run (default: all test_*.c under unit_tests_path)",
    )
    test_parser.add_argument(
        "-s",
        "--style",
        default=None,
        help="Output style ('min' hides commands and compiler warnings)",
    )
    test_parser.add_argument(
        "--no-summary",
        action="store_true",
        help="Do not summarize result files after the run",
    )

    build_parser = subparsers.add_parser(
        "build",
        parents=[common],
        help="Build the application",
    )
    build_parser.add_argument(
        "main",
        help="Main source file name without extension (relative to source_path)",
    )

    subparsers.add_parser(
        "clean",
        parents=[common],
        help="Remove generated files from the build path",
    )
    subparsers.add_parser(
        "summary",
        parents=[common],
        help="Summarize existing test results",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """utbuild - Unit test build system for embedded C."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    set_verbose(parsed_args.verbose)

    if parsed_args.command == "test":
        run_tests_command(
            TestArgs(
                config=parsed_args.config,
                assignments=_assignments_from_options(parsed_args),
                summary=not parsed_args.no_summary,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "build":
        build_command(BuildArgs(main=parsed_args.main, config=parsed_args.config, verbose=parsed_args.verbose))
    elif parsed_args.command == "clean":
        clean_command(CleanArgs(config=parsed_args.config, verbose=parsed_args.verbose))
    elif parsed_args.command == "summary":
        summary_command(SummaryArgs(config=parsed_args.config, verbose=parsed_args.verbose))


if __name__ == "__main__":
    main()
