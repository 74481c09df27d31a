"""Pytest configuration and fixtures for utbuild tests.

Provides a throw-away project tree (sources, tests, mocks, build dir) with a
matching toolchain YAML file, and a command runner that records commands
instead of executing them.
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
import yaml

from utbuild import output
from utbuild.build.command_runner import CommandResult, CommandRunner
from utbuild.config import load_configuration


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.fixture(autouse=True)
def _restore_verbosity(monkeypatch):
    """Commands toggle the global verbose flag; undo it after each test."""
    monkeypatch.setattr(output, "_verbose", output._verbose)


class RecordingRunner(CommandRunner):
    """CommandRunner that records commands and returns scripted results.

    ``responder`` maps a command to (returncode, output); by default every
    command succeeds and prints "OK" so test executables classify as passed.
    """

    def __init__(self, responder: Optional[Callable[[str], tuple]] = None):
        super().__init__(log_commands=False)
        self.commands: List[str] = []
        self.responder = responder or (lambda command: (0, "OK"))

    def run(self, command: str, log_output: bool = True) -> CommandResult:
        self.commands.append(command)
        returncode, output = self.responder(command)
        return CommandResult(command=command, returncode=returncode, output=output)


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


def _dir(path: Path) -> str:
    return path.as_posix() + "/"


@pytest.fixture
def project(tmp_path: Path) -> Dict[str, Path]:
    """Create a small firmware project with one module, one mockable header and a library group."""
    root = tmp_path / "fw"
    dirs = {name: root / name for name in ("src", "test", "mocks", "lib", "build", "vendor")}
    for d in dirs.values():
        d.mkdir(parents=True)

    (dirs["src"] / "crtp.h").write_text("void crtpInit(void);\n")
    (dirs["src"] / "crtp.c").write_text('#include "crtp.h"\nvoid crtpInit(void) {}\n')
    (dirs["src"] / "radiolink.h").write_text("void radiolinkSend(int);\n")
    (dirs["src"] / "cfassert.h").write_text("#define ASSERT(e)\n")
    (dirs["src"] / "cfassert.c").write_text("void assertFail(void) {}\n")
    (dirs["vendor"] / "cmock.c").write_text("void CMock_Init(void) {}\n")
    (dirs["lib"] / "fix_a.c").write_text("int fa;\n")
    (dirs["lib"] / "fix_b.c").write_text("int fb;\n")

    dirs["root"] = root
    return dirs


@pytest.fixture
def config_data(project: Dict[str, Path]) -> dict:
    return {
        "compiler": {
            "path": "gcc",
            "build_path": _dir(project["build"]),
            "unit_tests_path": _dir(project["test"]),
            "source_path": _dir(project["src"]),
            "options": ["-c", "-Wall"],
            "includes": {
                "prefix": "-I",
                "items": [_dir(project["src"]), _dir(project["mocks"]), _dir(project["vendor"])],
            },
            "defines": {"prefix": "-D", "items": ["UNIT_TEST_MODE"]},
            "object_files": {
                "prefix": "-o",
                "extension": ".o",
                "destination": _dir(project["build"]),
            },
            "libs": {
                "fixedpoint": {
                    "files": [
                        (project["lib"] / "fix_a.c").as_posix(),
                        (project["lib"] / "fix_b.c").as_posix(),
                    ],
                    "extra_options": ["-Wno-shadow"],
                }
            },
        },
        "linker": {
            "path": "gcc",
            "options": ["-lm"],
            "object_files": {"path": _dir(project["build"])},
            "bin_files": {
                "prefix": "-o",
                "extension": ".exe",
                "destination": _dir(project["build"]),
            },
        },
    }


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[dict], Path]:
    def _write(data: dict, name: str = "target_gcc_32.yml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


@pytest.fixture
def config_file(config_data: dict, write_config: Callable[[dict], Path]) -> Path:
    return write_config(config_data)


@pytest.fixture
def config(config_file: Path):
    return load_configuration(config_file)
