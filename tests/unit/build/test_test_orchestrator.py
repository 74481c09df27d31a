"""Tests for per-test orchestration: stages, mocks, libraries and results."""

import dataclasses

import pytest

from utbuild.build.command_runner import CommandError
from utbuild.build.compiler import CompilerError
from utbuild.build.dependency_resolver import DependencyError
from utbuild.build.test_orchestrator import (
    STAGES,
    TestStage,
    UnitTestOrchestrator,
    build_run_command,
    classify_output,
    test_base_name as base_name_of,
    write_test_result,
)
from utbuild.config import ConfigError, SimulatorConfig

PASSING_OUTPUT = """test/test_crtp.c:12:testInit:PASS

-----------------------
1 Tests 0 Failures 0 Ignored
OK"""

FAILING_OUTPUT = """test/test_crtp.c:12:testInit:FAIL: Expected 1 Was 0

-----------------------
1 Tests 1 Failures 0 Ignored
FAIL"""


@pytest.fixture
def batch_config(config):
    return config.for_test_run(["PLATFORM_CF2"])


def write_test(project, name, body):
    path = project["test"] / f"{name}.c"
    path.write_text(body)
    return path.as_posix()


def is_mock_command(command):
    return command.startswith("ruby vendor/cmock")


class TestHelpers:
    """Module-level helpers."""

    def test_stage_order(self):
        assert STAGES[0] == TestStage.HEADER_DISCOVERY
        assert STAGES[-1] == TestStage.PERSIST
        assert len(STAGES) == 11

    def test_base_name(self):
        assert base_name_of("test/test_crtp.c") == "test_crtp"

    @pytest.mark.parametrize(
        "output, passed",
        [
            (PASSING_OUTPUT, True),
            (FAILING_OUTPUT, False),
            ("OK\nsome trailing noise", True),
            ("OKAY", False),
            ("", False),
        ],
    )
    def test_classify_output(self, output, passed):
        assert classify_output(output) is passed

    def test_write_test_result_replaces_stale_artifact(self, tmp_path):
        build_path = tmp_path.as_posix() + "/"
        write_test_result(build_path, "test_crtp", False, FAILING_OUTPUT)
        result = write_test_result(build_path, "test_crtp", True, PASSING_OUTPUT)

        assert result.name == "test_crtp.testpass"
        assert result.read_text() == PASSING_OUTPUT
        assert not (tmp_path / "test_crtp.testfail").exists()

    def test_run_command_without_simulator(self, config):
        assert build_run_command(config, "build/test_crtp.exe") == "build/test_crtp.exe"

    def test_run_command_with_simulator(self, config):
        simulator = SimulatorConfig(path="qemu-arm", pre_support=["-cpu", "cortex-m4"], post_support=["-s"])
        config = dataclasses.replace(config, simulator=simulator)
        command = build_run_command(config, "build/test_crtp.elf")
        assert command.split() == ["qemu-arm", "-cpu", "cortex-m4", "build/test_crtp.elf", "-s"]


class TestRunTest:
    """Full stage sequence with a recording runner."""

    def test_clean_run_writes_testpass(self, batch_config, project, recording_runner):
        recording_runner.responder = lambda command: (0, PASSING_OUTPUT)
        test_file = write_test(project, "test_crtp", '#include "unity.h"\n#include "crtp.h"\n')

        result = UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        assert result.passed
        assert result.name == "test_crtp"
        assert result.result_file == project["build"] / "test_crtp.testpass"
        assert result.result_file.read_text() == PASSING_OUTPUT

    def test_command_sequence(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_crtp", '#include "crtp.h"\n')
        build = project["build"].as_posix() + "/"

        UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)
        commands = recording_runner.commands

        # crtp.c, cmock.c, runner generation, runner, test, link, execute
        assert len(commands) == 7
        assert commands[0].endswith(f"-o{build}crtp.o")
        assert commands[1].endswith(f"-o{build}cmock.o")
        assert "generate_test_runner.rb" in commands[2]
        assert f"{test_file} {build}test_crtp_Runner.c" in commands[2]
        assert commands[3].endswith(f"-o{build}test_crtp_Runner.o")
        assert commands[4].endswith(f"-o{build}test_crtp.o")
        assert commands[5].startswith("gcc ")
        assert f"{build}crtp.o {build}cmock.o {build}test_crtp_Runner.o {build}test_crtp.o" in commands[5]
        assert commands[6] == f"{build}test_crtp.exe"

    def test_compiles_with_test_and_command_line_defines(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_crtp", "")
        UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        compile_commands = [c for c in recording_runner.commands if c.startswith("gcc -D")]
        assert compile_commands
        for command in compile_commands:
            assert "-DTEST " in command
            assert "-DPLATFORM_CF2 " in command

    def test_failing_assertion_writes_testfail_and_aborts(self, batch_config, project, recording_runner):
        exe = project["build"].as_posix() + "/test_crtp.exe"
        recording_runner.responder = lambda command: (1, FAILING_OUTPUT) if command == exe else (0, "")
        test_file = write_test(project, "test_crtp", "")

        with pytest.raises(CommandError) as excinfo:
            UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        assert excinfo.value.returncode == 1
        assert (project["build"] / "test_crtp.testfail").read_text() == FAILING_OUTPUT
        assert not (project["build"] / "test_crtp.testpass").exists()

    def test_failing_output_with_zero_exit_status(self, batch_config, project, recording_runner):
        recording_runner.responder = lambda command: (0, FAILING_OUTPUT)
        test_file = write_test(project, "test_crtp", "")

        result = UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        assert not result.passed
        assert result.result_file.suffix == ".testfail"

    def test_library_group_files_are_linked(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_fix", "// @BUILD_LIB fixedpoint\n")
        build = project["build"].as_posix() + "/"

        UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        lib_compiles = [c for c in recording_runner.commands if "-Wno-shadow" in c]
        assert [c.rsplit("/", 1)[-1] for c in lib_compiles] == ["fix_a.o", "fix_b.o"]
        link_command = next(c for c in recording_runner.commands if " -o " in c)
        assert f"{build}fix_a.o " in link_command
        assert f"{build}fix_b.o " in link_command

    def test_unknown_library_group(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_fix", "// @BUILD_LIB nosuchlib\n")
        with pytest.raises(ConfigError, match="nosuchlib"):
            UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

    def test_no_mock_headers_means_no_mock_generation(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_crtp", '#include "crtp.h"\n')
        orchestrator = UnitTestOrchestrator(batch_config, recording_runner)

        orchestrator.run_test(test_file)

        assert orchestrator._mock_generator is None
        assert not any(is_mock_command(c) for c in recording_runner.commands)

    def test_mock_generated_for_real_header(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_link", '#include "mock_radiolink.h"\n')

        UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        mock_commands = [c for c in recording_runner.commands if is_mock_command(c)]
        assert len(mock_commands) == 1
        assert mock_commands[0].endswith((project["src"] / "radiolink.h").as_posix())
        assert f"-o{batch_config.config_file}" in mock_commands[0]

    def test_generated_mock_source_is_compiled(self, batch_config, project, recording_runner):
        def responder(command):
            if is_mock_command(command):
                (project["mocks"] / "mock_radiolink.c").write_text("")
            return 0, "OK"

        recording_runner.responder = responder
        test_file = write_test(project, "test_link", '#include "mock_radiolink.h"\n')

        UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        mock_index = next(i for i, c in enumerate(recording_runner.commands) if is_mock_command(c))
        compile_index = next(i for i, c in enumerate(recording_runner.commands) if c.endswith("mock_radiolink.o"))
        assert mock_index < compile_index

    def test_missing_real_header_for_mock(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_x", '#include "mock_nosuch.h"\n')
        with pytest.raises(DependencyError):
            UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

    def test_suppressed_header_is_not_compiled(self, batch_config, project, recording_runner):
        test_file = write_test(project, "test_crtp", '#include "cfassert.h" // @NO_MODULE\n')
        UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)
        assert not any(c.endswith("cfassert.o") for c in recording_runner.commands)

    def test_prewritten_runner_is_used(self, batch_config, project, recording_runner):
        runner_dir = project["root"] / "runners"
        runner_dir.mkdir()
        compiler = dataclasses.replace(batch_config.compiler, runner_path=runner_dir.as_posix() + "/")
        config = dataclasses.replace(batch_config, compiler=compiler)
        test_file = write_test(project, "test_crtp", "")

        UnitTestOrchestrator(config, recording_runner).run_test(test_file)

        assert not any("generate_test_runner" in c for c in recording_runner.commands)
        assert any(f"{runner_dir.as_posix()}/test_crtp_Runner.c" in c for c in recording_runner.commands)

    def test_toolchain_failure_aborts_before_execution(self, batch_config, project, recording_runner):
        recording_runner.responder = lambda command: (1, "error") if "crtp.c" in command else (0, "OK")
        test_file = write_test(project, "test_crtp", '#include "crtp.h"\n')

        with pytest.raises(CompilerError):
            UnitTestOrchestrator(batch_config, recording_runner).run_test(test_file)

        assert len(recording_runner.commands) == 1
        assert not list(project["build"].glob("*.test*"))

    def test_run_tests_stops_at_first_failure(self, batch_config, project, recording_runner):
        exe_a = project["build"].as_posix() + "/test_a.exe"
        recording_runner.responder = lambda command: (1, "FAIL") if command == exe_a else (0, "OK")
        first = write_test(project, "test_a", "")
        second = write_test(project, "test_b", "")

        with pytest.raises(CommandError):
            UnitTestOrchestrator(batch_config, recording_runner).run_tests([first, second])

        assert not (project["build"] / "test_b.testpass").exists()

    def test_run_tests_returns_one_result_per_file(self, batch_config, project, recording_runner):
        files = [write_test(project, name, "") for name in ("test_a", "test_b")]
        results = UnitTestOrchestrator(batch_config, recording_runner).run_tests(files)
        assert [r.name for r in results] == ["test_a", "test_b"]
        assert all(r.passed for r in results)
