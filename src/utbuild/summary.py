"""Summary of unit test result files.

Result files hold the raw output of a Unity test executable, e.g.

    test/test_crtp.c:41:testSendPacket:PASS
    test/test_crtp.c:57:testQueueFull:FAIL: Expected 1 Was 0
    test/test_crtp.c:63:testPortFilter:IGNORE

    -----------------------
    3 Tests 1 Failures 1 Ignored
    FAIL

The summary counts per-test lines across every ``<build_path>*.test*``
file. A ``.testfail`` file without any parseable FAIL line (a crash, or a
non-Unity executable) still counts as one failure.
"""

import glob
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from .config import ToolchainConfig

logger = logging.getLogger(__name__)

RESULT_LINE = re.compile(r"^(?P<file>.+?):(?P<line>\d+):(?P<test>[^:]+):(?P<status>PASS|FAIL|IGNORE)(?::\s*(?P<message>.*))?$")
FOOTER_LINE = re.compile(r"(\d+)\s+Tests\s+(\d+)\s+Failures\s+(\d+)\s+Ignored")


class TestFailuresError(Exception):
    """Raised after a batch when at least one test failed."""

    __test__ = False

    def __init__(self, failures: int, total: int):
        self.failures = failures
        self.total = total
        super().__init__(f"There were failures: {failures} of {total} test(s) failed")


@dataclass(frozen=True)
class TestCaseResult:
    """One PASS/FAIL/IGNORE line from a result file."""

    __test__ = False

    file: str
    line: int
    test: str
    status: str
    message: str = ""


@dataclass
class ResultFileSummary:
    """Parsed content of one result file."""

    path: Path
    cases: List[TestCaseResult] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def marked_failed(self) -> bool:
        return self.path.suffix == ".testfail"

    @property
    def tests(self) -> int:
        return max(len(self.cases), 1 if self.marked_failed else 0)

    @property
    def failures(self) -> int:
        failed = sum(1 for case in self.cases if case.status == "FAIL")
        if failed == 0 and self.marked_failed:
            return 1
        return failed

    @property
    def ignored(self) -> int:
        return sum(1 for case in self.cases if case.status == "IGNORE")


def parse_result_text(text: str) -> List[TestCaseResult]:
    cases = []
    for line in text.splitlines():
        match = RESULT_LINE.match(line.strip())
        if match:
            cases.append(
                TestCaseResult(
                    file=match.group("file"),
                    line=int(match.group("line")),
                    test=match.group("test"),
                    status=match.group("status"),
                    message=match.group("message") or "",
                )
            )
    return cases


def parse_result_file(path: Path) -> ResultFileSummary:
    text = path.read_text(encoding="utf-8", errors="replace")
    cases = parse_result_text(text)
    if not cases and FOOTER_LINE.search(text) is None:
        logger.debug(f"{path}: no Unity output found")
    return ResultFileSummary(path=path, cases=cases)


@dataclass
class TestSummary:
    """Aggregate over all result files of a build path."""

    __test__ = False

    files: List[ResultFileSummary] = field(default_factory=list)

    @property
    def tests(self) -> int:
        return sum(f.tests for f in self.files)

    @property
    def failures(self) -> int:
        return sum(f.failures for f in self.files)

    @property
    def ignored(self) -> int:
        return sum(f.ignored for f in self.files)

    @classmethod
    def from_files(cls, paths: Iterable[Path]) -> "TestSummary":
        return cls(files=[parse_result_file(Path(p)) for p in sorted(paths)])

    def render(self, console: Console) -> None:
        table = Table(title="Unit Test Summary")
        table.add_column("Test")
        table.add_column("Tests", justify="right")
        table.add_column("Failures", justify="right")
        table.add_column("Ignored", justify="right")
        table.add_column("Result")
        for f in self.files:
            result = "[red]FAIL[/red]" if f.failures else "[green]PASS[/green]"
            table.add_row(f.name, str(f.tests), str(f.failures), str(f.ignored), result)
        console.print(table)

        for f in self.files:
            for case in f.cases:
                if case.status == "FAIL":
                    console.print(f"[red]{case.file}:{case.line}:{case.test}[/red] {case.message}")

        style = "bold red" if self.failures else "bold green"
        console.print(f"{self.tests} Tests {self.failures} Failures {self.ignored} Ignored", style=style)


def result_files(build_path: str) -> List[Path]:
    pattern = f"{build_path}*.test*".replace("\\", "/")
    return [Path(p) for p in sorted(glob.glob(pattern))]


def report_summary(config: ToolchainConfig, console: Optional[Console] = None) -> TestSummary:
    """
    Summarize every result file under the build path.

    Raises:
        TestFailuresError: If any test failed
    """
    if console is None:
        console = Console(no_color=not config.colour, highlight=False)
    summary = TestSummary.from_files(result_files(config.compiler.build_path))
    summary.render(console)
    if summary.failures > 0:
        raise TestFailuresError(summary.failures, summary.tests)
    return summary
