"""Annotation scanner for unit test sources.

Test files describe what they need to be built with, using include
directives and comment markers:

    #include "crtp.h"                  -> compile crtp.c alongside the test
    #include "mock_radiolink.h"        -> generate a mock of radiolink.h
    #include "cfassert.h" // @NO_MODULE -> header only, do not look for cfassert.c
    // @MODULE "num.c"                 -> compile num.c even though num.h is not included
    // @BUILD_LIB fixedpoint           -> compile the 'fixedpoint' library group
    // @IGNORE_IF_NOT PLATFORM_CF2     -> skip the file unless PLATFORM_CF2 is defined

Each line is tokenized into at most one Annotation record; interpretation of
the records is left to ScanResult and the orchestrator.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

INCLUDE_PATTERN = re.compile(r'^\s*#include\s+"\s*(.+\.[hH])\s*"')
MODULE_PATTERN = re.compile(r'^//\s*@MODULE\s+"\s*(.+\.)[cC]\s*"')

NO_MODULE_MARKER = "@NO_MODULE"
BUILD_LIB_MARKER = "@BUILD_LIB"
IGNORE_IF_NOT_MARKER = "@IGNORE_IF_NOT"


class AnnotationKind(Enum):
    """Kind of build-relevant annotation found on a source line."""

    INCLUDE = "include"
    MODULE = "module"
    BUILD_LIB = "build_lib"
    IGNORE_IF_NOT = "ignore_if_not"


@dataclass(frozen=True)
class Annotation:
    """A single annotation record: kind, payload and 1-based line number."""

    kind: AnnotationKind
    value: str
    line_number: int


def _marker_argument(line: str, marker: str) -> Optional[str]:
    # The marker must be a whitespace-separated token of its own and be
    # followed by one; anything else is a malformed line and is ignored.
    if marker not in line:
        return None
    tokens = line.split()
    try:
        index = tokens.index(marker)
    except ValueError:
        return None
    if len(tokens) < index + 2:
        return None
    return tokens[index + 1]


def tokenize_line(line: str, line_number: int = 0) -> Optional[Annotation]:
    """Recognize the annotation on one line, if any.

    Include directives carrying @NO_MODULE produce no record. The
    suppression marker applies to include lines only.
    """
    match = INCLUDE_PATTERN.match(line)
    if match:
        if NO_MODULE_MARKER in line:
            return None
        return Annotation(AnnotationKind.INCLUDE, match.group(1), line_number)

    match = MODULE_PATTERN.match(line)
    if match:
        # A module reference implies the same-named header
        return Annotation(AnnotationKind.MODULE, match.group(1) + "h", line_number)

    lib = _marker_argument(line, BUILD_LIB_MARKER)
    if lib is not None:
        return Annotation(AnnotationKind.BUILD_LIB, lib, line_number)

    condition = _marker_argument(line, IGNORE_IF_NOT_MARKER)
    if condition is not None:
        return Annotation(AnnotationKind.IGNORE_IF_NOT, condition, line_number)

    return None


def tokenize(lines: Iterable[str]) -> Iterator[Annotation]:
    for line_number, line in enumerate(lines, start=1):
        annotation = tokenize_line(line, line_number)
        if annotation is not None:
            yield annotation


@dataclass
class ScanResult:
    """Annotations found in one source file."""

    path: Optional[Path] = None
    annotations: List[Annotation] = field(default_factory=list)

    def _values(self, *kinds: AnnotationKind) -> List[str]:
        return [a.value for a in self.annotations if a.kind in kinds]

    @property
    def headers(self) -> List[str]:
        """Included headers plus headers implied by @MODULE, in file order."""
        return self._values(AnnotationKind.INCLUDE, AnnotationKind.MODULE)

    @property
    def libraries(self) -> List[str]:
        return self._values(AnnotationKind.BUILD_LIB)

    @property
    def ignore_conditions(self) -> List[str]:
        return self._values(AnnotationKind.IGNORE_IF_NOT)

    def is_excluded(self, defines: Iterable[str]) -> bool:
        """True if any @IGNORE_IF_NOT condition names a define that is not active.

        Only define names are compared; -DFOO=0 still satisfies FOO.
        """
        active = set(defines)
        return any(condition not in active for condition in self.ignore_conditions)


class SourceScanner:
    """Scans source files for build annotations."""

    def scan_text(self, text: str, path: Optional[Path] = None) -> ScanResult:
        return ScanResult(path=path, annotations=list(tokenize(text.splitlines())))

    def scan(self, path: Union[str, Path]) -> ScanResult:
        """Scan a source file.

        Raises:
            OSError: If the file cannot be read
        """
        path = Path(path)
        text = path.read_text(encoding="utf-8", errors="replace")
        return self.scan_text(text, path)


def extract_headers(path: Union[str, Path]) -> List[str]:
    return SourceScanner().scan(path).headers


def read_lib_annotations(path: Union[str, Path]) -> List[str]:
    return SourceScanner().scan(path).libraries
