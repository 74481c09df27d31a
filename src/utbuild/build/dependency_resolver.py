"""Maps header names to the sources that must be compiled with a test.

Include directories are plain strings used as prefixes, exactly as they
appear in the configuration (e.g. "src/modules/src/"), so a lookup is
``dir + name``.
"""

import logging
import os
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

C_EXTENSION = ".c"
MOCK_MARKER = "mock_"


class DependencyError(Exception):
    """Raised when a dependency that must exist cannot be located."""

    pass


def find_file(name: str, paths: Sequence[str]) -> Optional[str]:
    """Return ``dir + name`` for the first directory containing the file, else None."""
    for directory in paths:
        candidate = f"{directory}{name}"
        if os.path.exists(candidate):
            return candidate
    return None


def source_name_for(header: str) -> str:
    """Swap the header extension for the C source extension (foo.h -> foo.c)."""
    root, _ = os.path.splitext(header)
    return root + C_EXTENSION


def find_source_file(header: str, paths: Sequence[str]) -> Optional[str]:
    """Find the companion source of a header.

    Returns None when the header has no companion source, which only means
    there is nothing to compile for it.
    """
    return find_file(source_name_for(header), paths)


def is_mock_header(header: str) -> bool:
    return MOCK_MARKER in header


def real_header_name(mock_header: str) -> str:
    """mock_radiolink.h -> radiolink.h"""
    return mock_header.replace(MOCK_MARKER, "")


class DependencyResolver:
    """Resolves headers against an ordered list of include directories."""

    def __init__(self, include_dirs: Sequence[str]):
        self.include_dirs = list(include_dirs)

    def source_for(self, header: str) -> Optional[str]:
        source = find_source_file(header, self.include_dirs)
        if source is None:
            logger.debug(f"No companion source for {header}")
        return source

    def header_to_mock(self, mock_header: str) -> str:
        """Locate the real header a mock header stands in for.

        Raises:
            DependencyError: If the real header is not in any include directory
        """
        name = real_header_name(mock_header)
        header_file = find_file(name, self.include_dirs)
        if header_file is None:
            raise DependencyError(
                f"Cannot mock {mock_header}: {name} not found in include paths {self.include_dirs}"
            )
        return header_file
