"""Discovery of unit test files and filtering by @IGNORE_IF_NOT."""

import glob
from typing import Iterable, List

from .build.annotation_scanner import SourceScanner
from .build.dependency_resolver import C_EXTENSION
from .config import ConfigError, ToolchainConfig
from .output import log_warning

TEST_FILE_PREFIX = "test_"


def get_unit_test_files(config: ToolchainConfig) -> List[str]:
    """All ``test_*.c`` files under the configured unit test path, sorted.

    Raises:
        ConfigError: If compiler.unit_tests_path is not configured
    """
    unit_tests_path = config.compiler.unit_tests_path
    if unit_tests_path is None:
        raise ConfigError("Missing required field 'compiler.unit_tests_path'")
    pattern = f"{unit_tests_path}{TEST_FILE_PREFIX}*{C_EXTENSION}".replace("\\", "/")
    return sorted(glob.glob(pattern))


def exclude_test_files(files: Iterable[str], defines: Iterable[str]) -> List[str]:
    """Drop files whose @IGNORE_IF_NOT conditions are not all among the defines."""
    scanner = SourceScanner()
    defines = list(defines)
    selected = []
    for test_file in files:
        if scanner.scan(test_file).is_excluded(defines):
            log_warning(f"Skipping {test_file}: @IGNORE_IF_NOT condition not met")
            continue
        selected.append(test_file)
    return selected
