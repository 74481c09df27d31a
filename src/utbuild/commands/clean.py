"""Clean command: removes generated files from the build path."""

import glob
import os
from typing import List

from ..config import ToolchainConfig
from ..output import log, log_detail


def clean_build_path(config: ToolchainConfig) -> List[str]:
    """Delete every ``<build_path>*.*`` file.

    Returns:
        Paths that were removed
    """
    removed = []
    for path in sorted(glob.glob(f"{config.compiler.build_path}*.*".replace("\\", "/"))):
        if os.path.isfile(path):
            os.remove(path)
            removed.append(path)
            log_detail(f"Removed {path}", verbose_only=True)
    log(f"Cleaned {len(removed)} file(s) from {config.compiler.build_path}")
    return removed
