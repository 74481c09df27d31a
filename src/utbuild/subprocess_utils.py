"""Subprocess utilities for platform-safe toolchain execution.

Toolchain commands are composed as single shell strings (the configuration
supplies flag prefixes and quoting), so everything here runs through the
shell and merges stderr into stdout.
"""

import subprocess
import sys
from typing import Any


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_run(command: str, **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute a shell command string with platform-specific flags.

    Automatically applies:
    - CREATE_NO_WINDOW on Windows (prevents console window)
    - stdin=DEVNULL (the unit under test must never block on input)
    - shell=True, stdout=PIPE, stderr=STDOUT, text mode

    Args:
        command: Complete command line
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess whose ``stdout`` holds the combined output

    Note:
        If 'creationflags' is explicitly provided in kwargs,
        it will be OR'd with platform defaults to preserve custom flags.
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    kwargs.setdefault("stdin", subprocess.DEVNULL)
    kwargs.setdefault("stdout", subprocess.PIPE)
    kwargs.setdefault("stderr", subprocess.STDOUT)
    kwargs.setdefault("text", True)
    kwargs.setdefault("errors", "replace")

    return subprocess.run(command, shell=True, **kwargs)
