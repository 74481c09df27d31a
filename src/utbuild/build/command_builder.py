"""Flag composition for toolchain command strings.

Commands are assembled as shell strings because the configuration carries
toolchain-specific prefixes ("-I", "--include=", "-o") that are glued
directly to their values.
"""

import re
from typing import Any, Iterable, Optional

_WHITESPACE = re.compile(r"\s")


def quote_arg(value: Any) -> str:
    """Quote one configuration value for the shell.

    - a list is joined and quoted as one argument
    - a value starting with '-' is a flag and is passed verbatim
    - a value containing whitespace is quoted
    """
    if isinstance(value, (list, tuple)):
        return '"' + "".join(str(part) for part in value) + '"'
    text = str(value)
    if text.startswith("-"):
        return text
    if _WHITESPACE.search(text):
        return f'"{text}"'
    return text


def squash(prefix: str, items: Optional[Iterable[Any]]) -> str:
    """Render ``" <prefix><item>"`` for each item."""
    if not items:
        return ""
    return "".join(f" {prefix}{quote_arg(item)}" for item in items)


def normalize_includes(includes: str) -> str:
    """Undo escaping that some toolchains (IAR) reject.

    Escaped spaces and quotes are unescaped and a trailing backslash is
    removed.
    """
    includes = includes.replace("\\ ", " ").replace('\\"', '"')
    return re.sub(r"\\$", "", includes, flags=re.MULTILINE)
