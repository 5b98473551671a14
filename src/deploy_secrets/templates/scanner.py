"""Placeholder token scanner for ``${NAME}`` markers in configuration templates."""

import re
from typing import Callable, List

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}\s]+)\}")


def scan_placeholders(content: str) -> List[str]:
    """Distinct placeholder names in order of first occurrence."""
    seen = {}
    for match in PLACEHOLDER_PATTERN.finditer(content):
        seen.setdefault(match.group(1), None)
    return list(seen)


def substitute(content: str, lookup: Callable[[str], object]) -> str:
    """
    Replace every ``${NAME}`` whose ``lookup(NAME)`` is not None.

    Single pass: text inserted for one token is never scanned again, so a
    secret value containing ``${...}`` is written verbatim.
    """
    def _replace(match):
        value = lookup(match.group(1))
        return match.group(0) if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, content)
