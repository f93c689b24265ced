"""Package name matching with glob expressions.

Config options such as ``linked`` and ``ignore`` accept either literal
package names or glob expressions, so authors can write ``"@scope/*"``
instead of listing every package. Package names may contain a ``/`` (npm
scopes), which is treated as a separator:

- ``*`` matches any run of characters except ``/``
- ``?`` matches one character except ``/``
- ``**`` matches any run of characters, ``/`` included
- ``[abc]``, ``[a-z]``, ``[!a]`` are character classes
- ``{a,b}`` matches either alternative (alternatives may nest)
- ``\\`` escapes the next character

Examples:
    is_match("@scope/pkg", "@scope/*") → True
    is_match("@scope/pkg", "*") → False
    is_match("@scope/pkg", "**") → True
    is_match("pkg-a", "pkg-{a,b}") → True
"""

from __future__ import annotations

import functools
import re
from collections.abc import Sequence

_NEVER = re.compile(r"(?!)")


def _find_class_end(pattern: str, start: int) -> int:
    """Return the index of the ``]`` closing the class opened at ``start``."""
    i = start + 1
    if i < len(pattern) and pattern[i] in "!^":
        i += 1
    # A "]" right after the opening bracket is a literal member.
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern) and pattern[i] != "]":
        i += 1
    return i if i < len(pattern) else -1


def _split_braces(pattern: str, start: int) -> tuple[list[str], int]:
    """Split the brace group opened at ``start`` into its alternatives.

    Returns the alternatives and the index of the closing ``}``, or an empty
    list and -1 when the group is unterminated or has no comma.
    """
    depth = 0
    alternatives: list[str] = []
    current = start + 1
    i = start + 1
    while i < len(pattern):
        c = pattern[i]
        if c == "\\":
            i += 2
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            if depth == 0:
                alternatives.append(pattern[current:i])
                return (alternatives, i) if len(alternatives) > 1 else ([], -1)
            depth -= 1
        elif c == "," and depth == 0:
            alternatives.append(pattern[current:i])
            current = i + 1
        i += 1
    return [], -1


def _translate(pattern: str) -> str:
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                i += 2
                if pattern.startswith("/", i):
                    # "**/" may also match zero path segments.
                    parts.append("(?:.*/)?")
                    i += 1
                else:
                    parts.append(".*")
                continue
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "[":
            end = _find_class_end(pattern, i)
            if end == -1:
                parts.append(re.escape(c))
            else:
                body = pattern[i + 1 : end].replace("\\", "\\\\")
                if body[0] in "!^":
                    body = "^" + body[1:]
                parts.append(f"[{body}]")
                i = end
        elif c == "{":
            alternatives, end = _split_braces(pattern, i)
            if end == -1:
                parts.append(re.escape(c))
            else:
                parts.append("(?:" + "|".join(_translate(a) for a in alternatives) + ")")
                i = end
        elif c == "\\" and i + 1 < n:
            i += 1
            parts.append(re.escape(pattern[i]))
        else:
            parts.append(re.escape(c))
        i += 1
    return "".join(parts)


@functools.lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob expression into an anchored regular expression.

    A pattern that does not translate to a valid regex (e.g. the class in
    ``pkg-[z-a]``) matches nothing.
    """
    try:
        return re.compile(rf"(?s:{_translate(pattern)})\Z")
    except re.error:
        return _NEVER


def is_match(name: str, pattern: str) -> bool:
    """Return True if ``name`` matches the glob ``pattern``."""
    return compile_glob(pattern).match(name) is not None


def normalize_package_names(
    patterns: Sequence[str], package_names: Sequence[str]
) -> tuple[list[str], list[str]]:
    """Resolve literal names and glob expressions against known packages.

    Args:
        patterns: Literal package names or glob expressions.
        package_names: Names of all packages in the workspace.

    Returns:
        Tuple of (matched package names in workspace order, patterns that
        matched no package in their original order). The second list is
        only used to report likely typos.
    """
    matched = [
        name
        for name in dict.fromkeys(package_names)
        if any(is_match(name, pattern) for pattern in patterns)
    ]
    unmatched = [
        pattern
        for pattern in patterns
        if not any(is_match(name, pattern) for name in package_names)
    ]
    return matched, unmatched
