"""npm-style semver range parsing and classification.

Only as much of the npm range grammar is modelled as the rewriter needs:
enough to reject malformed ranges, to tell whether a range matches every
version, and to find the operator "shape" of a range so it can be
regenerated around a new version.

Supported expressions:
- exact versions ("1.2.3", "=1.2.3", "v1.2.3")
- caret and tilde ranges ("^1.2.3", "~1.2.3", "~>1.2")
- comparators (">=1.0.0", "<2", "> 1.2")
- x-ranges ("*", "x", "1.x", "1.2.*", "")
- hyphen ranges ("1.0.0 - 2.0.0")
- comparator sets joined by spaces and alternatives joined by "||"
"""

from __future__ import annotations

import re

import semver
from pydantic import BaseModel, ConfigDict

from .errors import InvalidRangeError

_XR = r"(?:[xX*]|0|[1-9]\d*)"
_PRE = r"(?:-?[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)"
_BUILD = r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)"
_PARTIAL = rf"v?(?P<major>{_XR})(?:\.(?P<minor>{_XR})(?:\.(?P<patch>{_XR})(?P<pre>{_PRE})?{_BUILD}?)?)?"

_COMPARATOR_RE = re.compile(rf"(?P<op>\^|~>?|[<>]=?|=)?{_PARTIAL}")
_HYPHEN_RE = re.compile(r"(?P<low>\S+)\s+-\s+(?P<high>\S+)")
# npm tolerates whitespace between an operator and its version ("> 1.2").
_OPERATOR_GAP_RE = re.compile(r"(\^|~>?|[<>]=?|=)\s+")

_ANY_OPERATORS = frozenset({"", "=", "^", "~", "~>", ">=", "<="})
_X = frozenset({"x", "X", "*"})

# Leading operators that define a range's shape, longest first.
_OPERATOR_PREFIXES = (">=", "<=", "~>", "^", "~", ">", "<")
_MAJOR_ONLY_RE = re.compile(r"v?(?:0|[1-9]\d*)(?:\.[xX*](?:\.[xX*])?)?")
_MAJOR_MINOR_RE = re.compile(r"v?(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)(?:\.[xX*])?")


class Comparator(BaseModel):
    """One operator + partial version, e.g. ``>=1.2`` or ``^1.x``."""

    model_config = ConfigDict(frozen=True)

    operator: str
    major: str
    minor: str | None = None
    patch: str | None = None

    @property
    def is_any(self) -> bool:
        """True if this comparator is satisfied by every version."""
        if self.major in _X:
            return self.operator in _ANY_OPERATORS
        if self.operator == ">=":
            # ">=0.0.0" and its partial spellings normalize to "*".
            parts = (self.major, self.minor, self.patch)
            return all(p in (None, "0") or p in _X for p in parts)
        return False


class Range(BaseModel):
    """A parsed range: alternatives of comparator sets."""

    model_config = ConfigDict(frozen=True)

    raw: str
    sets: tuple[tuple[Comparator, ...], ...]

    @property
    def is_any(self) -> bool:
        """True if the range normalizes to the empty "match anything" range.

        That happens when any alternative consists only of comparators that
        match every version ("*", "x", "X", "", ">=0.0.0", ...).
        """
        return any(all(c.is_any for c in comparators) for comparators in self.sets)


def _parse_comparator(token: str, raw: str) -> Comparator:
    match = _COMPARATOR_RE.fullmatch(token)
    if not match:
        raise InvalidRangeError(raw)
    major, minor, patch = match.group("major", "minor", "patch")
    if patch is not None and patch not in _X and minor not in _X and major not in _X:
        version = token[match.start("major") :]
        version = version.split("+", 1)[0]
        pre = match.group("pre")
        if pre and not pre.startswith("-"):
            # npm accepts "1.2.3beta" as shorthand for "1.2.3-beta".
            version = f"{major}.{minor}.{patch}-{pre}"
        if not semver.Version.is_valid(version):
            raise InvalidRangeError(raw)
    return Comparator(
        operator=match.group("op") or "", major=major, minor=minor, patch=patch
    )


def _parse_set(text: str, raw: str) -> tuple[Comparator, ...]:
    text = text.strip()
    if not text:
        return (Comparator(operator="", major="*"),)

    hyphen = _HYPHEN_RE.fullmatch(text)
    if hyphen:
        low = _parse_comparator(hyphen.group("low"), raw)
        high = _parse_comparator(hyphen.group("high"), raw)
        if low.operator or high.operator:
            raise InvalidRangeError(raw)
        return (
            Comparator(operator=">=", major=low.major, minor=low.minor, patch=low.patch),
            Comparator(operator="<=", major=high.major, minor=high.minor, patch=high.patch),
        )

    text = _OPERATOR_GAP_RE.sub(r"\1", text)
    return tuple(_parse_comparator(token, raw) for token in text.split())


def parse_range(text: str) -> Range:
    """Parse an npm semver range.

    Raises:
        InvalidRangeError: If ``text`` is not a valid range.
    """
    if not isinstance(text, str):
        raise InvalidRangeError(str(text))
    sets = tuple(_parse_set(alternative, text) for alternative in text.split("||"))
    return Range(raw=text, sets=sets)


def get_range_type(version_range: str) -> str:
    """Return the prefix that reproduces the shape of ``version_range``.

    ``get_range_type(r) + new_version`` is a range of the same kind as
    ``r`` around ``new_version``.

    Examples:
        "^1.2.3" → "^"
        "~>1.2" → "~"
        ">=1.0.0 <2.0.0" → ">="
        "1.x" → "^"
        "1.2.x" → "~"
        "1.2.3" → ""
    """
    value = version_range.strip()
    for prefix in _OPERATOR_PREFIXES:
        if value.startswith(prefix):
            return "~" if prefix == "~>" else prefix
    if _MAJOR_ONLY_RE.fullmatch(value):
        return "^"
    if _MAJOR_MINOR_RE.fullmatch(value):
        return "~"
    return ""
